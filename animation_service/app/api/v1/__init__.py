from fastapi import APIRouter

from .animations import router as animations_router
from .payments import router as payments_router
from .users import router as users_router

api_router = APIRouter()
api_router.include_router(animations_router)  # /animations
api_router.include_router(users_router)  # /user
api_router.include_router(payments_router)  # /plans, /create-order, /verify-payment
