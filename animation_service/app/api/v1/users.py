"""유저 크레딧 API."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Body, Depends, Query

from ...auth import get_current_identity
from ...services.credit_service import (
    DEFAULT_TOP_UP_CREDITS,
    CreditService,
    get_credit_service,
)
from ..schemas.common import PaginatedResponse
from ..schemas.users import (
    CreditsResponse,
    CreditTransactionResponse,
    RefreshCreditsRequest,
    RefreshCreditsResponse,
)


router = APIRouter(prefix="/user", tags=["user"])

Identity = Annotated[str, Depends(get_current_identity)]
Service = Annotated[CreditService, Depends(get_credit_service)]


@router.get("/credits")
def get_credits(identity: Identity, service: Service) -> CreditsResponse:
    """잔액 조회. 새 달이면 무료 리필이 먼저 적용된다."""
    return CreditsResponse(credits=service.get_balance(identity))


@router.get("/credits/history")
def get_credit_history(
    identity: Identity,
    service: Service,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> PaginatedResponse[CreditTransactionResponse]:
    """크레딧 변경 이력 조회."""
    items, total = service.get_history(identity, page, page_size)
    return PaginatedResponse(
        items=[CreditTransactionResponse.from_domain(tx) for tx in items],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post("/refresh-credits")
def refresh_credits(
    identity: Identity,
    service: Service,
    req: Annotated[RefreshCreditsRequest | None, Body()] = None,
) -> RefreshCreditsResponse:
    """수동 충전 (결제 연동 전 자리표시 기능)."""
    amount = (req.credits if req else None) or DEFAULT_TOP_UP_CREDITS
    balance = service.top_up(identity, amount)
    return RefreshCreditsResponse(
        message=f"{amount} credits added to your account",
        credits=balance,
    )
