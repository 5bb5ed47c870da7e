"""크레딧 요금제/결제 API."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from ...auth import get_current_identity
from ...models.plan import PLANS
from ...services.payment_service import PaymentService, get_payment_service
from ..schemas.payments import (
    CreateOrderRequest,
    CreateOrderResponse,
    PlanResponse,
    PlansResponse,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)


router = APIRouter(tags=["payments"])

Identity = Annotated[str, Depends(get_current_identity)]
Service = Annotated[PaymentService, Depends(get_payment_service)]


@router.get("/plans")
def list_plans() -> PlansResponse:
    """요금제 목록 (정적 카탈로그, 인증 불필요)."""
    return PlansResponse(plans=[PlanResponse.from_domain(plan) for plan in PLANS])


@router.post("/create-order")
def create_order(
    req: CreateOrderRequest, identity: Identity, service: Service
) -> CreateOrderResponse:
    created = service.create_order(identity, req.plan_id)
    return CreateOrderResponse(
        order_id=created.order.order_id,
        amount=created.order.amount,
        currency=created.order.currency,
        plan=PlanResponse.from_domain(created.plan),
    )


@router.post("/verify-payment")
def verify_payment(
    req: VerifyPaymentRequest, identity: Identity, service: Service
) -> VerifyPaymentResponse:
    """결제 서명 검증 후 크레딧 지급. 이미 처리된 주문이면 현재 잔액만 반환한다."""
    result = service.verify_and_credit(
        identity,
        order_id=req.order_id,
        payment_id=req.payment_id,
        signature=req.signature,
        plan_id=req.plan_id,
    )
    return VerifyPaymentResponse(
        success=True,
        message=result.message,
        credits=result.balance,
    )
