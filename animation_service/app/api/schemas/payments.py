from __future__ import annotations

from pydantic import AliasChoices, BaseModel, Field

from ...models.plan import CreditPlan


class PlanResponse(BaseModel):
    id: str
    name: str
    credits: int
    amount: int
    description: str

    @classmethod
    def from_domain(cls, plan: CreditPlan) -> "PlanResponse":
        return cls.model_validate(plan.model_dump())


class PlansResponse(BaseModel):
    plans: list[PlanResponse]


class CreateOrderRequest(BaseModel):
    plan_id: str | None = Field(
        default=None, validation_alias=AliasChoices("planId", "plan_id")
    )


class CreateOrderResponse(BaseModel):
    order_id: str
    amount: int
    currency: str
    plan: PlanResponse


class VerifyPaymentRequest(BaseModel):
    """결제 완료 콜백. 게이트웨이 원래 필드명과 중립적인 이름을 모두 받는다."""

    order_id: str | None = Field(
        default=None, validation_alias=AliasChoices("razorpay_order_id", "orderHandle")
    )
    payment_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("razorpay_payment_id", "paymentHandle"),
    )
    signature: str | None = Field(
        default=None,
        validation_alias=AliasChoices("razorpay_signature", "signature"),
    )
    plan_id: str | None = Field(
        default=None, validation_alias=AliasChoices("planId", "plan_id")
    )


class VerifyPaymentResponse(BaseModel):
    success: bool
    message: str
    credits: int
