"""크레딧 요금제 카탈로그 (정적 데이터, DB 에 저장하지 않는다)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class CreditPlan(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    credits: int
    amount: int  # 결제 금액 (최소 화폐 단위, INR 이면 paise)
    description: str


PLANS: tuple[CreditPlan, ...] = (
    CreditPlan(
        id="basic",
        name="Basic Pack",
        credits=20,
        amount=499,
        description="Perfect for beginners",
    ),
    CreditPlan(
        id="standard",
        name="Standard Pack",
        credits=50,
        amount=999,
        description="Most popular option",
    ),
    CreditPlan(
        id="premium",
        name="Premium Pack",
        credits=120,
        amount=1999,
        description="Best value for money",
    ),
)


def find_plan(plan_id: str | None) -> CreditPlan | None:
    if not plan_id:
        return None
    for plan in PLANS:
        if plan.id == plan_id:
            return plan
    return None
