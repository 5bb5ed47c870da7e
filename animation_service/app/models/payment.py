from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class PaymentOrderStatus(str, Enum):
    CREATED = "created"
    PAID = "paid"


class PaymentOrder(BaseModel):
    """결제 게이트웨이 주문과 요청한 유저/요금제를 묶어 둔 레코드.

    검증 시 서명뿐 아니라 이 레코드의 plan_id 와 상태를 확인해
    금액 불일치와 콜백 재전송을 막는다.
    """

    id: str | None = None
    order_id: str
    identity: str
    plan_id: str
    amount: int
    currency: str
    status: PaymentOrderStatus = PaymentOrderStatus.CREATED
    payment_id: str | None = None
    created_at: datetime
    updated_at: datetime
