"""크레딧 트랜잭션 로그 도메인 모델."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class CreditTransactionType(str, Enum):
    CONSUME = "consume"
    REFUND = "refund"
    PURCHASE = "purchase"
    GRANT = "grant"
    MONTHLY_REFRESH = "monthly_refresh"


class CreditTransaction(BaseModel):
    """원장 변경 1건에 대한 기록. 잔액 계산에는 쓰지 않고 이력 조회용으로만 남긴다."""

    id: str | None = None
    identity: str
    type: CreditTransactionType
    amount: int
    reason: str
    balance_after: int | None = None
    metadata: dict | None = None
    created_at: datetime
    updated_at: datetime
