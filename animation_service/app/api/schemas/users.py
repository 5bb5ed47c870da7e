from __future__ import annotations

from pydantic import BaseModel, Field

from common.types.fields import ObjectIdStr, UtcDateTime

from ...models.credit import CreditTransaction
from ...services.credit_service import MAX_TOP_UP_CREDITS


class CreditsResponse(BaseModel):
    credits: int


class RefreshCreditsRequest(BaseModel):
    """수동 충전 요청. credits 를 생략하면 10, 1회 최대 100."""

    credits: int | None = Field(default=None, gt=0, le=MAX_TOP_UP_CREDITS)


class RefreshCreditsResponse(BaseModel):
    success: bool = True
    message: str
    credits: int


class CreditTransactionResponse(BaseModel):
    """크레딧 트랜잭션 응답."""

    id: ObjectIdStr | None
    type: str
    amount: int
    reason: str
    balance_after: int | None = None
    created_at: UtcDateTime

    @classmethod
    def from_domain(cls, tx: CreditTransaction) -> "CreditTransactionResponse":
        return cls(
            id=tx.id,
            type=tx.type.value,
            amount=tx.amount,
            reason=tx.reason,
            balance_after=tx.balance_after,
            created_at=tx.created_at,
        )
