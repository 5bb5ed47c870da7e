from __future__ import annotations

from common.mongo.types import (
    BaseDocument,
    build_document_data_from_domain,
    from_object_id,
)

from ...models.credit import CreditTransaction, CreditTransactionType


class CreditTransactionDocument(BaseDocument):
    """MongoDB credit_transactions 컬렉션 도큐먼트 모델."""

    identity: str
    type: str
    amount: int
    reason: str
    balance_after: int | None = None
    metadata: dict | None = None

    @classmethod
    def from_domain(cls, tx: CreditTransaction) -> "CreditTransactionDocument":
        data = build_document_data_from_domain(tx)
        data["type"] = tx.type.value
        return cls.model_validate(data)

    def to_domain(self) -> CreditTransaction:
        return CreditTransaction(
            id=from_object_id(self.id),
            identity=self.identity,
            type=CreditTransactionType(self.type),
            amount=self.amount,
            reason=self.reason,
            balance_after=self.balance_after,
            metadata=self.metadata,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
