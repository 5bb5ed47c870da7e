from __future__ import annotations

from common.mongo.types import (
    BaseDocument,
    build_document_data_from_domain,
    from_object_id,
)

from ...models.payment import PaymentOrder, PaymentOrderStatus


class PaymentOrderDocument(BaseDocument):
    """MongoDB payment_orders 컬렉션 도큐먼트 모델."""

    order_id: str
    identity: str
    plan_id: str
    amount: int
    currency: str
    status: str
    payment_id: str | None = None

    @classmethod
    def from_domain(cls, order: PaymentOrder) -> "PaymentOrderDocument":
        data = build_document_data_from_domain(order)
        data["status"] = order.status.value
        return cls.model_validate(data)

    def to_domain(self) -> PaymentOrder:
        return PaymentOrder(
            id=from_object_id(self.id),
            order_id=self.order_id,
            identity=self.identity,
            plan_id=self.plan_id,
            amount=self.amount,
            currency=self.currency,
            status=PaymentOrderStatus(self.status),
            payment_id=self.payment_id,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
