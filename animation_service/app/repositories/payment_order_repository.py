from __future__ import annotations

from datetime import datetime, timezone

from pymongo import ReturnDocument
from pymongo.database import Database

from .documents.payment_order_document import PaymentOrderDocument
from .interfaces import PaymentOrderRepositoryInterface
from ..models.payment import PaymentOrder, PaymentOrderStatus


class PaymentOrderRepository(PaymentOrderRepositoryInterface):
    """payment_orders 컬렉션 접근 레이어."""

    def __init__(self, database: Database) -> None:
        self._col = database["payment_orders"]

    def create(self, order: PaymentOrder) -> PaymentOrder:
        doc = PaymentOrderDocument.from_domain(order)
        result = self._col.insert_one(doc.to_mongo_record())
        doc.id = result.inserted_id
        return doc.to_domain()

    def find_for_owner(self, order_id: str, identity: str) -> PaymentOrder | None:
        raw = self._col.find_one({"order_id": order_id, "identity": identity})
        if raw is None:
            return None
        return PaymentOrderDocument.model_validate(raw).to_domain()

    def mark_paid(
        self, order_id: str, identity: str, payment_id: str
    ) -> PaymentOrder | None:
        # created -> paid 전이는 한 번만 성공한다 (콜백 재전송 시 None).
        raw = self._col.find_one_and_update(
            {
                "order_id": order_id,
                "identity": identity,
                "status": PaymentOrderStatus.CREATED.value,
            },
            {
                "$set": {
                    "status": PaymentOrderStatus.PAID.value,
                    "payment_id": payment_id,
                    "updated_at": datetime.now(timezone.utc),
                }
            },
            return_document=ReturnDocument.AFTER,
        )
        if raw is None:
            return None
        return PaymentOrderDocument.model_validate(raw).to_domain()
