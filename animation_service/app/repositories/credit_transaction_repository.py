"""크레딧 트랜잭션 로그 레포지토리."""

from __future__ import annotations

from pymongo.database import Database

from .documents.credit_document import CreditTransactionDocument
from .interfaces import CreditTransactionRepositoryInterface
from ..models.credit import CreditTransaction


MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 20


class CreditTransactionRepository(CreditTransactionRepositoryInterface):
    """credit_transactions 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: Database) -> None:
        self._col = database["credit_transactions"]

    def create(self, tx: CreditTransaction) -> CreditTransaction:
        doc = CreditTransactionDocument.from_domain(tx)
        result = self._col.insert_one(doc.to_mongo_record())
        return tx.model_copy(update={"id": str(result.inserted_id)})

    def list_by_identity(
        self, identity: str, page: int, page_size: int
    ) -> tuple[list[CreditTransaction], int]:
        if page <= 0:
            page = 1
        if page_size <= 0 or page_size > MAX_PAGE_SIZE:
            page_size = DEFAULT_PAGE_SIZE

        skip = (page - 1) * page_size

        total = self._col.count_documents({"identity": identity})
        cursor = self._col.find(
            {"identity": identity},
            sort=[("created_at", -1), ("_id", -1)],
            skip=skip,
            limit=page_size,
        )

        items = [CreditTransactionDocument.model_validate(raw).to_domain() for raw in cursor]
        return items, total
