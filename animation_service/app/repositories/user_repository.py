"""users 컬렉션 레포지토리 (유저 + 크레딧 원장).

잔액 변경은 모두 단일 원자 연산으로 처리한다.
- 첫 접속: $setOnInsert upsert (identity 유니크 인덱스)
- 차감: credits > 0 조건부 $inc
- 월간 리필: 파이프라인 업데이트의 $max
"""

from __future__ import annotations

from datetime import datetime, timezone

from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from .documents.user_document import UserDocument
from .interfaces import UserRepositoryInterface
from ..models.user import UserAccount


class UserRepository(UserRepositoryInterface):
    """users 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: Database) -> None:
        self._db = database
        self._col = database["users"]

    def get_or_create(
        self, identity: str, *, default_credits: int, email: str, name: str
    ) -> UserAccount:
        now = datetime.now(timezone.utc)
        try:
            raw = self._col.find_one_and_update(
                {"identity": identity},
                {
                    "$setOnInsert": {
                        "identity": identity,
                        "email": email,
                        "name": name,
                        "credits": default_credits,
                        "last_credit_refresh": now,
                        "created_at": now,
                        "updated_at": now,
                    }
                },
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            # 동시 첫 접속: 다른 요청이 먼저 insert 했으므로 그 레코드를 읽는다.
            raw = self._col.find_one({"identity": identity})

        if raw is None:
            raise RuntimeError(f"failed to resolve user record for {identity}")
        return UserDocument.model_validate(raw).to_domain()

    def find_by_identity(self, identity: str) -> UserAccount | None:
        raw = self._col.find_one({"identity": identity})
        if raw is None:
            return None
        return UserDocument.model_validate(raw).to_domain()

    def try_consume(self, identity: str, amount: int = 1) -> UserAccount | None:
        raw = self._col.find_one_and_update(
            {"identity": identity, "credits": {"$gte": amount, "$gt": 0}},
            {
                "$inc": {"credits": -amount},
                "$set": {"updated_at": datetime.now(timezone.utc)},
            },
            return_document=ReturnDocument.AFTER,
        )
        if raw is None:
            return None
        return UserDocument.model_validate(raw).to_domain()

    def add_credits(self, identity: str, amount: int) -> UserAccount | None:
        raw = self._col.find_one_and_update(
            {"identity": identity},
            {
                "$inc": {"credits": amount},
                "$set": {"updated_at": datetime.now(timezone.utc)},
            },
            return_document=ReturnDocument.AFTER,
        )
        if raw is None:
            return None
        return UserDocument.model_validate(raw).to_domain()

    def apply_monthly_refresh(
        self, identity: str, *, floor: int, month_start: datetime
    ) -> UserAccount | None:
        now = datetime.now(timezone.utc)
        raw = self._col.find_one_and_update(
            {"identity": identity, "last_credit_refresh": {"$lt": month_start}},
            [
                {
                    "$set": {
                        "credits": {"$max": ["$credits", floor]},
                        "last_credit_refresh": now,
                        "updated_at": now,
                    }
                }
            ],
            return_document=ReturnDocument.AFTER,
        )
        if raw is None:
            return None
        return UserDocument.model_validate(raw).to_domain()
