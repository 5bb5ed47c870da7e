from __future__ import annotations

from common.mongo.types import (
    BaseDocument,
    MongoDateTime,
    build_document_data_from_domain,
    from_object_id,
)

from ...models.user import UserAccount


class UserDocument(BaseDocument):
    """MongoDB users 컬렉션 도큐먼트 모델."""

    identity: str
    email: str
    name: str
    credits: int
    last_credit_refresh: MongoDateTime

    @classmethod
    def from_domain(cls, user: UserAccount) -> "UserDocument":
        return cls.model_validate(build_document_data_from_domain(user))

    def to_domain(self) -> UserAccount:
        return UserAccount(
            id=from_object_id(self.id),
            identity=self.identity,
            email=self.email,
            name=self.name,
            credits=self.credits,
            last_credit_refresh=self.last_credit_refresh,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
