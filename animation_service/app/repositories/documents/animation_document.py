from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel

from common.mongo.types import (
    BaseDocument,
    MongoDateTime,
    build_document_data_from_domain,
    from_object_id,
)

from ...models.animation import (
    Animation,
    AnimationMessage,
    AnimationSummary,
    MessageRole,
)


class AnimationMessageDocument(BaseModel):
    """대화 기록 서브 도큐먼트."""

    role: str
    content: str
    timestamp: MongoDateTime

    @classmethod
    def from_domain(cls, message: AnimationMessage) -> "AnimationMessageDocument":
        return cls(
            role=message.role.value,
            content=message.content,
            timestamp=message.timestamp,
        )


class AnimationDocument(BaseDocument):
    """MongoDB animations 컬렉션 도큐먼트."""

    identity: str
    title: str
    initial_prompt: str
    current_code: str
    messages: List[AnimationMessageDocument]
    video_url: Optional[str] = None
    thumbnail: Optional[str] = None

    @classmethod
    def from_domain(cls, animation: Animation) -> "AnimationDocument":
        data = build_document_data_from_domain(animation)
        data["messages"] = [
            AnimationMessageDocument.from_domain(msg) for msg in animation.messages
        ]
        return cls.model_validate(data)

    def to_domain(self) -> Animation:
        return Animation(
            id=from_object_id(self.id),
            identity=self.identity,
            title=self.title,
            initial_prompt=self.initial_prompt,
            current_code=self.current_code,
            messages=[
                AnimationMessage(
                    role=MessageRole(msg.role),
                    content=msg.content,
                    timestamp=msg.timestamp,
                )
                for msg in self.messages
            ],
            video_url=self.video_url,
            thumbnail=self.thumbnail,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def to_summary(self) -> AnimationSummary:
        return AnimationSummary(
            id=str(self.id),
            title=self.title,
            initial_prompt=self.initial_prompt,
            thumbnail=self.thumbnail,
            updated_at=self.updated_at,
        )
