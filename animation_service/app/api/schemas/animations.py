from __future__ import annotations

from common.types.fields import ObjectIdStr, UtcDateTime

from ...models.animation import Animation, AnimationMessage, AnimationSummary
from .common import CamelModel


class PromptRequest(CamelModel):
    """생성/수정 요청. 공백 검사는 서비스에서 한다 (400 validation_error)."""

    prompt: str | None = None


class SaveVideoRequest(CamelModel):
    video_url: str | None = None
    thumbnail: str | None = None


class MessageResponse(CamelModel):
    role: str
    content: str
    timestamp: UtcDateTime

    @classmethod
    def from_domain(cls, message: AnimationMessage) -> "MessageResponse":
        return cls(
            role=message.role.value,
            content=message.content,
            timestamp=message.timestamp,
        )


class CreatedAnimation(CamelModel):
    id: ObjectIdStr
    title: str
    code: str
    messages: list[MessageResponse]


class CreateAnimationResponse(CamelModel):
    animation: CreatedAnimation

    @classmethod
    def from_domain(cls, animation: Animation) -> "CreateAnimationResponse":
        return cls(
            animation=CreatedAnimation(
                id=animation.id,
                title=animation.title,
                code=animation.current_code,
                messages=[MessageResponse.from_domain(m) for m in animation.messages],
            )
        )


class ModifiedAnimation(CamelModel):
    id: ObjectIdStr
    code: str
    messages: list[MessageResponse]


class ModifyAnimationResponse(CamelModel):
    animation: ModifiedAnimation

    @classmethod
    def from_domain(cls, animation: Animation) -> "ModifyAnimationResponse":
        return cls(
            animation=ModifiedAnimation(
                id=animation.id,
                code=animation.current_code,
                messages=[MessageResponse.from_domain(m) for m in animation.messages],
            )
        )


class AnimationSummaryResponse(CamelModel):
    id: ObjectIdStr
    title: str
    initial_prompt: str
    thumbnail: str | None = None
    updated_at: UtcDateTime

    @classmethod
    def from_domain(cls, summary: AnimationSummary) -> "AnimationSummaryResponse":
        return cls(
            id=summary.id,
            title=summary.title,
            initial_prompt=summary.initial_prompt,
            thumbnail=summary.thumbnail,
            updated_at=summary.updated_at,
        )


class AnimationListResponse(CamelModel):
    animations: list[AnimationSummaryResponse]


class AnimationDetail(CamelModel):
    id: ObjectIdStr
    title: str
    initial_prompt: str
    code: str
    messages: list[MessageResponse]
    video_url: str | None = None
    thumbnail: str | None = None
    created_at: UtcDateTime
    updated_at: UtcDateTime


class AnimationDetailResponse(CamelModel):
    animation: AnimationDetail

    @classmethod
    def from_domain(cls, animation: Animation) -> "AnimationDetailResponse":
        return cls(
            animation=AnimationDetail(
                id=animation.id,
                title=animation.title,
                initial_prompt=animation.initial_prompt,
                code=animation.current_code,
                messages=[MessageResponse.from_domain(m) for m in animation.messages],
                video_url=animation.video_url,
                thumbnail=animation.thumbnail,
                created_at=animation.created_at,
                updated_at=animation.updated_at,
            )
        )
