"""애니메이션 도메인 모델.

한 레코드는 최초 프롬프트, 현재 스케치 코드, 대화 기록, 내보낸 영상 참조를 가진다.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


TITLE_MAX_LENGTH = 50

GENERATED_NOTE = "Generated initial animation"
MODIFIED_NOTE = "Modified animation based on request"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MessageRole(str, Enum):
    """대화 기록 역할. system 은 AI 답변이 아니라 파이프라인 이벤트 기록이다."""

    USER = "user"
    SYSTEM = "system"


class AnimationMessage(BaseModel):
    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=_utcnow)


class Animation(BaseModel):
    id: str | None = None
    identity: str
    title: str
    initial_prompt: str
    current_code: str
    messages: list[AnimationMessage] = Field(default_factory=list)
    video_url: str | None = None
    thumbnail: str | None = None
    created_at: datetime
    updated_at: datetime


class AnimationSummary(BaseModel):
    """히스토리 사이드바용 요약 (코드/메시지 제외)."""

    id: str
    title: str
    initial_prompt: str
    thumbnail: str | None = None
    updated_at: datetime


def make_title(prompt: str) -> str:
    """프롬프트 앞 50자를 제목으로 쓰고, 잘렸으면 '...' 을 붙인다."""
    if len(prompt) > TITLE_MAX_LENGTH:
        return prompt[:TITLE_MAX_LENGTH] + "..."
    return prompt
