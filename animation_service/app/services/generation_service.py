"""애니메이션 생성/수정 파이프라인.

검증 -> 크레딧 사전 검사 -> (수정 시) 소유권 확인 -> 크레딧 예약 -> AI 호출
-> 코드 정리/검증 -> 저장 -> 크레딧 확정.

입력 검증과 소유권 확인은 외부 호출과 상태 변경보다 먼저 수행한다.
예약 이후 단계가 실패하면 예약한 크레딧은 환원된다.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Protocol

from fastapi import Depends, Request
from pymongo.database import Database

from common.mongo.client import get_database

from ..exceptions import MissingField, NotFound, ValidationError
from ..generator.sanitizer import sanitize_sketch
from ..models.animation import (
    GENERATED_NOTE,
    MODIFIED_NOTE,
    Animation,
    AnimationMessage,
    AnimationSummary,
    MessageRole,
    make_title,
)
from ..repositories.animation_repository import AnimationRepository
from ..repositories.interfaces import AnimationRepositoryInterface
from ..sandbox.document import build_preview_document
from .credit_service import CreditService, get_credit_service


logger = logging.getLogger(__name__)

GENERATE_REASON = "animation_generate"
MODIFY_REASON = "animation_modify"


class SketchGeneratorInterface(Protocol):
    def generate(self, prompt: str) -> str:  # pragma: no cover - Protocol
        ...

    def modify(self, existing_code: str, prompt: str) -> str:  # pragma: no cover - Protocol
        ...


def _require_prompt(prompt: str | None) -> str:
    if prompt is None or not prompt.strip():
        raise ValidationError("Valid prompt is required.")
    return prompt.strip()


class GenerationService:
    """애니메이션 레코드 관련 비즈니스 로직."""

    def __init__(
        self,
        animation_repo: AnimationRepositoryInterface,
        credit_service: CreditService,
        generator: SketchGeneratorInterface,
    ) -> None:
        self._animation_repo = animation_repo
        self._credit_service = credit_service
        self._generator = generator

    def create(self, identity: str, prompt: str | None) -> Animation:
        prompt = _require_prompt(prompt)
        self._credit_service.ensure_has_credits(identity)

        with self._credit_service.spend(identity, GENERATE_REASON) as reservation:
            code = sanitize_sketch(self._generator.generate(prompt))

            now = datetime.now(timezone.utc)
            created = self._animation_repo.insert(
                Animation(
                    identity=identity,
                    title=make_title(prompt),
                    initial_prompt=prompt,
                    current_code=code,
                    messages=[
                        AnimationMessage(
                            role=MessageRole.USER, content=prompt, timestamp=now
                        ),
                        AnimationMessage(
                            role=MessageRole.SYSTEM, content=GENERATED_NOTE, timestamp=now
                        ),
                    ],
                    created_at=now,
                    updated_at=now,
                )
            )
            reservation.metadata["animation_id"] = created.id

        logger.info(
            "animation generated",
            extra={"identity": identity, "animation_id": created.id},
        )
        return created

    def modify(self, identity: str, animation_id: str, prompt: str | None) -> Animation:
        prompt = _require_prompt(prompt)
        self._credit_service.ensure_has_credits(identity)

        existing = self._animation_repo.find_for_owner(animation_id, identity)
        if existing is None:
            raise NotFound()

        with self._credit_service.spend(identity, MODIFY_REASON) as reservation:
            reservation.metadata["animation_id"] = animation_id
            code = sanitize_sketch(self._generator.modify(existing.current_code, prompt))

            now = datetime.now(timezone.utc)
            updated = self._animation_repo.apply_modification(
                animation_id,
                identity,
                code,
                [
                    AnimationMessage(role=MessageRole.USER, content=prompt, timestamp=now),
                    AnimationMessage(
                        role=MessageRole.SYSTEM, content=MODIFIED_NOTE, timestamp=now
                    ),
                ],
            )
            if updated is None:
                # AI 호출 중에 삭제된 경우
                raise NotFound()

        logger.info(
            "animation modified",
            extra={"identity": identity, "animation_id": animation_id},
        )
        return updated

    def list_animations(self, identity: str) -> list[AnimationSummary]:
        return self._animation_repo.list_summaries(identity)

    def get_animation(self, identity: str, animation_id: str) -> Animation:
        animation = self._animation_repo.find_for_owner(animation_id, identity)
        if animation is None:
            raise NotFound()
        return animation

    def save_video(
        self,
        identity: str,
        animation_id: str,
        video_url: str | None,
        thumbnail: str | None = None,
    ) -> None:
        if video_url is None or not video_url.strip():
            raise MissingField("Video URL is required.")

        saved = self._animation_repo.save_video(
            animation_id, identity, video_url.strip(), thumbnail
        )
        if not saved:
            raise NotFound()

    def delete(self, identity: str, animation_id: str) -> None:
        if not self._animation_repo.delete(animation_id, identity):
            raise NotFound()
        logger.info(
            "animation deleted",
            extra={"identity": identity, "animation_id": animation_id},
        )

    def render_preview(
        self, identity: str, animation_id: str, *, dark_mode: bool = False
    ) -> str:
        animation = self.get_animation(identity, animation_id)
        return build_preview_document(animation.current_code, dark_mode=dark_mode)


def get_sketch_generator(request: Request) -> SketchGeneratorInterface:
    return request.app.state.sketch_generator


def get_generation_service(
    db: Database = Depends(get_database),
    credit_service: CreditService = Depends(get_credit_service),
    generator: SketchGeneratorInterface = Depends(get_sketch_generator),
) -> GenerationService:
    """FastAPI DI용 GenerationService 팩토리."""
    return GenerationService(AnimationRepository(db), credit_service, generator)
