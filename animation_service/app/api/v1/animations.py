"""애니메이션 생성/수정/히스토리 API."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import HTMLResponse

from ...auth import get_current_identity
from ...sandbox.document import PREVIEW_CSP
from ...services.generation_service import GenerationService, get_generation_service
from ..schemas.animations import (
    AnimationDetailResponse,
    AnimationListResponse,
    AnimationSummaryResponse,
    CreateAnimationResponse,
    ModifyAnimationResponse,
    PromptRequest,
    SaveVideoRequest,
)
from ..schemas.common import SuccessResponse


router = APIRouter(prefix="/animations", tags=["animations"])

Identity = Annotated[str, Depends(get_current_identity)]
Service = Annotated[GenerationService, Depends(get_generation_service)]


@router.post("", status_code=status.HTTP_201_CREATED)
def create_animation(
    req: PromptRequest, identity: Identity, service: Service
) -> CreateAnimationResponse:
    """프롬프트로 새 스케치를 생성한다 (크레딧 1 소모)."""
    animation = service.create(identity, req.prompt)
    return CreateAnimationResponse.from_domain(animation)


@router.put("/{animation_id}/modify")
def modify_animation(
    animation_id: str, req: PromptRequest, identity: Identity, service: Service
) -> ModifyAnimationResponse:
    """기존 스케치를 요청대로 수정한다 (크레딧 1 소모)."""
    animation = service.modify(identity, animation_id, req.prompt)
    return ModifyAnimationResponse.from_domain(animation)


@router.get("")
def list_animations(identity: Identity, service: Service) -> AnimationListResponse:
    summaries = service.list_animations(identity)
    return AnimationListResponse(
        animations=[AnimationSummaryResponse.from_domain(s) for s in summaries]
    )


@router.get("/{animation_id}")
def get_animation(
    animation_id: str, identity: Identity, service: Service
) -> AnimationDetailResponse:
    return AnimationDetailResponse.from_domain(
        service.get_animation(identity, animation_id)
    )


@router.get("/{animation_id}/preview", response_class=HTMLResponse)
def preview_animation(
    animation_id: str,
    identity: Identity,
    service: Service,
    dark: bool = Query(False, description="다크 모드 배경"),
) -> HTMLResponse:
    """샌드박스 프리뷰 문서. CSP sandbox 로 호스트 origin 과 격리된다."""
    document = service.render_preview(identity, animation_id, dark_mode=dark)
    return HTMLResponse(
        content=document,
        headers={
            "Content-Security-Policy": PREVIEW_CSP,
            "X-Content-Type-Options": "nosniff",
            "Cache-Control": "no-store",
        },
    )


@router.put("/{animation_id}/save-video", response_model_exclude_none=True)
def save_video(
    animation_id: str, req: SaveVideoRequest, identity: Identity, service: Service
) -> SuccessResponse:
    service.save_video(identity, animation_id, req.video_url, req.thumbnail)
    return SuccessResponse()


@router.delete("/{animation_id}")
def delete_animation(
    animation_id: str, identity: Identity, service: Service
) -> SuccessResponse:
    service.delete(identity, animation_id)
    return SuccessResponse(message="Animation deleted successfully")
