"""호스트 페이지와 샌드박스 프레임 사이의 postMessage 계약.

- host -> frame: {"action": "startRecording", "duration": <ms>}
- frame -> host: {"action": "videoReady", "videoData": <blob>}
- frame -> host: {"action": "recordingError", "error": <str>}
"""

from __future__ import annotations

import logging
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from typing_extensions import Annotated


logger = logging.getLogger(__name__)

START_RECORDING = "startRecording"
VIDEO_READY = "videoReady"
RECORDING_ERROR = "recordingError"


class _Message(BaseModel):
    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class StartRecording(_Message):
    action: Literal["startRecording"] = START_RECORDING
    duration: int = Field(gt=0, description="녹화 길이 (ms)")


class VideoReady(_Message):
    action: Literal["videoReady"] = VIDEO_READY
    video_data: bytes = Field(alias="videoData")


class RecordingError(_Message):
    action: Literal["recordingError"] = RECORDING_ERROR
    error: str


SandboxMessage = Annotated[
    Union[StartRecording, VideoReady, RecordingError],
    Field(discriminator="action"),
]

_message_adapter: TypeAdapter[SandboxMessage] = TypeAdapter(SandboxMessage)


def parse_message(raw: Any) -> StartRecording | VideoReady | RecordingError | None:
    """수신 메시지를 해석한다. 계약에 없는 메시지는 무시 대상이므로 None."""

    if not isinstance(raw, dict) or raw.get("action") not in (
        START_RECORDING,
        VIDEO_READY,
        RECORDING_ERROR,
    ):
        return None
    try:
        return _message_adapter.validate_python(raw)
    except ValidationError as exc:
        logger.warning(
            "malformed sandbox message dropped (action=%s, errors=%d)",
            raw.get("action"),
            exc.error_count(),
        )
        return None
