"""호스트 측 녹화 세션.

상태 전이: Idle -> Recording -> Ready, 또는 Idle -> Recording -> Failed -> Idle.

- 동시에 하나의 녹화만 허용한다 (RecordingInProgress).
- 완료 리스너는 녹화 중에만 등록하고, 완료/실패/종료 중 먼저 오는 쪽에서 정확히 한 번 해제한다.
- 프레임이 응답하지 않으면 duration + grace 후 워치독 타이머가 실패로 처리한다.
- 새 영상을 내보내거나 세션을 닫으면 이전 object URL 은 폐기된다.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from enum import Enum
from typing import Any, Callable, Protocol

from .protocol import RecordingError, StartRecording, VideoReady, parse_message


logger = logging.getLogger(__name__)

MessageHandler = Callable[[Any], None]

DEFAULT_GRACE_MS = 5000


class RecordingInProgress(Exception):
    """이미 진행 중인 녹화가 있다."""


class RecordingFailed(Exception):
    """프레임이 recordingError 를 보냈거나, 응답 없이 시간이 초과되었다."""


class RecordingState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    READY = "ready"
    FAILED = "failed"


class FrameChannel(Protocol):
    """프레임과의 양방향 메시지 채널 (window.postMessage 에 해당)."""

    def post(self, message: dict[str, Any]) -> None:  # pragma: no cover - Protocol
        ...

    def subscribe(self, handler: MessageHandler) -> None:  # pragma: no cover - Protocol
        ...

    def unsubscribe(self, handler: MessageHandler) -> None:  # pragma: no cover - Protocol
        ...


class ExportedMediaRegistry:
    """내보낸 영상의 object URL 관리 (URL.createObjectURL / revokeObjectURL)."""

    def __init__(self, on_revoke: Callable[[str], None] | None = None) -> None:
        self._items: dict[str, bytes] = {}
        self._on_revoke = on_revoke

    @property
    def active_urls(self) -> list[str]:
        return list(self._items)

    def publish(self, data: bytes) -> str:
        self.revoke_all()
        url = f"blob:{uuid.uuid4()}"
        self._items[url] = data
        return url

    def get(self, url: str) -> bytes | None:
        return self._items.get(url)

    def revoke_all(self) -> None:
        for url in list(self._items):
            del self._items[url]
            if self._on_revoke is not None:
                self._on_revoke(url)


class RecordingSession:
    def __init__(
        self,
        channel: FrameChannel,
        media: ExportedMediaRegistry | None = None,
        *,
        grace_ms: int = DEFAULT_GRACE_MS,
    ) -> None:
        self._channel = channel
        self._media = media or ExportedMediaRegistry()
        self._grace_ms = grace_ms
        self._state = RecordingState.IDLE
        self._pending: asyncio.Future[bytes] | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._listening = False
        self.last_error: str | None = None
        self.video_url: str | None = None

    @property
    def state(self) -> RecordingState:
        return self._state

    @property
    def media(self) -> ExportedMediaRegistry:
        return self._media

    async def export(self, duration_ms: int) -> str:
        """녹화를 요청하고 완료되면 새 object URL 을 반환한다."""

        if self._state is RecordingState.RECORDING:
            raise RecordingInProgress()

        start = StartRecording(duration=duration_ms)
        loop = asyncio.get_running_loop()

        self._state = RecordingState.RECORDING
        self.last_error = None
        self._pending = loop.create_future()
        self._channel.subscribe(self._on_message)
        self._listening = True
        self._timer = loop.call_later(
            (duration_ms + self._grace_ms) / 1000, self._on_timeout
        )

        try:
            self._channel.post(start.to_payload())
        except Exception as exc:
            logger.exception("failed to post startRecording to sandbox frame")
            self._settle_error(f"Failed to start video export: {exc}")

        try:
            data = await self._pending
        except RecordingFailed as exc:
            self._state = RecordingState.FAILED
            self.last_error = str(exc)
            raise
        finally:
            self._detach()
            self._pending = None

        self.video_url = self._media.publish(data)
        self._state = RecordingState.READY
        return self.video_url

    def dismiss_error(self) -> None:
        if self._state is RecordingState.FAILED:
            self._state = RecordingState.IDLE
            self.last_error = None

    def close(self) -> None:
        """세션 종료: 타이머 취소, 리스너 해제, 대기 중인 녹화 실패 처리, URL 폐기."""

        self._settle_error("Recording session closed")
        self._detach()
        self._media.revoke_all()
        self.video_url = None
        if self._state is not RecordingState.RECORDING:
            self._state = RecordingState.IDLE

    def _on_message(self, raw: Any) -> None:
        message = parse_message(raw)
        if message is None or isinstance(message, StartRecording):
            return
        if self._pending is None or self._pending.done():
            return

        if isinstance(message, VideoReady):
            self._pending.set_result(message.video_data)
        elif isinstance(message, RecordingError):
            self._pending.set_exception(RecordingFailed(message.error))
        self._detach()

    def _on_timeout(self) -> None:
        self._timer = None
        logger.warning("sandbox frame did not answer the recording request in time")
        self._settle_error("Recording timed out")

    def _settle_error(self, message: str) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.set_exception(RecordingFailed(message))
        self._detach()

    def _detach(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._listening:
            self._listening = False
            self._channel.unsubscribe(self._on_message)
