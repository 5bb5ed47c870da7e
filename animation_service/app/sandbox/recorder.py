"""프레임 측 녹화기.

프리뷰 문서의 캡처 스크립트와 같은 규칙을 asyncio 로 옮긴 것으로, 프로세스 내 루프백
프레임과 타이밍 검증에 쓴다.

- startRecording 을 받으면 캔버스를 찾고 인코더를 시작한 뒤 duration 타이머를 건다.
- 타이머 만료 시 인코더를 멈추고 videoReady 를 정확히 한 번 보낸다.
- 캡처 실패 시 recordingError 를 정확히 한 번 보내고, 이후 videoReady 는 보내지 않는다.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Protocol

from .document import CAPTURE_FPS, CAPTURE_MIME_TYPE, CAPTURE_TIMESLICE_MS
from .protocol import RecordingError, StartRecording, VideoReady, parse_message
from .session import MessageHandler


logger = logging.getLogger(__name__)

ChunkHandler = Callable[[bytes], None]


class CaptureSurface(Protocol):
    """캔버스 + MediaRecorder 추상화."""

    def has_canvas(self) -> bool:  # pragma: no cover - Protocol
        ...

    def supports(self, mime_type: str) -> bool:  # pragma: no cover - Protocol
        ...

    def start(
        self,
        *,
        fps: int,
        mime_type: str | None,
        timeslice_ms: int,
        on_chunk: ChunkHandler,
    ) -> None:  # pragma: no cover - Protocol
        """인코더를 시작한다. 생성 실패 시 예외를 던진다."""
        ...

    def stop(self) -> None:  # pragma: no cover - Protocol
        """인코더를 멈추고 남은 청크를 on_chunk 로 흘려보낸다."""
        ...


class FrameRecorder:
    def __init__(
        self,
        surface: CaptureSurface,
        post: Callable[[dict[str, Any]], None],
        *,
        fps: int = CAPTURE_FPS,
        timeslice_ms: int = CAPTURE_TIMESLICE_MS,
    ) -> None:
        self._surface = surface
        self._post = post
        self._fps = fps
        self._timeslice_ms = timeslice_ms
        self._chunks: list[bytes] = []
        self._timer: asyncio.TimerHandle | None = None
        self._deadline: float | None = None
        self._active = False
        self.started_at: float | None = None
        self.mime_type: str | None = None

    @property
    def recording(self) -> bool:
        return self._active

    def handle(self, raw: Any) -> None:
        message = parse_message(raw)
        if isinstance(message, StartRecording):
            self.start(message.duration)

    def start(self, duration_ms: int) -> None:
        if self._active:
            logger.info("startRecording ignored: already recording")
            return

        if not self._surface.has_canvas():
            self._post(RecordingError(error="Canvas not initialized").to_payload())
            return

        self._chunks = []
        self.mime_type = (
            CAPTURE_MIME_TYPE if self._surface.supports(CAPTURE_MIME_TYPE) else None
        )
        try:
            self._surface.start(
                fps=self._fps,
                mime_type=self.mime_type,
                timeslice_ms=self._timeslice_ms,
                on_chunk=self._on_chunk,
            )
        except Exception as exc:
            logger.warning("media recorder could not start: %s", exc)
            self._post(
                RecordingError(error=f"Failed to start recording: {exc}").to_payload()
            )
            return

        loop = asyncio.get_running_loop()
        self._active = True
        self.started_at = loop.time()
        self._deadline = self.started_at + duration_ms / 1000
        self._timer = loop.call_at(self._deadline, self._on_timer)

    def report_error(self, error: str) -> None:
        """인코더 런타임 오류 또는 스케치 오류 (MediaRecorder.onerror 에 해당)."""

        if not self._active:
            self._post(RecordingError(error=error).to_payload())
            return
        self._cancel_timer()
        self._active = False
        self._post(RecordingError(error=f"MediaRecorder error: {error}").to_payload())

    def cancel(self) -> None:
        self._cancel_timer()
        self._active = False

    def _on_chunk(self, chunk: bytes) -> None:
        if chunk:
            self._chunks.append(chunk)

    def _on_timer(self) -> None:
        self._timer = None
        loop = asyncio.get_running_loop()
        # 이벤트 루프는 clock resolution 만큼 일찍 깨울 수 있다.
        if self._deadline is not None and loop.time() < self._deadline:
            self._timer = loop.call_at(self._deadline, self._on_timer)
            return
        if not self._active:
            return

        try:
            self._surface.stop()
        except Exception as exc:
            logger.warning("media recorder failed to stop: %s", exc)
            self.report_error(str(exc))
            return

        self._active = False
        self._post(VideoReady(video_data=b"".join(self._chunks)).to_payload())

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


class LoopbackFrame:
    """호스트 세션과 FrameRecorder 를 같은 이벤트 루프에서 연결하는 FrameChannel."""

    def __init__(self, surface: CaptureSurface) -> None:
        self._handlers: list[MessageHandler] = []
        self.recorder = FrameRecorder(surface, self._deliver_to_host)

    @property
    def listener_count(self) -> int:
        return len(self._handlers)

    def post(self, message: dict[str, Any]) -> None:
        asyncio.get_running_loop().call_soon(self.recorder.handle, message)

    def subscribe(self, handler: MessageHandler) -> None:
        self._handlers.append(handler)

    def unsubscribe(self, handler: MessageHandler) -> None:
        self._handlers.remove(handler)

    def _deliver_to_host(self, message: dict[str, Any]) -> None:
        for handler in list(self._handlers):
            handler(message)
