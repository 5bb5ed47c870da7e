from __future__ import annotations

import asyncio

import pytest

from animation_service.app.sandbox.document import CAPTURE_MIME_TYPE
from animation_service.app.sandbox.protocol import (
    RecordingError,
    StartRecording,
    VideoReady,
    parse_message,
)
from animation_service.app.sandbox.recorder import LoopbackFrame
from animation_service.app.sandbox.session import (
    ExportedMediaRegistry,
    RecordingFailed,
    RecordingInProgress,
    RecordingSession,
    RecordingState,
)


class FakeSurface:
    def __init__(
        self,
        *,
        canvas: bool = True,
        vp9: bool = True,
        start_error: Exception | None = None,
    ) -> None:
        self.canvas = canvas
        self.vp9 = vp9
        self.start_error = start_error
        self.started_with: dict | None = None
        self.stopped = 0
        self._on_chunk = None

    def has_canvas(self) -> bool:
        return self.canvas

    def supports(self, mime_type: str) -> bool:
        return self.vp9 and mime_type == CAPTURE_MIME_TYPE

    def start(self, *, fps, mime_type, timeslice_ms, on_chunk) -> None:
        if self.start_error is not None:
            raise self.start_error
        self.started_with = {"fps": fps, "mime_type": mime_type, "timeslice_ms": timeslice_ms}
        self._on_chunk = on_chunk
        on_chunk(b"chunk-1")

    def stop(self) -> None:
        self.stopped += 1
        self._on_chunk(b"chunk-2")


class SilentChannel:
    def __init__(self) -> None:
        self.posted: list[dict] = []
        self.handlers: list = []

    def post(self, message: dict) -> None:
        self.posted.append(message)

    def subscribe(self, handler) -> None:
        self.handlers.append(handler)

    def unsubscribe(self, handler) -> None:
        self.handlers.remove(handler)


def test_parse_message_ignores_foreign_and_malformed_messages():
    assert parse_message("hello") is None
    assert parse_message({"type": "webpackOk"}) is None
    assert parse_message({"action": "startRecording", "duration": -5}) is None
    assert isinstance(parse_message({"action": "startRecording", "duration": 3000}), StartRecording)
    ready = parse_message({"action": "videoReady", "videoData": b"abc"})
    assert isinstance(ready, VideoReady) and ready.video_data == b"abc"
    assert isinstance(parse_message({"action": "recordingError", "error": "x"}), RecordingError)


def test_export_delivers_video_no_earlier_than_duration():
    async def scenario():
        loop = asyncio.get_running_loop()
        frame = LoopbackFrame(FakeSurface())
        session = RecordingSession(frame)
        delivered_at: list[float] = []
        frame.subscribe(lambda message: delivered_at.append(loop.time()))

        url = await session.export(120)

        started = frame.recorder.started_at
        await asyncio.sleep(0.05)
        return session, frame, url, started, delivered_at

    session, frame, url, started, delivered_at = asyncio.run(scenario())

    assert len(delivered_at) == 1
    assert delivered_at[0] >= started + 0.120
    assert session.state is RecordingState.READY
    assert session.media.get(url) == b"chunk-1chunk-2"
    assert frame.recorder.mime_type == CAPTURE_MIME_TYPE
    assert frame.listener_count == 1


def test_listener_is_registered_only_while_recording():
    async def scenario():
        frame = LoopbackFrame(FakeSurface())
        session = RecordingSession(frame)
        assert frame.listener_count == 0
        task = asyncio.create_task(session.export(30))
        await asyncio.sleep(0)
        during = frame.listener_count
        await task
        return during, frame.listener_count

    during, after = asyncio.run(scenario())

    assert during == 1
    assert after == 0


def test_second_export_while_recording_is_rejected():
    async def scenario():
        frame = LoopbackFrame(FakeSurface())
        session = RecordingSession(frame)
        first = asyncio.create_task(session.export(50))
        await asyncio.sleep(0)
        with pytest.raises(RecordingInProgress):
            await session.export(50)
        await first
        return session

    session = asyncio.run(scenario())
    assert session.state is RecordingState.READY


def test_missing_canvas_yields_single_error_and_no_video():
    async def scenario():
        frame = LoopbackFrame(FakeSurface(canvas=False))
        session = RecordingSession(frame)
        seen: list[dict] = []
        frame.subscribe(seen.append)
        with pytest.raises(RecordingFailed, match="Canvas not initialized"):
            await session.export(30)
        await asyncio.sleep(0.06)
        return session, seen

    session, seen = asyncio.run(scenario())

    assert [m["action"] for m in seen] == ["recordingError"]
    assert session.state is RecordingState.FAILED
    session.dismiss_error()
    assert session.state is RecordingState.IDLE


def test_encoder_construction_failure_is_reported():
    async def scenario():
        frame = LoopbackFrame(FakeSurface(start_error=RuntimeError("NotSupportedError")))
        session = RecordingSession(frame)
        with pytest.raises(RecordingFailed, match="Failed to start recording"):
            await session.export(30)

    asyncio.run(scenario())


def test_runtime_encoder_error_cancels_video():
    async def scenario():
        frame = LoopbackFrame(FakeSurface())
        session = RecordingSession(frame)
        seen: list[dict] = []
        frame.subscribe(seen.append)
        task = asyncio.create_task(session.export(80))
        await asyncio.sleep(0.02)
        frame.recorder.report_error("EncodingError")
        with pytest.raises(RecordingFailed, match="EncodingError"):
            await task
        await asyncio.sleep(0.1)
        return seen

    seen = asyncio.run(scenario())

    assert [m["action"] for m in seen] == ["recordingError"]


def test_fallback_codec_when_vp9_is_unsupported():
    async def scenario():
        frame = LoopbackFrame(FakeSurface(vp9=False))
        session = RecordingSession(frame)
        await session.export(10)
        return frame

    frame = asyncio.run(scenario())

    assert frame.recorder.mime_type is None


def test_unresponsive_frame_times_out():
    async def scenario():
        channel = SilentChannel()
        session = RecordingSession(channel, grace_ms=20)
        with pytest.raises(RecordingFailed, match="timed out"):
            await session.export(10)
        return channel

    channel = asyncio.run(scenario())

    assert channel.posted == [{"action": "startRecording", "duration": 10}]
    assert channel.handlers == []


def test_new_export_and_close_revoke_previous_urls():
    revoked: list[str] = []

    async def scenario():
        frame = LoopbackFrame(FakeSurface())
        session = RecordingSession(frame, ExportedMediaRegistry(on_revoke=revoked.append))
        first = await session.export(10)
        second = await session.export(10)
        session.close()
        return session, first, second

    session, first, second = asyncio.run(scenario())

    assert revoked == [first, second]
    assert session.media.active_urls == []
    assert session.state is RecordingState.IDLE


def test_close_during_recording_cancels_timer_and_listener():
    async def scenario():
        channel = SilentChannel()
        session = RecordingSession(channel, grace_ms=10_000)
        task = asyncio.create_task(session.export(10_000))
        await asyncio.sleep(0)
        session.close()
        with pytest.raises(RecordingFailed, match="closed"):
            await task
        return channel

    channel = asyncio.run(scenario())

    assert channel.handlers == []
