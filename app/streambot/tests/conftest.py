"""Shared pytest fixtures for app.streambot tests."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from app.streambot.calls.media import RtcCall
from app.streambot.platform.models import Conversation, Identity


@pytest.fixture(autouse=True)
def _isolate_data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    monkeypatch.setenv("STREAMBOT_DATA_DIR", str(data_dir))
    monkeypatch.setenv("DOTENV_PATH", str(tmp_path / ".env"))
    return data_dir


@pytest.fixture(autouse=True)
def _fresh_cfg(_isolate_data_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    from app.streambot.config import settings as settings_mod

    monkeypatch.setattr(settings_mod, "cfg", settings_mod.Settings())


@pytest.fixture()
def data_dir(_isolate_data_dir: Path) -> Path:
    return _isolate_data_dir


@pytest.fixture()
def bot_identity() -> Identity:
    return Identity(user_id="bot-id", display_name="Bot")


@pytest.fixture()
def platform() -> AsyncMock:
    client = AsyncMock()
    client.get_conversation_by_id.return_value = Conversation("conv-1", rtc_session_id="rtc-1")
    return client


class FakeStream:
    """Audio stream that hands out queued chunks, one per read."""

    def __init__(self, chunks: list[bytes] | None = None, *, has_audio: bool = True) -> None:
        self.chunks = list(chunks or [])
        self.has_audio = has_audio
        self.errors: list[Exception] = []

    async def read(self) -> bytes:
        if self.errors:
            raise self.errors.pop(0)
        return self.chunks.pop(0) if self.chunks else b""


class FakeCalls:
    """Call control that keeps calls in a dict keyed by RTC session id."""

    def __init__(self, rtc_session_id: str = "rtc-1") -> None:
        self.rtc_session_id = rtc_session_id
        self.by_rtc: dict[str, RtcCall] = {}
        self.remote_streams: list[FakeStream] = [FakeStream([b"remote-audio"])]
        self.started: list[str] = []
        self.joined: list[str] = []
        self.left: list[str] = []
        self.attached: list[tuple[str, object]] = []
        self.start_error: Exception | None = None

    def add_call(self, call: RtcCall) -> RtcCall:
        self.by_rtc[self.rtc_session_id] = call
        return call

    def drop(self) -> None:
        self.by_rtc.clear()

    async def find_call(self, rtc_session_id: str) -> RtcCall | None:
        return self.by_rtc.get(rtc_session_id)

    async def start_conference(self, conversation_id: str, *, audio: bool, video: bool) -> RtcCall:
        if self.start_error is not None:
            raise self.start_error
        self.started.append(conversation_id)
        return self.add_call(RtcCall(f"call-{len(self.started)}", conversation_id))

    async def join_conference(self, call_id: str, *, audio: bool, video: bool) -> None:
        self.joined.append(call_id)
        for call in self.by_rtc.values():
            if call.call_id == call_id:
                call.is_remote = False

    async def leave_conference(self, call_id: str) -> None:
        self.left.append(call_id)
        self.drop()

    async def set_audio_video_stream(self, call_id: str, stream: object) -> None:
        self.attached.append((call_id, stream))
        for call in self.by_rtc.values():
            if call.call_id == call_id:
                call.local_audio = True

    async def get_remote_streams(self, call_id: str) -> list[FakeStream]:
        return self.remote_streams


class FakeDevices:
    def __init__(self) -> None:
        self.requests = 0
        self.error: Exception | None = None

    async def get_user_media(self, *, audio: bool, video: bool) -> FakeStream:
        self.requests += 1
        if self.error is not None:
            raise self.error
        return FakeStream()


@pytest.fixture()
def fake_calls() -> FakeCalls:
    return FakeCalls()


@pytest.fixture()
def fake_devices() -> FakeDevices:
    return FakeDevices()


@pytest.fixture()
def stream_factory() -> type[FakeStream]:
    return FakeStream
