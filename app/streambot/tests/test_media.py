"""Tests for media backend loading and call descriptors."""

from __future__ import annotations

import pytest

from app.streambot.calls.media import CallSession, RtcCall, load_backend


def make_backend():
    return "backend-instance"


class TestLoadBackend:
    def test_loads_factory(self) -> None:
        assert load_backend(f"{__name__}:make_backend") == "backend-instance"

    @pytest.mark.parametrize("target", ["", "module_only", ":factory", "module:"])
    def test_malformed_target(self, target: str) -> None:
        with pytest.raises(ValueError, match="MEDIA_BACKEND"):
            load_backend(target)

    def test_missing_module(self) -> None:
        with pytest.raises(ModuleNotFoundError):
            load_backend("no_such_media_backend:factory")

    def test_missing_factory(self) -> None:
        with pytest.raises(AttributeError):
            load_backend(f"{__name__}:nope")


class TestCallSession:
    def test_from_call_prefers_call_conversation(self) -> None:
        session = CallSession.from_call(RtcCall("call-1", "conv-a", is_remote=True), "conv-b", "rtc-1")
        assert session == CallSession("call-1", "conv-a", "rtc-1", local_audio_attached=False, is_remote=True)

    def test_from_call_falls_back_to_target(self) -> None:
        session = CallSession.from_call(RtcCall("call-1", local_audio=True), "conv-b", "rtc-1")
        assert session.conversation_id == "conv-b"
        assert session.local_audio_attached
