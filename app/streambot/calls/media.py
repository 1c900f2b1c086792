"""Interfaces the media host needs from a real-time media stack.

The platform's RTC layer (conference control, device access, remote
streams) is supplied by a backend object loaded from ``MEDIA_BACKEND``
(``package.module:factory``). The factory is called with no arguments and
returns something with ``calls`` and ``devices`` attributes.
"""

from __future__ import annotations

import importlib
from dataclasses import dataclass
from typing import Protocol


@dataclass
class RtcCall:
    """Call descriptor as reported by the media stack."""

    call_id: str
    conversation_id: str = ""
    is_remote: bool = False
    local_audio: bool = False


@dataclass
class CallSession:
    """The one call the media host is bridged into."""

    call_id: str
    conversation_id: str
    rtc_session_id: str
    local_audio_attached: bool = False
    is_remote: bool = False

    @classmethod
    def from_call(cls, call: RtcCall, conversation_id: str, rtc_session_id: str) -> CallSession:
        return cls(
            call_id=call.call_id,
            conversation_id=call.conversation_id or conversation_id,
            rtc_session_id=rtc_session_id,
            local_audio_attached=call.local_audio,
            is_remote=call.is_remote,
        )


class AudioStream(Protocol):
    @property
    def has_audio(self) -> bool: ...

    async def read(self) -> bytes:
        """Return whatever encoded audio arrived since the previous read."""
        ...


class CallControl(Protocol):
    async def find_call(self, rtc_session_id: str) -> RtcCall | None: ...

    async def start_conference(self, conversation_id: str, *, audio: bool, video: bool) -> RtcCall: ...

    async def join_conference(self, call_id: str, *, audio: bool, video: bool) -> None: ...

    async def leave_conference(self, call_id: str) -> None: ...

    async def set_audio_video_stream(self, call_id: str, stream: AudioStream) -> None: ...

    async def get_remote_streams(self, call_id: str) -> list[AudioStream]: ...


class MediaDevices(Protocol):
    async def get_user_media(self, *, audio: bool, video: bool) -> AudioStream: ...


class MediaBackend(Protocol):
    calls: CallControl
    devices: MediaDevices


def load_backend(target: str) -> MediaBackend:
    """Import ``module:factory`` and call the factory."""
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"MEDIA_BACKEND must look like 'package.module:factory', got {target!r}")
    factory = getattr(importlib.import_module(module_name), attr)
    return factory()
