"""Bot-side half of the stream lifecycle: turns commands into signals."""

from __future__ import annotations

import logging

from ..platform.client import PlatformClient
from .signals import SignalChannel, StreamCommand, StreamSignal

logger = logging.getLogger(__name__)


class Streamer:
    """Looks up a conversation's RTC session and signals the media host."""

    def __init__(self, client: PlatformClient, channel: SignalChannel) -> None:
        self._client = client
        self._channel = channel

    async def stream(self, conversation_id: str, command: StreamCommand) -> StreamSignal | None:
        conv = await self._client.get_conversation_by_id(conversation_id)
        if conv is None:
            logger.warning("[stream] conversation %s not found, %s not sent", conversation_id, command)
            return None
        signal = StreamSignal(
            conversation_id=conv.conversation_id or conversation_id,
            rtc_session_id=conv.rtc_session_id,
            command=command,
        )
        logger.info(
            "[stream] sending %s to media host (conv=%s rtc=%s)",
            command, signal.conversation_id, signal.rtc_session_id,
        )
        await self._channel.send(signal)
        return signal

    async def start(self, conversation_id: str) -> StreamSignal | None:
        return await self.stream(conversation_id, StreamCommand.START)

    async def stop(self, conversation_id: str) -> StreamSignal | None:
        return await self.stream(conversation_id, StreamCommand.STOP)
