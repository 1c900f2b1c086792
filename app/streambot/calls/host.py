"""Media host -- consumes stream signals and drives the orchestrator."""

from __future__ import annotations

import logging

from .orchestrator import CallStreamOrchestrator
from .signals import QueueChannel, StreamCommand, StreamSignal

logger = logging.getLogger(__name__)


class MediaHost:
    """Applies signals in arrival order; one failing signal never stops the loop."""

    def __init__(self, orchestrator: CallStreamOrchestrator, channel: QueueChannel) -> None:
        self.orchestrator = orchestrator
        self._channel = channel

    async def run(self) -> None:
        logger.info("[host] waiting for stream signals")
        while True:
            signal = await self._channel.receive()
            try:
                await self.handle(signal)
            finally:
                self._channel.task_done()

    async def handle(self, signal: StreamSignal) -> None:
        logger.info("[host] received %s (conv=%s rtc=%s)", signal.command, signal.conversation_id, signal.rtc_session_id)
        try:
            if signal.command == StreamCommand.START:
                result = await self.orchestrator.start(signal.conversation_id, signal.rtc_session_id)
                if result:
                    logger.info("[host] start: %s", result.message)
                else:
                    logger.warning("[host] start failed (%s), keepalive will retry", result.message)
            else:
                await self.orchestrator.stop(signal.rtc_session_id or None)
        except Exception as exc:
            logger.error("[host] handling %s failed: %s", signal.command, exc, exc_info=True)

    async def shutdown(self) -> None:
        await self.orchestrator.stop()
