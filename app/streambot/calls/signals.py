"""One-way stream signals from the bot process to the media host.

The channel is fire-and-forget: nothing is acknowledged, and a lost
signal is only made good by the next keepalive tick on the media host.
"""

from __future__ import annotations

import asyncio
import logging
from enum import StrEnum
from typing import Protocol

import aiohttp
from aiohttp import web
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)


class StreamCommand(StrEnum):
    START = "start"
    STOP = "stop"


class StreamSignal(BaseModel):
    conversation_id: str = Field(min_length=1)
    rtc_session_id: str = ""
    command: StreamCommand


class SignalChannel(Protocol):
    async def send(self, signal: StreamSignal) -> None: ...


class QueueChannel:
    """In-process channel backed by an :class:`asyncio.Queue`."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[StreamSignal] = asyncio.Queue()

    async def send(self, signal: StreamSignal) -> None:
        self._queue.put_nowait(signal)

    async def receive(self) -> StreamSignal:
        return await self._queue.get()

    def task_done(self) -> None:
        self._queue.task_done()

    async def join(self) -> None:
        """Wait until every sent signal has been handled."""
        await self._queue.join()

    @property
    def pending(self) -> int:
        return self._queue.qsize()


class HttpSignalChannel:
    """Posts signals to the media host's ``/api/stream`` route."""

    def __init__(self, base_url: str, path: str = "/api/stream", session: aiohttp.ClientSession | None = None) -> None:
        self._url = base_url.rstrip("/") + path
        self._session = session

    async def send(self, signal: StreamSignal) -> None:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        try:
            async with self._session.post(self._url, json=signal.model_dump(mode="json")) as resp:
                if resp.status >= 400:
                    logger.warning("[signal] media host rejected %s (%s)", signal.command, resp.status)
        except aiohttp.ClientError as exc:
            logger.warning("[signal] could not reach media host at %s: %s", self._url, exc)

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()


class SignalRoutes:
    """Media-host side of :class:`HttpSignalChannel`: feeds a local channel."""

    def __init__(self, channel: SignalChannel, path: str = "/api/stream") -> None:
        self._channel = channel
        self._path = path

    def register(self, router: web.UrlDispatcher) -> None:
        router.add_post(self._path, self._receive)

    async def _receive(self, request: web.Request) -> web.Response:
        try:
            signal = StreamSignal.model_validate(await request.json())
        except (ValueError, ValidationError) as exc:
            logger.warning("[signal] invalid stream signal: %s", exc)
            return web.json_response({"status": "error", "message": str(exc)}, status=400)
        logger.info("[signal] %s for conversation %s", signal.command, signal.conversation_id)
        await self._channel.send(signal)
        return web.json_response({"status": "accepted"}, status=202)
