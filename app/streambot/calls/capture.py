"""Capture pipeline -- buffers the remote audio and writes it out on stop.

Chunks only live in memory until :meth:`CapturePipeline.stop`; a process
that dies mid-call loses everything recorded so far.
"""

from __future__ import annotations

import asyncio
import logging
import re
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

from .media import AudioStream

logger = logging.getLogger(__name__)

_UNSAFE_RE = re.compile(r"[^A-Za-z0-9._-]+")


class RecordingSink(Protocol):
    def write(self, name: str, data: bytes) -> Path: ...


class FileRecordingSink:
    """Writes one ``<name>-<timestamp>.webm`` file per recording session."""

    def __init__(self, directory: Path, suffix: str = ".webm") -> None:
        self._dir = directory
        self._suffix = suffix

    def write(self, name: str, data: bytes) -> Path:
        self._dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ")
        safe = _UNSAFE_RE.sub("_", name).strip("_") or "recording"
        path = self._dir / f"{safe}-{stamp}{self._suffix}"
        path.write_bytes(data)
        return path


class CapturePipeline:
    def __init__(self, sink: RecordingSink, *, chunk_interval: float = 1.5) -> None:
        self._sink = sink
        self._interval = chunk_interval
        self._chunks: list[bytes] = []
        self._stream: AudioStream | None = None
        self._name = ""
        self._task: asyncio.Task[None] | None = None
        self._flush = asyncio.Event()

    @property
    def recording(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def buffered_bytes(self) -> int:
        return sum(len(c) for c in self._chunks)

    def start(self, stream: AudioStream, name: str) -> None:
        """Begin (or resume, on a new stream) recording into the current buffer."""
        self._stream = stream
        self._name = name or self._name
        if self.recording:
            logger.info("[capture] switched to a new remote stream for %s", self._name)
            return
        self._task = asyncio.create_task(self._run())
        logger.info("[capture] recording started for %s (chunk every %.1fs)", self._name, self._interval)

    def request_data(self) -> None:
        if self.recording:
            self._flush.set()

    async def stop(self) -> Path | None:
        """Stop recording and write the assembled file. Returns its path, if any."""
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            await self._collect()
        data = b"".join(self._chunks)
        self._chunks.clear()
        self._stream = None
        if not data:
            logger.info("[capture] recording stopped, nothing captured")
            return None
        path = await asyncio.to_thread(self._sink.write, self._name, data)
        logger.info("[capture] recording stopped, wrote %d bytes to %s", len(data), path)
        return path

    async def _run(self) -> None:
        while True:
            try:
                await asyncio.wait_for(self._flush.wait(), timeout=self._interval)
            except TimeoutError:
                pass
            self._flush.clear()
            await self._collect()

    async def _collect(self) -> None:
        if self._stream is None:
            return
        try:
            data = await self._stream.read()
        except Exception as exc:
            logger.warning("[capture] read from remote stream failed: %s", exc)
            return
        if data:
            self._chunks.append(data)
            logger.debug("[capture] data available (%d bytes)", len(data))
