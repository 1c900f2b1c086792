"""Media host server -- receives stream signals and owns the call bridge."""

from __future__ import annotations

import asyncio
import logging

from aiohttp import web

from .. import __version__
from ..calls.capture import CapturePipeline, FileRecordingSink
from ..calls.host import MediaHost
from ..calls.media import MediaBackend, load_backend
from ..calls.orchestrator import CallStreamOrchestrator
from ..calls.signals import QueueChannel, SignalRoutes
from ..config.settings import Settings, cfg
from ..util.log_setup import configure_logging
from .app import QuietAccessLogger

logger = logging.getLogger(__name__)

# Upper bound on waiting for queued signals at shutdown.
_DRAIN_SECONDS = 5.0


class MediaAppFactory:
    """Builds the media-host application around a media backend."""

    def __init__(self, backend: MediaBackend, settings: Settings | None = None) -> None:
        s = self._settings = settings or cfg
        self.channel = QueueChannel()
        self.capture = CapturePipeline(FileRecordingSink(s.recordings_dir), chunk_interval=s.chunk_seconds)
        self.orchestrator = CallStreamOrchestrator(
            backend.calls,
            backend.devices,
            self.capture,
            settle_delay=s.settle_seconds,
            remote_stream_delay=s.remote_stream_seconds,
            keepalive_interval=s.keepalive_seconds,
        )
        # Backends that can observe negotiation completion report it here.
        register = getattr(backend, "set_negotiated_callback", None)
        if register is not None:
            register(self.orchestrator.notify_negotiated)
        self.host = MediaHost(self.orchestrator, self.channel)

    async def build(self) -> web.Application:
        self._settings.ensure_dirs()
        app = web.Application()
        SignalRoutes(self.channel, self._settings.stream_path).register(app.router)
        app.router.add_get("/health", self._health)
        app.on_startup.append(self._on_startup)
        app.on_cleanup.append(self._on_cleanup)
        return app

    async def _on_startup(self, app: web.Application) -> None:
        app["host_task"] = asyncio.create_task(self.host.run())

    async def _on_cleanup(self, app: web.Application) -> None:
        try:
            await asyncio.wait_for(self.channel.join(), timeout=_DRAIN_SECONDS)
        except TimeoutError:
            logger.warning("[host] shutting down with %d signal(s) unhandled", self.channel.pending)
        task = app.get("host_task")
        if task and not task.done():
            task.cancel()
        await self.host.shutdown()

    async def _health(self, _req: web.Request) -> web.Response:
        o = self.orchestrator
        return web.json_response({
            "status": "ok",
            "version": __version__,
            "state": str(o.state),
            "rtc_session_id": o.target.rtc_session_id if o.target else None,
            "call_id": o.session.call_id if o.session else None,
            "keepalive_armed": o.keepalive_armed,
            "recording": self.capture.recording,
            "buffered_bytes": self.capture.buffered_bytes,
        })


def main() -> None:
    configure_logging(cfg.log_level, cfg.sdk_log_level)
    if not cfg.media_backend:
        logger.error("MEDIA_BACKEND must name a media backend factory ('package.module:factory')")
        raise SystemExit(1)
    backend = load_backend(cfg.media_backend)
    logger.info("Starting media host %s on port %d (backend %s) ...", __version__, cfg.media_port, cfg.media_backend)
    web.run_app(
        MediaAppFactory(backend).build(),
        host="127.0.0.1",
        port=cfg.media_port,
        access_log_class=QuietAccessLogger,
    )


if __name__ == "__main__":
    main()
