"""Bot server -- app factory and entry point."""

from __future__ import annotations

import logging

from aiohttp import web
from aiohttp.abc import AbstractAccessLogger

from .. import __version__
from ..bot import Robot
from ..calls.signals import HttpSignalChannel
from ..calls.streamer import Streamer
from ..config.settings import Settings, cfg
from ..messaging.context import SessionContext
from ..messaging.conversation import ConversationSession
from ..messaging.router import EventRouter
from ..platform.client import CircuitRestClient
from ..util.log_setup import configure_logging
from .events_endpoint import EventEndpoint

logger = logging.getLogger(__name__)

_QUIET_PATHS = frozenset({"/health"})


class QuietAccessLogger(AbstractAccessLogger):
    """Demotes health-check log entries to DEBUG."""

    def log(self, request: web.BaseRequest, response: web.StreamResponse, time: float) -> None:
        level = logging.DEBUG if request.path in _QUIET_PATHS else logging.INFO
        self.logger.log(
            level,
            "%s %s %s %s %.3fs",
            request.remote,
            request.method,
            request.path,
            response.status,
            time,
        )


class AppFactory:
    """Builds the bot application with all dependencies wired."""

    def __init__(self, settings: Settings | None = None, client: CircuitRestClient | None = None) -> None:
        self._settings = settings or cfg
        s = self._settings
        self.client = client or CircuitRestClient(
            s.circuit_domain, s.circuit_client_id, s.circuit_client_secret, scope=s.circuit_scope,
        )
        self.context = SessionContext()
        self.conversations = ConversationSession(
            self.client, self.context,
            conversation_id=s.target_conv_id, owner_email=s.bot_owner_email,
        )
        self.channel = HttpSignalChannel(s.media_host_url, s.stream_path)
        self.router = EventRouter(self.client, self.context, self.conversations, Streamer(self.client, self.channel))
        self.robot = Robot(self.client, self.context, self.conversations, s)

    async def build(self) -> web.Application:
        self._settings.ensure_dirs()
        app = web.Application()
        EventEndpoint(self.router, self._settings.events_path).register(app.router)
        app.router.add_get("/health", self._health)
        app.on_startup.append(self._on_startup)
        app.on_cleanup.append(self._on_cleanup)
        return app

    async def _on_startup(self, _app: web.Application) -> None:
        try:
            await self.robot.start()
        except Exception as exc:
            Robot.terminate(exc)

    async def _on_cleanup(self, _app: web.Application) -> None:
        await self.router.drain()
        await self.robot.stop()
        await self.channel.close()

    async def _health(self, _req: web.Request) -> web.Response:
        identity = self.context.identity
        conv = self.conversations.cached
        return web.json_response({
            "status": "ok",
            "version": __version__,
            "user_id": identity.user_id if identity else None,
            "conversation_id": conv.conversation_id if conv else None,
        })


async def create_app() -> web.Application:
    return await AppFactory().build()


def main() -> None:
    configure_logging(cfg.log_level, cfg.sdk_log_level)
    if not cfg.credentials_configured:
        logger.error("CIRCUIT_CLIENT_ID and CIRCUIT_CLIENT_SECRET must be set")
        raise SystemExit(1)
    logger.info("Starting streambot %s on port %d ...", __version__, cfg.bot_port)
    logger.debug("Settings: %s", cfg.redacted())
    web.run_app(create_app(), host="0.0.0.0", port=cfg.bot_port, access_log_class=QuietAccessLogger)


if __name__ == "__main__":
    main()
