"""Platform event endpoint -- POST /api/events."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from aiohttp import web

from ..platform.events import classify

if TYPE_CHECKING:
    from ..messaging.router import EventRouter

logger = logging.getLogger(__name__)


class EventEndpoint:
    """Accepts event deliveries and hands them to the router without waiting."""

    def __init__(self, router: EventRouter, path: str = "/api/events") -> None:
        self._router = router
        self._path = path

    def register(self, router: web.UrlDispatcher) -> None:
        router.add_post(self._path, self.handle)
        router.add_get(self._path, self._ping)

    async def _ping(self, _req: web.Request) -> web.Response:
        return web.json_response({"status": "ok", "endpoint": self._path, "method": "POST required"})

    async def handle(self, req: web.Request) -> web.Response:
        raw_body = await req.read()
        try:
            body = json.loads(raw_body)
        except ValueError as exc:
            logger.error("[events] invalid JSON body: %s | raw=%s", exc, raw_body[:200])
            return web.json_response({"status": "error", "message": f"Invalid JSON: {exc}"}, status=400)

        deliveries = body if isinstance(body, list) else [body]
        if not all(isinstance(d, dict) for d in deliveries):
            return web.json_response({"status": "error", "message": "Events must be JSON objects"}, status=400)

        for payload in deliveries:
            self._router.dispatch(classify(payload))
        return web.json_response({"status": "accepted", "count": len(deliveries)})
