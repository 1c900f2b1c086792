"""Bot startup sequence: logon, profile, greeting.

Everything here runs once before the bot starts handling events. A
failure at any step is fatal: the process logs it and exits with
status 1.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import NoReturn

from .config.settings import Settings
from .messaging.context import SessionContext
from .messaging.conversation import ConversationSession
from .messaging.replies import build_text_item
from .platform.client import DEFAULT_EVENT_FILTERS, PlatformClient
from .platform.models import PresenceState

logger = logging.getLogger(__name__)


class Robot:
    def __init__(
        self,
        client: PlatformClient,
        context: SessionContext,
        conversations: ConversationSession,
        settings: Settings,
    ) -> None:
        self._client = client
        self._context = context
        self._conversations = conversations
        self._settings = settings

    async def start(self) -> None:
        """Run the startup sequence. Raises on the first failing step."""
        await self.init_bot()
        await self.logon_bot()
        await self.update_user_data()
        await self.say_hi()

    async def init_bot(self) -> None:
        logger.info("[robot] initialize robot")

    async def logon_bot(self) -> None:
        logger.info("[robot] logging on with client id %s", self._settings.circuit_client_id)
        self._context.identity = await self._client.logon()
        logger.info("[robot] logged on as %s", self._context.identity.user_id)

        subscribe = getattr(self._client, "subscribe_events", None)
        if self._settings.webhook_url and subscribe is not None:
            url = self._settings.webhook_url.rstrip("/") + self._settings.events_path
            await subscribe(url, DEFAULT_EVENT_FILTERS)

        if self._settings.logon_settle_seconds > 0:
            await asyncio.sleep(self._settings.logon_settle_seconds)

    async def update_user_data(self) -> None:
        s = self._settings
        logger.info(
            "[robot] update user %s data with first name %r and last name %r",
            self._context.user_id, s.bot_first_name, s.bot_last_name,
        )
        await self._client.update_user(
            firstName=s.bot_first_name,
            lastName=s.bot_last_name,
            jobTitle=s.bot_job_title,
            company=s.bot_company,
        )
        await self._client.set_presence(PresenceState.AVAILABLE)

    async def say_hi(self) -> None:
        logger.info("[robot] say hi")
        conv = await self._conversations.resolve()
        item = build_text_item(None, f"Hi from {self._settings.bot_nick_name}", "I am ready")
        await self._client.add_text_item(conv.conversation_id, item)

    async def stop(self) -> None:
        unsubscribe = getattr(self._client, "unsubscribe_events", None)
        if unsubscribe is not None:
            await unsubscribe()
        close = getattr(self._client, "close", None)
        if close is not None:
            await close()

    @staticmethod
    def terminate(error: BaseException) -> NoReturn:
        logger.error("[robot] robot failed: %s", error, exc_info=error)
        sys.exit(1)
