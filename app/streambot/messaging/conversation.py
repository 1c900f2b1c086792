"""Resolution of the single conversation the bot talks in."""

from __future__ import annotations

import asyncio
import logging

from ..platform.client import PlatformClient
from ..platform.errors import ConversationNotFound
from ..platform.models import Conversation
from .context import SessionContext

logger = logging.getLogger(__name__)


class ConversationSession:
    """Resolves the bot's conversation once and caches it in the context.

    A configured conversation id must exist. Without one, the direct
    conversation with the owner is looked up and created when missing.
    """

    def __init__(
        self,
        client: PlatformClient,
        context: SessionContext,
        *,
        conversation_id: str = "",
        owner_email: str = "",
    ) -> None:
        self._client = client
        self._context = context
        self._conversation_id = conversation_id
        self._owner_email = owner_email
        self._lock = asyncio.Lock()

    @property
    def cached(self) -> Conversation | None:
        return self._context.conversation

    async def resolve(self) -> Conversation:
        if self._context.conversation is not None:
            return self._context.conversation
        async with self._lock:
            if self._context.conversation is None:
                self._context.conversation = await self._lookup()
        return self._context.conversation

    async def _lookup(self) -> Conversation:
        if self._conversation_id:
            conv = await self._client.get_conversation_by_id(self._conversation_id)
            if conv is None:
                raise ConversationNotFound(f"conversation with id {self._conversation_id} does not exist")
            logger.info("[conversation] using configured conversation %s", conv.conversation_id)
            return conv

        if not self._owner_email:
            raise ConversationNotFound("neither a conversation id nor an owner email is configured")

        conv = await self._client.get_direct_conversation_with_user(self._owner_email)
        if conv is not None:
            logger.info("[conversation] direct conversation %s exists", conv.conversation_id)
            return conv

        logger.info("[conversation] no direct conversation with %s, creating one", self._owner_email)
        conv = await self._client.create_direct_conversation(self._owner_email)
        if conv is None:
            raise ConversationNotFound(f"could not create a direct conversation with {self._owner_email}")
        return conv
