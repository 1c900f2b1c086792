"""Event router -- classifies platform events and runs chat commands.

Every inbound event goes through :meth:`EventRouter.dispatch`, which
schedules :meth:`EventRouter.route` and returns immediately. Handlers for
consecutive events may therefore overlap.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass

from .. import __version__
from ..calls.signals import StreamCommand
from ..calls.streamer import Streamer
from ..platform.client import PlatformClient
from ..platform.events import (
    CallStatusEvent,
    EventCategory,
    InboundEvent,
    ItemEvent,
    UserUpdatedEvent,
)
from .context import SessionContext
from .conversation import ConversationSession
from .grammar import Command, CommandName, build_help, parse
from .mention import MentionFilter
from .replies import build_text_item, send_reply

logger = logging.getLogger(__name__)

# Edits are appended to the item's content after an <hr/>.
_UPDATE_SEPARATOR_RE = re.compile(r"<hr\s*/?>", re.IGNORECASE)


def latest_edit(content: str) -> str:
    return _UPDATE_SEPARATOR_RE.split(content)[-1]


@dataclass
class CommandContext:
    command: Command
    text: str
    conversation_id: str
    item_id: str


class EventRouter:
    _EVENT_HANDLERS: dict[EventCategory, str] = {
        EventCategory.ITEM_ADDED: "_on_item_added",
        EventCategory.ITEM_UPDATED: "_on_item_updated",
        EventCategory.CALL_STATUS: "_on_call_status",
        EventCategory.USER_UPDATED: "_on_user_updated",
    }

    _COMMAND_HANDLERS: dict[CommandName, str] = {
        CommandName.STATUS: "_cmd_status",
        CommandName.VERSION: "_cmd_version",
        CommandName.HELP: "_cmd_help",
        CommandName.START_STREAM: "_cmd_start_stream",
        CommandName.STOP_STREAM: "_cmd_stop_stream",
        CommandName.UNRECOGNIZED: "_cmd_unrecognized",
    }

    def __init__(
        self,
        client: PlatformClient,
        context: SessionContext,
        conversations: ConversationSession,
        streamer: Streamer,
        *,
        version: str = __version__,
    ) -> None:
        self._client = client
        self.context = context
        self._conversations = conversations
        self._streamer = streamer
        self._version = version
        self.mentions = MentionFilter(lambda: self.context.identity)
        self._tasks: set[asyncio.Task[None]] = set()

    # -- entry points -------------------------------------------------------

    def dispatch(self, event: InboundEvent) -> asyncio.Task[None]:
        task = asyncio.create_task(self.route(event))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for every dispatched event to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def route(self, event: InboundEvent) -> None:
        logger.info("[router] %s event received", event.type or event.category)
        logger.debug("[router] %r", event)
        handler_name = self._EVENT_HANDLERS.get(event.category)
        if handler_name is None:
            logger.info("[router] unhandled event %s", event.type)
            return
        try:
            await getattr(self, handler_name)(event)
        except Exception as exc:
            logger.error("[router] %s handler failed: %s", event.category, exc, exc_info=True)

    async def process_command(self, conversation_id: str, item_id: str, text: str) -> Command | None:
        logger.info("[router] processing [%s]", text)
        if not self.mentions.is_addressed_to_bot(text):
            logger.info("[router] ignoring message: it is not for me")
            return None
        stripped = self.mentions.strip_mention(text)
        command = parse(stripped)
        logger.info("[router] interpreting [%s] as %s %s", stripped, command.name, list(command.parameters))
        ctx = CommandContext(command=command, text=stripped, conversation_id=conversation_id, item_id=item_id)
        await getattr(self, self._COMMAND_HANDLERS[command.name])(ctx)
        return command

    # -- event handlers -----------------------------------------------------

    async def _on_item_added(self, event: ItemEvent) -> None:
        item = event.item
        if not item.content or self.context.is_own(item.creator_id):
            return
        logger.info("[router] itemAdded %s: [%s]", item.item_id, item.content)
        await self.process_command(item.conversation_id, item.thread_id, item.content)

    async def _on_item_updated(self, event: ItemEvent) -> None:
        item = event.item
        if not item.content or self.context.is_own(item.creator_id):
            return
        last_part = latest_edit(item.content)
        logger.info("[router] itemUpdated %s: [%s]", item.item_id, last_part)
        await self.process_command(item.conversation_id, item.thread_id, last_part)

    async def _on_call_status(self, event: CallStatusEvent) -> None:
        call = event.call
        logger.info("[router] call in %s is %s", call.conversation_id, call.state)
        if call.started:
            await self._streamer.start(call.conversation_id or await self._default_conversation_id())

    async def _on_user_updated(self, event: UserUpdatedEvent) -> None:
        self.context.identity = event.user
        logger.info("[router] identity is now %s (%s)", event.user.user_id, event.user.display_name)

    # -- command handlers ---------------------------------------------------

    async def _cmd_status(self, ctx: CommandContext) -> None:
        await self._reply(ctx, "Status <b>On</b>")

    async def _cmd_version(self, ctx: CommandContext) -> None:
        await self._reply(ctx, f"Version: <b>{self._version}</b>")

    async def _cmd_help(self, ctx: CommandContext) -> None:
        logger.info("[router] displaying help")
        await self._reply(ctx, build_help(), subject="HELP")

    async def _cmd_start_stream(self, ctx: CommandContext) -> None:
        await self._streamer.stream(ctx.conversation_id or await self._default_conversation_id(), StreamCommand.START)

    async def _cmd_stop_stream(self, ctx: CommandContext) -> None:
        await self._streamer.stream(ctx.conversation_id or await self._default_conversation_id(), StreamCommand.STOP)

    async def _cmd_unrecognized(self, ctx: CommandContext) -> None:
        logger.info("[router] I do not understand [%s]", ctx.text)
        await self._reply(ctx, f"I do not understand <b>[{ctx.text}]</b>")

    # -- helpers ------------------------------------------------------------

    async def _default_conversation_id(self) -> str:
        return (await self._conversations.resolve()).conversation_id

    async def _reply(self, ctx: CommandContext, content: str, *, subject: str | None = None) -> bool:
        conversation_id = ctx.conversation_id or await self._default_conversation_id()
        item = build_text_item(ctx.item_id, subject, content)
        return await send_reply(self._client, conversation_id, item)
