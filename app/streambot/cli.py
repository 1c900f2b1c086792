"""Interactive console -- talk to the router without a platform account.

Plain input is posted as a new message that mentions the bot. Stream
signals are printed instead of being sent to a media host.
"""

from __future__ import annotations

import asyncio
import itertools

from prompt_toolkit import PromptSession
from prompt_toolkit.formatted_text import HTML
from prompt_toolkit.history import FileHistory
from rich.console import Console

from . import __version__
from .calls.signals import QueueChannel
from .calls.streamer import Streamer
from .config.settings import cfg
from .messaging.context import SessionContext
from .messaging.conversation import ConversationSession
from .messaging.router import EventRouter
from .platform.events import classify
from .platform.models import Conversation, Identity, PresenceState, TextItem
from .util.log_setup import configure_logging

console = Console()

CONSOLE_CONV_ID = "console-conv"
CONSOLE_USER_ID = "console-user"


class ConsolePlatform:
    """In-memory platform: one conversation, replies printed to the terminal."""

    def __init__(self, display_name: str) -> None:
        self.identity = Identity(user_id="console-bot", display_name=display_name)
        self.conversation = Conversation(CONSOLE_CONV_ID, rtc_session_id="console-rtc", type="DIRECT")
        self.sent: list[TextItem] = []

    async def logon(self) -> Identity:
        return self.identity

    async def update_user(self, **profile: str) -> None:
        pass

    async def set_presence(self, state: PresenceState) -> None:
        pass

    async def get_conversation_by_id(self, conversation_id: str) -> Conversation | None:
        return self.conversation if conversation_id == CONSOLE_CONV_ID else None

    async def get_direct_conversation_with_user(self, email: str) -> Conversation | None:
        return self.conversation

    async def create_direct_conversation(self, email: str) -> Conversation | None:
        return self.conversation

    async def add_text_item(self, conversation_id: str, item: TextItem) -> None:
        self.sent.append(item)
        subject = f"[bold]{item.subject}[/bold]\n" if item.subject else ""
        console.print(f"[cyan]bot >[/cyan] {subject}{item.content}")


def mention(display_name: str, text: str) -> str:
    return f'<span class="mention" abbr="console-bot">@{display_name}</span> {text}'


async def _main() -> None:
    cfg.ensure_dirs()
    name = cfg.bot_nick_name
    platform = ConsolePlatform(name)
    context = SessionContext(identity=await platform.logon())
    conversations = ConversationSession(platform, context, conversation_id=CONSOLE_CONV_ID)
    channel = QueueChannel()
    router = EventRouter(platform, context, conversations, Streamer(platform, channel))

    console.print(
        f"[bold green]streambot[/bold green] {__version__} console as [bold]{name}[/bold]\n"
        "Type a command ([bold]help[/bold]), [bold]/raw <html>[/bold], [bold]/edit <text>[/bold], "
        "[bold]/call[/bold] or [bold]/quit[/bold].\n"
    )

    history_path = cfg.data_dir / ".console_history"
    prompt_session: PromptSession[str] = PromptSession(history=FileHistory(str(history_path)))
    item_ids = itertools.count(1)

    while True:
        try:
            user_input = await asyncio.to_thread(prompt_session.prompt, HTML("<b>you &gt;</b> "))
        except (EOFError, KeyboardInterrupt):
            break

        text = user_input.strip()
        if not text:
            continue
        if text.lower() in ("/quit", "/exit"):
            break

        item = {"itemId": f"item-{next(item_ids)}", "convId": CONSOLE_CONV_ID, "creatorId": CONSOLE_USER_ID}
        if text.lower() == "/call":
            payload = {"type": "callStatus", "call": {"convId": CONSOLE_CONV_ID, "state": "Started"}}
        elif text.startswith("/raw "):
            payload = {"type": "itemAdded", "item": {**item, "text": {"content": text[5:]}}}
        elif text.startswith("/edit "):
            content = f"{mention(name, 'previous text')}<hr/>{mention(name, text[6:])}"
            payload = {"type": "itemUpdated", "item": {**item, "text": {"content": content}}}
        else:
            payload = {"type": "itemAdded", "item": {**item, "text": {"content": mention(name, text)}}}

        await router.route(classify(payload))
        while channel.pending:
            signal = await channel.receive()
            console.print(f"[magenta]signal >[/magenta] {signal.command} rtc={signal.rtc_session_id}")

    console.print("[dim]Goodbye.[/dim]")


def main() -> None:
    # Log lines would interleave with the prompt; keep them quiet unless debugging.
    configure_logging(cfg.log_level if cfg.log_level == "DEBUG" else "WARNING", cfg.sdk_log_level)
    try:
        asyncio.run(_main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
