"""Chat messaging pipeline -- mention filter, command grammar, router."""

from .context import SessionContext
from .conversation import ConversationSession
from .grammar import Command, CommandName, build_help, parse
from .mention import MentionFilter
from .router import EventRouter

__all__ = [
    "Command",
    "CommandName",
    "ConversationSession",
    "EventRouter",
    "MentionFilter",
    "SessionContext",
    "build_help",
    "parse",
]
