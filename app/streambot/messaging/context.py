"""Mutable state the bot carries between events."""

from __future__ import annotations

from dataclasses import dataclass

from ..platform.models import Conversation, Identity


@dataclass
class SessionContext:
    """Identity and conversation of the running bot.

    Owned by the router and handed to its collaborators; writes are
    last-write-wins.
    """

    identity: Identity | None = None
    conversation: Conversation | None = None

    @property
    def user_id(self) -> str:
        return self.identity.user_id if self.identity else ""

    def is_own(self, creator_id: str) -> bool:
        return bool(creator_id) and creator_id == self.user_id
