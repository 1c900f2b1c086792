"""Platform data model: identities, conversations, items and calls."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

RICH_CONTENT = "RICH"


class PresenceState(StrEnum):
    AVAILABLE = "AVAILABLE"
    BUSY = "BUSY"
    AWAY = "AWAY"
    OFFLINE = "OFFLINE"


@dataclass(frozen=True)
class Identity:
    user_id: str
    display_name: str = ""
    email: str = ""

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> Identity:
        name = data.get("displayName") or " ".join(
            p for p in (data.get("firstName"), data.get("lastName")) if p
        )
        return cls(
            user_id=data.get("userId", ""),
            display_name=name,
            email=data.get("emailAddress", ""),
        )


@dataclass(frozen=True)
class Conversation:
    conversation_id: str
    rtc_session_id: str = ""
    type: str = ""

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> Conversation:
        return cls(
            conversation_id=data.get("convId", ""),
            rtc_session_id=data.get("rtcSessionId", ""),
            type=data.get("type", ""),
        )


@dataclass(frozen=True)
class MessageItem:
    item_id: str
    conversation_id: str
    creator_id: str = ""
    parent_item_id: str = ""
    content: str | None = None

    @property
    def thread_id(self) -> str:
        """Id replies should hang off: the thread root when this item is itself a reply."""
        return self.parent_item_id or self.item_id

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> MessageItem:
        text = data.get("text")
        return cls(
            item_id=data.get("itemId", ""),
            conversation_id=data.get("convId", ""),
            creator_id=data.get("creatorId", ""),
            parent_item_id=data.get("parentItemId") or "",
            content=text.get("content") if isinstance(text, dict) else None,
        )


@dataclass(frozen=True)
class CallStatus:
    conversation_id: str
    state: str = ""
    call_id: str = ""
    reason: str = ""

    @property
    def started(self) -> bool:
        return self.state.lower() == "started"

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> CallStatus:
        return cls(
            conversation_id=data.get("convId", ""),
            state=data.get("state", ""),
            call_id=data.get("callId", ""),
            reason=data.get("reason", ""),
        )


@dataclass
class TextItem:
    """Outbound rich-text message."""

    content: str
    parent_id: str | None = None
    subject: str | None = None
    content_type: str = RICH_CONTENT
    attachments: list[Any] = field(default_factory=list)

    def to_form(self) -> dict[str, str]:
        form = {"content": self.content, "contentType": self.content_type}
        if self.subject:
            form["subject"] = self.subject
        return form
