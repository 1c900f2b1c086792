"""Inbound event classification.

Events arrive either in the SDK's shape (``{"type": "itemAdded", "item":
{...}}``) or as REST webhook deliveries (``{"type":
"CONVERSATION.ADD_ITEM", "item": {...}}``). Both are folded into the same
small set of categories here so the router never looks at raw type names.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from .models import CallStatus, Identity, MessageItem

logger = logging.getLogger(__name__)


class EventCategory(StrEnum):
    ITEM_ADDED = "itemAdded"
    ITEM_UPDATED = "itemUpdated"
    CALL_STATUS = "callStatus"
    USER_UPDATED = "userUpdated"
    UNCLASSIFIED = "unclassified"


_TYPE_TO_CATEGORY: dict[str, EventCategory] = {
    "itemAdded": EventCategory.ITEM_ADDED,
    "CONVERSATION.ADD_ITEM": EventCategory.ITEM_ADDED,
    "itemUpdated": EventCategory.ITEM_UPDATED,
    "CONVERSATION.UPDATE_ITEM": EventCategory.ITEM_UPDATED,
    "callStatus": EventCategory.CALL_STATUS,
    "RTC.CALL_STATUS": EventCategory.CALL_STATUS,
    "userUpdated": EventCategory.USER_UPDATED,
    "USER.USER_UPDATED": EventCategory.USER_UPDATED,
}

# Payload key each category needs; a delivery missing it is unclassified.
_PAYLOAD_KEY: dict[EventCategory, str] = {
    EventCategory.ITEM_ADDED: "item",
    EventCategory.ITEM_UPDATED: "item",
    EventCategory.CALL_STATUS: "call",
    EventCategory.USER_UPDATED: "user",
}


@dataclass(frozen=True)
class ItemEvent:
    category: EventCategory
    type: str
    item: MessageItem


@dataclass(frozen=True)
class CallStatusEvent:
    type: str
    call: CallStatus
    category: EventCategory = field(default=EventCategory.CALL_STATUS, init=False)


@dataclass(frozen=True)
class UserUpdatedEvent:
    type: str
    user: Identity
    category: EventCategory = field(default=EventCategory.USER_UPDATED, init=False)


@dataclass(frozen=True)
class UnclassifiedEvent:
    type: str
    category: EventCategory = field(default=EventCategory.UNCLASSIFIED, init=False)


InboundEvent = ItemEvent | CallStatusEvent | UserUpdatedEvent | UnclassifiedEvent


def classify(payload: dict[str, Any]) -> InboundEvent:
    """Turn a raw event payload into a typed :data:`InboundEvent`."""
    etype = str(payload.get("type") or "")
    category = _TYPE_TO_CATEGORY.get(etype, EventCategory.UNCLASSIFIED)
    if category is EventCategory.UNCLASSIFIED:
        return UnclassifiedEvent(type=etype)

    data = payload.get(_PAYLOAD_KEY[category])
    if not isinstance(data, dict):
        logger.warning("[events] %s event without %r payload", etype, _PAYLOAD_KEY[category])
        return UnclassifiedEvent(type=etype)

    if category is EventCategory.CALL_STATUS:
        return CallStatusEvent(type=etype, call=CallStatus.from_payload(data))
    if category is EventCategory.USER_UPDATED:
        return UserUpdatedEvent(type=etype, user=Identity.from_payload(data))
    return ItemEvent(category=category, type=etype, item=MessageItem.from_payload(data))
