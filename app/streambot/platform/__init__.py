"""Collaboration-platform boundary: client, data model, events, errors."""

from .client import CircuitRestClient, PlatformClient
from .events import InboundEvent, classify
from .models import Conversation, Identity, MessageItem, TextItem

__all__ = [
    "CircuitRestClient",
    "Conversation",
    "Identity",
    "InboundEvent",
    "MessageItem",
    "PlatformClient",
    "TextItem",
    "classify",
]
