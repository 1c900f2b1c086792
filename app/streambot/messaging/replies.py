"""Outbound reply construction and delivery."""

from __future__ import annotations

import logging
from typing import Any

from ..platform.client import PlatformClient
from ..platform.errors import SendFailure
from ..platform.models import TextItem

logger = logging.getLogger(__name__)


def build_text_item(
    parent_id: str | None,
    subject: str | None,
    content: str,
    attachment: Any = None,
) -> TextItem:
    return TextItem(
        content=content,
        parent_id=parent_id or None,
        subject=subject,
        attachments=[attachment] if attachment else [],
    )


async def send_reply(client: PlatformClient, conversation_id: str, item: TextItem) -> bool:
    """Post *item*; failures are logged and the reply is dropped."""
    try:
        await client.add_text_item(conversation_id, item)
    except SendFailure as exc:
        logger.warning("[reply] dropped reply to %s: %s", conversation_id, exc)
        return False
    return True
