"""Mention detection and stripping for rich-text message content.

A mention is the editor's ``<span class="mention" ...>@Name</span>``
markup. Token boundaries:

* the mention is the whole span element, matched lazily up to the first
  ``</span>``;
* the mentioned name is the span's text with tags removed, entities
  unescaped, surrounding whitespace and one leading ``@`` dropped;
* the bot is addressed when a mentioned name contains its display name as
  a whole word, case-insensitively;
* the separator after a mention is exactly one whitespace character or one
  ``&nbsp;`` entity.
"""

from __future__ import annotations

import html
import re
from collections.abc import Callable

from ..platform.models import Identity

_MENTION_RE = re.compile(
    r"<span\b[^>]*\bclass\s*=\s*[\"'][^\"']*\bmention\b[^\"']*[\"'][^>]*>(?P<name>.*?)</span\s*>",
    re.IGNORECASE | re.DOTALL,
)
_SEPARATOR_RE = re.compile(r"&nbsp;|&#160;|\s", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]*>")


def _mentioned_name(inner: str) -> str:
    name = html.unescape(_TAG_RE.sub("", inner)).replace("\xa0", " ").strip()
    return name[1:].lstrip() if name.startswith("@") else name


class MentionFilter:
    """Decides whether a message addresses the bot, and strips the address."""

    def __init__(self, identity: Callable[[], Identity | None]) -> None:
        self._identity = identity

    def mentions(self, raw_text: str) -> list[str]:
        return [_mentioned_name(m.group("name")) for m in _MENTION_RE.finditer(raw_text)]

    def is_addressed_to_bot(self, raw_text: str) -> bool:
        me = self._identity()
        if me is None or not me.display_name:
            return False
        wanted = re.compile(rf"(?<!\w){re.escape(me.display_name.strip())}(?!\w)", re.IGNORECASE)
        return any(wanted.search(name) for name in self.mentions(raw_text))

    @staticmethod
    def strip_mention(raw_text: str) -> str:
        match = _MENTION_RE.search(raw_text)
        if match is None:
            return raw_text
        rest = raw_text[match.end():]
        sep = _SEPARATOR_RE.match(rest)
        return rest[sep.end():] if sep else rest
