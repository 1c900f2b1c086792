"""Command grammar for mention-stripped chat utterances.

::

    utterance := WS* word (WS+ parameter)? WS*
    word      := non-whitespace run, matched case-insensitively, ``_`` == ``-``
    parameter := remainder of the utterance, one free-text value

Before tokenizing, markup left over from rich-text editors is removed:
tags are dropped, entities unescaped and non-breaking spaces turned into
plain spaces.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass
from enum import StrEnum

_TAG_RE = re.compile(r"<[^>]*>")
_WS_RE = re.compile(r"\s+")


class CommandName(StrEnum):
    STATUS = "status"
    VERSION = "version"
    HELP = "help"
    START_STREAM = "start-stream"
    STOP_STREAM = "stop-stream"
    UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True)
class Command:
    name: CommandName
    parameters: tuple[str, ...] = ()


@dataclass(frozen=True)
class CommandSpec:
    name: CommandName
    description: str


COMMANDS: tuple[CommandSpec, ...] = (
    CommandSpec(CommandName.STATUS, "Show whether the bot is on"),
    CommandSpec(CommandName.VERSION, "Show the running version"),
    CommandSpec(CommandName.HELP, "List the commands the bot understands"),
    CommandSpec(CommandName.START_STREAM, "Join the conversation's call and start recording its audio"),
    CommandSpec(CommandName.STOP_STREAM, "Leave the call and save the recording"),
)

_BY_WORD: dict[str, CommandName] = {spec.name.value: spec.name for spec in COMMANDS}


def normalize(text: str) -> str:
    """Plain-text form of *text*: no tags, no entities, single spaces, trimmed."""
    plain = html.unescape(_TAG_RE.sub(" ", text)).replace("\xa0", " ")
    return _WS_RE.sub(" ", plain).strip()


def parse(text: str) -> Command:
    plain = normalize(text)
    word, _, rest = plain.partition(" ")
    name = _BY_WORD.get(word.lower().replace("_", "-"))
    if name is None:
        return Command(CommandName.UNRECOGNIZED, (text,))
    return Command(name, (rest,) if rest else ())


def build_help() -> str:
    lines = [f"<b>{spec.name.value}</b>: {spec.description}" for spec in COMMANDS]
    return "Commands:<br/>" + "<br/>".join(lines)
