"""Tests for the command grammar."""

from __future__ import annotations

import pytest

from app.streambot.messaging.grammar import COMMANDS, Command, CommandName, build_help, normalize, parse


class TestParse:
    @pytest.mark.parametrize("text,name", [
        ("status", CommandName.STATUS),
        ("version", CommandName.VERSION),
        ("help", CommandName.HELP),
        ("start-stream", CommandName.START_STREAM),
        ("stop-stream", CommandName.STOP_STREAM),
    ])
    def test_known_commands(self, text: str, name: CommandName) -> None:
        assert parse(text) == Command(name)

    def test_case_insensitive(self) -> None:
        assert parse("STATUS").name is CommandName.STATUS
        assert parse("Start-Stream").name is CommandName.START_STREAM

    def test_whitespace_is_ignored(self) -> None:
        assert parse("  status  ") == parse("status")
        assert parse("\tstatus\n") == parse("status")

    def test_markup_remnants(self) -> None:
        assert parse("<p>status</p>") == Command(CommandName.STATUS)
        assert parse("&nbsp;help<br/>") == Command(CommandName.HELP)
        assert parse("<b>version</b>") == Command(CommandName.VERSION)

    def test_underscore_alias(self) -> None:
        assert parse("stop_stream").name is CommandName.STOP_STREAM

    def test_free_text_parameter(self) -> None:
        cmd = parse("help  start-stream   please")
        assert cmd.name is CommandName.HELP
        assert cmd.parameters == ("start-stream please",)

    def test_no_parameter(self) -> None:
        assert parse("status").parameters == ()

    def test_unrecognized_carries_original_text(self) -> None:
        cmd = parse(" dance <b>now</b>")
        assert cmd.name is CommandName.UNRECOGNIZED
        assert cmd.parameters == (" dance <b>now</b>",)

    def test_empty_is_unrecognized(self) -> None:
        assert parse("") == Command(CommandName.UNRECOGNIZED, ("",))
        assert parse("<br/>").name is CommandName.UNRECOGNIZED

    def test_prefix_is_not_a_command(self) -> None:
        assert parse("statusreport").name is CommandName.UNRECOGNIZED


class TestNormalize:
    def test_collapses_and_unescapes(self) -> None:
        assert normalize("a&amp;b \xa0 <i>c</i>") == "a&b c"


class TestHelp:
    def test_lists_every_command_with_description(self) -> None:
        text = build_help()
        for spec in COMMANDS:
            assert spec.name.value in text
            assert spec.description in text

    def test_does_not_list_fallback(self) -> None:
        assert "unrecognized" not in build_help()
