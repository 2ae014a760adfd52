from __future__ import annotations

import pytest

from pyhasp.topics import StateTopic, build_command_topic, parse_state_topic, state_subscription


def test_parse_dot_attribute() -> None:
    assert parse_state_topic("hasp/plate1/state/p1b1.val", "hasp") == StateTopic("plate1", "p1b1", "val")


def test_parse_slash_attribute() -> None:
    assert parse_state_topic("hasp/plate1/state/p1b1/bri", "hasp") == StateTopic("plate1", "p1b1", "bri")


def test_parse_without_attribute() -> None:
    assert parse_state_topic("hasp/plate1/state/idle", "hasp") == StateTopic("plate1", "idle", "")


def test_slash_takes_priority_over_dot() -> None:
    parsed = parse_state_topic("hasp/plate1/state/p1.b1/text", "hasp")
    assert parsed == StateTopic("plate1", "p1.b1", "text")


def test_last_separator_wins() -> None:
    assert parse_state_topic("hasp/plate1/state/a/b/c", "hasp") == StateTopic("plate1", "a/b", "c")
    assert parse_state_topic("hasp/plate1/state/a.b.c", "hasp") == StateTopic("plate1", "a.b", "c")


def test_trailing_slash_falls_back_to_dot_split() -> None:
    assert parse_state_topic("hasp/plate1/state/p1b1.val/", "hasp") == StateTopic("plate1", "p1b1", "val")


def test_dots_are_trimmed() -> None:
    assert parse_state_topic("hasp/plate1/state/p1b1../.val", "hasp") == StateTopic("plate1", "p1b1", "val")


def test_empty_rest_parses_with_empty_dp() -> None:
    assert parse_state_topic("hasp/plate1/state/", "hasp") == StateTopic("plate1", "", "")


@pytest.mark.parametrize(
    "topic",
    [
        "other/plate1/state/p1b1",
        "hasp/plate1/command/p1b1",
        "hasp/plate1/state",
        "hasp",
        "",
    ],
)
def test_foreign_or_malformed_topics_are_rejected(topic: str) -> None:
    assert parse_state_topic(topic, "hasp") is None


def test_build_command_topic_strips_separators() -> None:
    assert build_command_topic("hasp", "plate1", "p1/b1+", ".bri") == "hasp/plate1/command/p1b1.bri"


def test_build_command_topic_without_suffix() -> None:
    assert build_command_topic("hasp", "plate1", "p1b1", "") == "hasp/plate1/command/p1b1"
    assert build_command_topic("hasp", "plate1", "p1b1", "...") == "hasp/plate1/command/p1b1"
    assert build_command_topic("hasp", "plate1", "p1b1", None) == "hasp/plate1/command/p1b1"


def test_build_command_topic_cleans_suffix() -> None:
    assert build_command_topic("hasp", "plate1", " p1b1 ", " ..te/xt ") == "hasp/plate1/command/p1b1.text"


@pytest.mark.parametrize(
    ("plate", "dp", "suffix"),
    [
        ("plate1", "p1b1", "val"),
        ("plate1", "p1b1", "bri"),
        ("kitchen", "p2b10", "text"),
        ("kitchen", "backlight", ""),
    ],
)
def test_command_topic_parses_back_as_state_topic(plate: str, dp: str, suffix: str) -> None:
    command = build_command_topic("hasp", plate, dp, suffix)
    parsed = parse_state_topic(command.replace("/command/", "/state/"), "hasp")
    assert parsed == StateTopic(plate, dp, suffix)


def test_state_subscription() -> None:
    assert state_subscription("hasp") == "hasp/+/state/#"
