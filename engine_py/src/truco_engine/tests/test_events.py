"""
Tests for websocket event parsing and rule configuration.
"""

import pytest
from pydantic import ValidationError
from truco_engine.rules import RuleConfig, create_rules, default_rules, rules_from_env
from truco_engine.ws.events import (
    CreateMatchEvent,
    ErrorCode,
    JoinEvent,
    PlayCardEvent,
    ReconnectEvent,
    StartEvent,
    create_error_event,
    parse_inbound_event,
    to_error_code,
)


def test_parse_create_match():
    event = parse_inbound_event({"type": "create_match"})
    assert isinstance(event, CreateMatchEvent)
    assert event.mode == "1v1"
    assert event.name is None

    event = parse_inbound_event({"type": "create_match", "mode": "2v2", "name": "Alice"})
    assert event.mode == "2v2"


def test_parse_join_and_reconnect():
    event = parse_inbound_event({"type": "join", "match_id": "ABC", "name": "  Alice "})
    assert isinstance(event, JoinEvent)
    assert event.name == "Alice"

    event = parse_inbound_event({"type": "reconnect", "match_id": "ABC", "name": "Alice"})
    assert isinstance(event, ReconnectEvent)


def test_parse_match_scoped_events():
    event = parse_inbound_event({"type": "play_card", "card_id": "5H"})
    assert isinstance(event, PlayCardEvent)
    assert event.match_id is None

    event = parse_inbound_event({"type": "start", "match_id": "ABC", "seed": 7})
    assert isinstance(event, StartEvent)
    assert event.seed == 7


@pytest.mark.parametrize("payload", [
    ["not", "an", "object"],
    {},
    {"type": "shuffle"},
    {"type": "create_match", "mode": "3v3"},
    {"type": "join", "match_id": "ABC"},
    {"type": "join", "match_id": "ABC", "name": "   "},
    {"type": "play_card"},
    {"type": "play_card", "card_id": "TOOLONG"},
])
def test_invalid_events(payload):
    with pytest.raises(ValueError):
        parse_inbound_event(payload)


def test_error_codes():
    assert to_error_code("NOT_YOUR_TURN") == ErrorCode.NOT_YOUR_TURN
    assert to_error_code("SOMETHING_ELSE") == ErrorCode.INTERNAL

    event = create_error_event(ErrorCode.MATCH_FULL, "Match is full")
    assert event.model_dump(mode="json")["code"] == "MATCH_FULL"


def test_default_rules():
    assert default_rules.win_score == 12
    assert default_rules.block_play_during_truco
    assert default_rules.supported_modes() == ["1v1", "2v2"]
    assert default_rules.seats_for_mode("2v2") == 4
    with pytest.raises(ValueError):
        default_rules.seats_for_mode("3v3")


def test_rules_are_validated():
    assert create_rules(win_score=5).win_score == 5
    with pytest.raises(ValidationError):
        create_rules(win_score=0)
    with pytest.raises(ValidationError):
        create_rules(abandon_timeout=-1)


def test_rules_from_env():
    rules = rules_from_env({
        "TRUCO_WIN_SCORE": "15",
        "TRUCO_ABANDON_TIMEOUT": "2.5",
        "TRUCO_BLOCK_PLAY_DURING_TRUCO": "false",
        "UNRELATED": "1",
    })
    assert isinstance(rules, RuleConfig)
    assert rules.win_score == 15
    assert rules.abandon_timeout == 2.5
    assert not rules.block_play_during_truco
    assert rules.auto_start_when_ready

    assert rules_from_env({}) == default_rules
