"""
Precondition checks for player intents.

Each validator raises GameError when the intent is illegal for the
current state; the engine turns that into a rejected ActionResult.
"""

from typing import Tuple

from .constants import PHASE_PLAYING, PHASE_WAITING, other_team
from .errors import (
    ACTION_NOT_ALLOWED,
    ALREADY_SEATED,
    MATCH_FULL,
    MATCH_IN_PROGRESS,
    NAME_TAKEN,
    NO_TRUCO_PENDING,
    NOT_YOUR_TURN,
    OWNERSHIP_MISMATCH,
    PLAYER_NOT_FOUND,
    STAKE_AT_MAXIMUM,
    TRUCO_PENDING,
    WRONG_PHASE,
    raise_error,
)
from .models import Card, MatchState, Player
from .scoring import can_raise


def require_phase(state: MatchState, *phases: str) -> None:
    if state.phase not in phases:
        raise_error(
            WRONG_PHASE,
            f"Action not allowed while match is {state.phase}"
        )


def require_player(state: MatchState, player_id: str) -> Player:
    player = state.get_player(player_id)
    if player is None:
        raise_error(PLAYER_NOT_FOUND, "Player is not seated in this match")
    return player


def validate_join(state: MatchState, player_id: str, name: str) -> None:
    """Check that a new connection may take a free seat."""
    if state.get_player(player_id) is not None:
        raise_error(ALREADY_SEATED, "You are already seated in this match")
    if state.phase != PHASE_WAITING:
        raise_error(MATCH_IN_PROGRESS, "Match has already started")
    if state.is_full:
        raise_error(MATCH_FULL, "Match is full")
    if state.get_player_by_name(name) is not None:
        raise_error(NAME_TAKEN, f"Name '{name}' is already taken in this match")


def validate_play(state: MatchState, player_id: str, card_id: str) -> Tuple[Player, Card]:
    """
    Validate a card play.

    Returns:
        The acting player and the card being played
    """
    require_phase(state, PHASE_PLAYING)
    player = require_player(state, player_id)

    if state.turn != player_id:
        raise_error(NOT_YOUR_TURN, "Not your turn")

    if state.truco_pending and state.rule_config.block_play_during_truco:
        raise_error(TRUCO_PENDING, "Truco must be answered before play continues")

    for card in player.hand:
        if card.id == card_id:
            return player, card

    raise_error(OWNERSHIP_MISMATCH, f"You don't own {card_id}")


def validate_truco_request(state: MatchState, player_id: str) -> Player:
    require_phase(state, PHASE_PLAYING)
    player = require_player(state, player_id)

    if state.truco_pending:
        raise_error(TRUCO_PENDING, "A truco request is already waiting for an answer")
    if not can_raise(state.stake):
        raise_error(STAKE_AT_MAXIMUM, f"Stake {state.stake} cannot be raised")
    return player


def validate_truco_response(state: MatchState, player_id: str) -> Player:
    """Only the team that did not call truco may accept or run."""
    require_phase(state, PHASE_PLAYING)
    player = require_player(state, player_id)

    if not state.truco_pending or state.truco_requested_by is None:
        raise_error(NO_TRUCO_PENDING, "There is no truco request to answer")
    if player.team != other_team(state.team_of(state.truco_requested_by)):
        raise_error(ACTION_NOT_ALLOWED, "Your team called truco; the other team must answer")
    return player
