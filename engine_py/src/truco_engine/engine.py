"""Match state machine: every intent is a pure transition from one MatchState to the next"""

import functools
import time
from dataclasses import dataclass, replace
from typing import Callable, Optional

from .comparator import determine_trick_winner, get_manilha_face
from .constants import (
    HAND_SIZE,
    PHASE_DEALING,
    PHASE_GAME_OVER,
    PHASE_PLAYING,
    PHASE_ROUND_OVER,
    PHASE_WAITING,
    STARTED_PHASES,
    TEAM_A,
    TEAM_B,
    TRUCO_NONE,
    team_for_seat,
)
from .errors import (
    ALREADY_SEATED,
    NAME_TAKEN,
    NOT_ENOUGH_PLAYERS,
    SEAT_NOT_FOUND,
    GameError,
    raise_error,
)
from .models import MatchState, PlayedCard, Player
from .rules import RuleConfig, default_rules
from .scoring import (
    get_round_points,
    has_winning_score,
    is_round_decided,
    resolve_round_winner,
)
from .shuffle import create_deck, deal_cards, shuffle_deck
from .validate import (
    require_phase,
    require_player,
    validate_join,
    validate_play,
)


@dataclass(frozen=True)
class ActionResult:
    """Outcome of applying an intent to a match."""
    success: bool
    state: MatchState
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    @classmethod
    def ok(cls, state: MatchState) -> 'ActionResult':
        return cls(success=True, state=state)

    @classmethod
    def error(cls, state: MatchState, error_code: str, error_message: str) -> 'ActionResult':
        return cls(success=False, state=state, error_code=error_code, error_message=error_message)


def transition(func: Callable[..., MatchState]) -> Callable[..., ActionResult]:
    """
    Wrap a state transition so that it never raises into the caller.

    A GameError leaves the input state untouched and becomes a rejected
    result; a successful transition bumps the version exactly once.
    """
    @functools.wraps(func)
    def wrapper(state: MatchState, *args, **kwargs) -> ActionResult:
        try:
            new_state = func(state, *args, **kwargs)
        except GameError as e:
            return ActionResult.error(state, e.code, e.message)
        return ActionResult.ok(replace(new_state, version=state.version + 1))
    return wrapper


def create_match(match_id: str, mode: str, rules: Optional[RuleConfig] = None) -> MatchState:
    rules = rules or default_rules
    rules.seats_for_mode(mode)  # rejects unknown modes
    return MatchState(id=match_id, mode=mode, rule_config=rules)


@transition
def join_match(state: MatchState, player_id: str, name: str) -> MatchState:
    validate_join(state, player_id, name)

    taken = {p.seat for p in state.players}
    seat = next(i for i in range(state.required_seats) if i not in taken)
    player = Player(id=player_id, name=name, seat=seat, team=team_for_seat(seat))
    players = tuple(sorted(state.players + (player,), key=lambda p: p.seat))

    return state.log(
        f"{name} joined team {player.team}",
        players=players,
        dealer=state.dealer or player_id,
    )


def _vacate_seat(state: MatchState, player_id: str) -> MatchState:
    player = require_player(state, player_id)
    players = tuple(p for p in state.players if p.id != player_id)

    if state.phase == PHASE_WAITING:
        dealer = state.dealer
        if dealer == player_id:
            dealer = players[0].id if players else None
        return state.log(f"{player.name} left the table", players=players, dealer=dealer)

    # A started match cannot continue with an empty seat: back to the lobby
    return _return_to_lobby(state, players, f"{player.name} left the table; match reset")


def _return_to_lobby(state: MatchState, players, message: str) -> MatchState:
    """Seats whose connection is gone are given up when the match goes back to waiting."""
    players = tuple(replace(p, hand=(), ready=False) for p in players if p.connected)
    return state.log(message, players=players, **_cleared_match_fields(players))


def _cleared_match_fields(players) -> dict:
    return dict(
        phase=PHASE_WAITING,
        current_trick=(),
        tricks=(),
        trick_winners=(),
        vira=None,
        team_a_score=0,
        team_b_score=0,
        stake=1,
        dealer=players[0].id if players else None,
        turn=None,
        truco_status=TRUCO_NONE,
        truco_requested_by=None,
        round_winner=None,
        winner=None,
    )


@transition
def leave_match(state: MatchState, player_id: str) -> MatchState:
    """Permanent departure: the seat is vacated."""
    return _vacate_seat(state, player_id)


@transition
def mark_ready(state: MatchState, player_id: str, seed: Optional[int] = None) -> MatchState:
    require_phase(state, PHASE_WAITING)
    player = require_player(state, player_id)

    players = state.replace_player(replace(player, ready=True))
    new_state = state.log(f"{player.name} is ready", players=players)

    all_ready = all(p.ready for p in new_state.players)
    if all_ready and new_state.is_full and state.rule_config.auto_start_when_ready:
        return _deal_round(new_state, seed)
    return new_state


@transition
def start_match(state: MatchState, seed: Optional[int] = None) -> MatchState:
    require_phase(state, PHASE_WAITING)
    if not state.is_full:
        raise_error(
            NOT_ENOUGH_PLAYERS,
            f"Need {state.required_seats} players, have {len(state.players)}"
        )
    return _deal_round(state, seed)


@transition
def start_next_round(state: MatchState, seed: Optional[int] = None) -> MatchState:
    require_phase(state, PHASE_ROUND_OVER)
    return _deal_round(state, seed)


@transition
def reset_match(state: MatchState) -> MatchState:
    """Rematch: keep the connected seats, zero the scores and go back to waiting."""
    require_phase(state, PHASE_GAME_OVER)
    return _return_to_lobby(replace(state, game_log=()), state.players, "Rematch! Scores reset")


def _deal_round(state: MatchState, seed: Optional[int] = None) -> MatchState:
    """Shuffle a fresh deck, deal three cards each and turn up the vira."""
    dealing = replace(state, phase=PHASE_DEALING)

    deck = shuffle_deck(create_deck(), seed)
    player_ids = [p.id for p in dealing.players]
    hands, vira = deal_cards(deck, player_ids, HAND_SIZE)

    dealer = dealing.dealer if dealing.get_player(dealing.dealer) else player_ids[0]
    players = tuple(replace(p, hand=hands[p.id]) for p in dealing.players)
    dealer_name = dealing.get_player(dealer).name

    return dealing.log(
        f"{dealer_name} dealt; vira {vira}, manilha {get_manilha_face(vira)}",
        phase=PHASE_PLAYING,
        players=players,
        vira=vira,
        dealer=dealer,
        turn=dealing.next_player_id(dealer),
        stake=1,
        current_trick=(),
        tricks=(),
        trick_winners=(),
        truco_status=TRUCO_NONE,
        truco_requested_by=None,
        round_winner=None,
    )


@transition
def play_card(state: MatchState, player_id: str, card_id: str) -> MatchState:
    player, card = validate_play(state, player_id, card_id)

    hand = tuple(c for c in player.hand if c.id != card_id)
    players = state.replace_player(replace(player, hand=hand))
    trick = state.current_trick + (PlayedCard(player_id=player_id, card=card, timestamp=time.time()),)
    new_state = state.log(f"{player.name} played {card}", players=players, current_trick=trick)

    if len(trick) < len(state.players):
        return replace(new_state, turn=state.next_player_id(player_id))

    return _complete_trick(new_state)


def _complete_trick(state: MatchState) -> MatchState:
    winner_id = determine_trick_winner(state.current_trick, state.vira)
    winner = state.get_player(winner_id)
    trick_winners = state.trick_winners + (winner.team,)

    state = state.log(
        f"{winner.name} took trick {len(trick_winners)}",
        tricks=state.tricks + (state.current_trick,),
        trick_winners=trick_winners,
        current_trick=(),
    )

    if is_round_decided(trick_winners):
        round_winner = resolve_round_winner(trick_winners, state.team_of(state.dealer))
        return finish_round(state, round_winner)

    # The trick winner leads the next trick
    return replace(state, turn=winner_id)


def finish_round(state: MatchState, winning_team: str, truco_status: str = TRUCO_NONE) -> MatchState:
    """
    Award the round's stake to the winning team and move the dealer on.

    Hands, the trick in progress, the vira and any truco request are cleared
    whatever the outcome. The stake stays visible until the next deal.
    """
    points = get_round_points(state.stake)
    team_a_score = state.team_a_score + (points if winning_team == TEAM_A else 0)
    team_b_score = state.team_b_score + (points if winning_team == TEAM_B else 0)
    score = team_a_score if winning_team == TEAM_A else team_b_score

    winner = winning_team if has_winning_score(score, state.rule_config.win_score) else None
    players = tuple(replace(p, hand=()) for p in state.players)

    state = state.log(
        f"Team {winning_team} won the round (+{points})",
        phase=PHASE_GAME_OVER if winner else PHASE_ROUND_OVER,
        players=players,
        team_a_score=team_a_score,
        team_b_score=team_b_score,
        round_winner=winning_team,
        winner=winner,
        dealer=state.next_player_id(state.dealer),
        turn=None,
        current_trick=(),
        tricks=(),
        trick_winners=(),
        vira=None,
        truco_status=truco_status,
        truco_requested_by=None,
    )
    if winner:
        state = state.log(f"Team {winner} wins the match {team_a_score}-{team_b_score}!")
    return state


@transition
def disconnect_player(state: MatchState, player_id: str) -> MatchState:
    """
    Transport loss. Before the match starts the seat is simply vacated;
    afterwards it is kept with its hand, turn and score intact.
    """
    player = require_player(state, player_id)
    if state.phase not in STARTED_PHASES:
        return _vacate_seat(state, player_id)

    players = state.replace_player(replace(player, connected=False))
    return state.log(f"{player.name} disconnected", players=players)


@transition
def reconnect_player(state: MatchState, player_id: str, name: str) -> MatchState:
    """
    Rebind the disconnected seat carrying this display name to a new connection.

    Every reference to the old connection id is rewritten in the same new
    state, so no reader ever sees the seat half moved.
    """
    if state.get_player(player_id) is not None:
        raise_error(ALREADY_SEATED, "You are already seated in this match")

    seat = state.get_player_by_name(name)
    if seat is None:
        raise_error(SEAT_NOT_FOUND, f"No seat held by '{name}' in this match")
    if seat.connected:
        raise_error(NAME_TAKEN, f"'{name}' is still connected to this match")

    return _rebind_identity(state, seat.id, player_id).log(f"{name} reconnected")


def _rebind_identity(state: MatchState, old_id: str, new_id: str) -> MatchState:
    def swap(value):
        return new_id if value == old_id else value

    def swap_trick(trick):
        return tuple(replace(entry, player_id=swap(entry.player_id)) for entry in trick)

    players = tuple(
        replace(p, id=new_id, connected=True) if p.id == old_id else p
        for p in state.players
    )
    return replace(
        state,
        players=players,
        current_trick=swap_trick(state.current_trick),
        tricks=tuple(swap_trick(trick) for trick in state.tricks),
        dealer=swap(state.dealer),
        turn=swap(state.turn),
        truco_requested_by=swap(state.truco_requested_by),
    )
