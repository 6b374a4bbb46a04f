"""
Truco escalation: calling, accepting and running from a raised stake.

The overlay only exists while a round is being played:
none -> requested -> (accepted | declined).
"""

from .constants import STAKE_NAMES, TRUCO_ACCEPTED, TRUCO_DECLINED, TRUCO_REQUESTED
from .engine import finish_round, transition
from .models import MatchState
from .scoring import get_next_stake
from .validate import validate_truco_request, validate_truco_response


@transition
def request_truco(state: MatchState, player_id: str) -> MatchState:
    """
    Ask the other team to raise the round to the next stake.

    While the request is pending no card may be played (see
    RuleConfig.block_play_during_truco).
    """
    player = validate_truco_request(state, player_id)
    call = STAKE_NAMES[get_next_stake(state.stake)]

    return state.log(
        f"{player.name} called {call}!",
        truco_status=TRUCO_REQUESTED,
        truco_requested_by=player_id,
    )


@transition
def accept_truco(state: MatchState, player_id: str) -> MatchState:
    """The answering team accepts; the round is now worth the next stake."""
    player = validate_truco_response(state, player_id)
    stake = get_next_stake(state.stake)

    return state.log(
        f"{player.name} accepted; round is worth {stake}",
        stake=stake,
        truco_status=TRUCO_ACCEPTED,
        truco_requested_by=None,
    )


@transition
def decline_truco(state: MatchState, player_id: str) -> MatchState:
    """
    The answering team runs.

    The caller's team takes the round at the stake in force before the
    call, without playing out the remaining tricks.
    """
    player = validate_truco_response(state, player_id)
    caller_team = state.team_of(state.truco_requested_by)

    state = state.log(f"{player.name} ran from the truco")
    return finish_round(state, caller_team, truco_status=TRUCO_DECLINED)
