# engine_py/src/truco_engine/scoring.py

from typing import Dict, Optional, Sequence

from .constants import (
    MAX_TRICKS,
    STAKE_LADDER,
    TEAM_A,
    TEAM_B,
    TRICKS_TO_WIN_ROUND,
    WIN_SCORE,
)


def get_round_points(stake: int) -> int:
    """A round is worth exactly its stake."""
    if stake not in STAKE_LADDER:
        raise ValueError(f"Invalid stake: {stake}")
    return stake


def get_next_stake(stake: int) -> int:
    """
    Get the stake after an accepted truco call (1 -> 3 -> 6 -> 9 -> 12).

    Raises:
        ValueError: if the stake is already 12 or is not on the ladder
    """
    if stake not in STAKE_LADDER:
        raise ValueError(f"Invalid stake: {stake}")
    index = STAKE_LADDER.index(stake)
    if index == len(STAKE_LADDER) - 1:
        raise ValueError(f"Stake {stake} cannot be raised further")
    return STAKE_LADDER[index + 1]


def can_raise(stake: int) -> bool:
    return stake in STAKE_LADDER and stake != STAKE_LADDER[-1]


def has_winning_score(score: int, threshold: int = WIN_SCORE) -> bool:
    """Teams may overshoot; reaching the threshold is enough."""
    return score >= threshold


def count_team_tricks(trick_winners: Sequence[str]) -> Dict[str, int]:
    """Tally tricks taken per team."""
    return {
        TEAM_A: sum(1 for team in trick_winners if team == TEAM_A),
        TEAM_B: sum(1 for team in trick_winners if team == TEAM_B),
    }


def is_round_decided(trick_winners: Sequence[str]) -> bool:
    """
    A round ends as soon as one team has taken two tricks,
    or once all three tricks have been played.
    """
    if len(trick_winners) >= MAX_TRICKS:
        return True
    tally = count_team_tricks(trick_winners)
    return max(tally.values()) >= TRICKS_TO_WIN_ROUND


def resolve_round_winner(trick_winners: Sequence[str], dealer_team: Optional[str]) -> Optional[str]:
    """
    Get the team that wins the round.

    The dealer's team takes the round when the tricks are split evenly.
    """
    tally = count_team_tricks(trick_winners)
    if tally[TEAM_A] > tally[TEAM_B]:
        return TEAM_A
    if tally[TEAM_B] > tally[TEAM_A]:
        return TEAM_B
    return dealer_team
