"""
Tests for stakes, round resolution and the winning score.
"""

import pytest
from truco_engine.constants import STAKE_LADDER, TEAM_A, TEAM_B, other_team
from truco_engine.scoring import (
    can_raise,
    count_team_tricks,
    get_next_stake,
    get_round_points,
    has_winning_score,
    is_round_decided,
    resolve_round_winner,
)


def test_stake_ladder():
    stakes = [1]
    while can_raise(stakes[-1]):
        stakes.append(get_next_stake(stakes[-1]))
    assert stakes == STAKE_LADDER == [1, 3, 6, 9, 12]


def test_stake_cannot_pass_twelve():
    assert not can_raise(12)
    with pytest.raises(ValueError):
        get_next_stake(12)


def test_invalid_stakes_rejected():
    assert not can_raise(2)
    with pytest.raises(ValueError):
        get_next_stake(2)
    with pytest.raises(ValueError):
        get_round_points(4)


def test_round_points_equal_stake():
    for stake in STAKE_LADDER:
        assert get_round_points(stake) == stake


def test_winning_score():
    assert not has_winning_score(11)
    assert has_winning_score(12)
    assert has_winning_score(14)  # overshoot still wins
    assert has_winning_score(5, threshold=5)


def test_count_team_tricks():
    assert count_team_tricks([]) == {TEAM_A: 0, TEAM_B: 0}
    assert count_team_tricks([TEAM_A, TEAM_B, TEAM_A]) == {TEAM_A: 2, TEAM_B: 1}


def test_round_decided():
    assert not is_round_decided([])
    assert not is_round_decided([TEAM_A])
    assert not is_round_decided([TEAM_A, TEAM_B])
    assert is_round_decided([TEAM_B, TEAM_B])
    assert is_round_decided([TEAM_A, TEAM_B, TEAM_B])


def test_round_winner_by_majority():
    assert resolve_round_winner([TEAM_A, TEAM_A], TEAM_B) == TEAM_A
    assert resolve_round_winner([TEAM_A, TEAM_B, TEAM_B], TEAM_A) == TEAM_B


def test_split_tricks_go_to_dealer_team():
    for dealer_team in (TEAM_A, TEAM_B):
        assert resolve_round_winner([TEAM_A, TEAM_B], dealer_team) == dealer_team
        assert resolve_round_winner([], other_team(dealer_team)) == other_team(dealer_team)
