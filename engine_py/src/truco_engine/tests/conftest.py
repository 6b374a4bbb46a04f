from dataclasses import replace

import pytest
from truco_engine.constants import MODE_1V1, MODE_2V2
from truco_engine.engine import create_match, join_match, start_match
from truco_engine.models import parse_card


@pytest.fixture
def seated_1v1():
    """Alice (seat 0, team A, dealer) and Bob (seat 1, team B)."""
    state = create_match("M1V1", MODE_1V1)
    state = join_match(state, "p1", "Alice").state
    return join_match(state, "p2", "Bob").state


@pytest.fixture
def seated_2v2():
    state = create_match("M2V2", MODE_2V2)
    for player_id, name in [("p1", "Alice"), ("p2", "Bob"), ("p3", "Carol"), ("p4", "Dave")]:
        state = join_match(state, player_id, name).state
    return state


@pytest.fixture
def rig():
    """Replace dealt hands and the vira with known cards."""
    def _rig(state, hands, vira):
        players = tuple(
            replace(p, hand=tuple(parse_card(c) for c in hands[p.id])) if p.id in hands else p
            for p in state.players
        )
        return replace(state, players=players, vira=parse_card(vira))
    return _rig


@pytest.fixture
def playing_1v1(seated_1v1, rig):
    """
    A dealt 1v1 round with a 4♣ turned up (manilha 5).
    Alice dealt, so Bob leads.
    """
    state = start_match(seated_1v1, seed=1).state
    return rig(state, {"p1": ["5H", "6D", "7D"], "p2": ["3S", "2S", "4H"]}, "4C")
