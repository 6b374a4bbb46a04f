"""
Tests for connection binding, reconnection and abandoned match cleanup.
"""

import asyncio

import pytest
from truco_engine.constants import PHASE_PLAYING, PHASE_WAITING
from truco_engine.engine import start_match
from truco_engine.errors import ALREADY_SEATED, MATCH_NOT_FOUND, NAME_TAKEN, GameError
from truco_engine.registry import MatchRegistry
from truco_engine.rules import create_rules
from truco_engine.sessions import SessionManager


class Recorder:
    def __init__(self):
        self.snapshots = []

    async def __call__(self, snapshot):
        self.snapshots.append(snapshot)


def make_sessions(abandon_timeout=60.0):
    registry = MatchRegistry(create_rules(abandon_timeout=abandon_timeout))
    return registry, SessionManager(registry)


async def seated_pair(registry, sessions, mode="1v1"):
    match_id = registry.create_match(mode).id
    await sessions.join("c1", match_id, "Alice", Recorder())
    await sessions.join("c2", match_id, "Bob", Recorder())
    return match_id


async def started_pair(registry, sessions):
    match_id = await seated_pair(registry, sessions)
    result = await registry.dispatch(match_id, start_match, seed=3)
    assert result.success
    return match_id


@pytest.mark.asyncio
async def test_join_binds_connection():
    registry, sessions = make_sessions()
    match_id = registry.create_match("1v1").id
    recorder = Recorder()

    result = await sessions.join("c1", match_id, "Alice", recorder)
    assert result.success
    assert sessions.match_for("c1") == match_id
    assert recorder.snapshots[-1]["viewer_id"] == "c1"
    assert recorder.snapshots[-1]["players"][0]["name"] == "Alice"


@pytest.mark.asyncio
async def test_join_rejections():
    registry, sessions = make_sessions()
    match_id = registry.create_match("1v1").id
    await sessions.join("c1", match_id, "Alice", Recorder())

    with pytest.raises(GameError) as exc_info:
        await sessions.join("c1", match_id, "Alice2", Recorder())
    assert exc_info.value.code == ALREADY_SEATED

    with pytest.raises(GameError) as exc_info:
        await sessions.join("c2", "MISSING", "Bob", Recorder())
    assert exc_info.value.code == MATCH_NOT_FOUND

    result = await sessions.join("c2", match_id, "Alice", Recorder())
    assert result.error_code == NAME_TAKEN
    assert sessions.match_for("c2") is None


@pytest.mark.asyncio
async def test_disconnect_while_waiting_vacates_seat():
    registry, sessions = make_sessions()
    match_id = await seated_pair(registry, sessions)

    await sessions.disconnect("c2")
    state = registry.get_match(match_id)
    assert [p.id for p in state.players] == ["c1"]
    assert sessions.match_for("c2") is None

    await sessions.disconnect("c1")
    assert registry.get_match(match_id) is None
    assert await sessions.disconnect("c1") is None


@pytest.mark.asyncio
async def test_reconnect_restores_seat_mid_round():
    registry, sessions = make_sessions()
    match_id = await started_pair(registry, sessions)
    before = registry.get_match(match_id)
    assert before.turn == "c2"
    bob_hand = before.get_player("c2").hand

    await sessions.disconnect("c2")
    state = registry.get_match(match_id)
    assert state.phase == PHASE_PLAYING
    assert not state.get_player("c2").connected
    assert state.get_player("c2").hand == bob_hand

    recorder = Recorder()
    result = await sessions.reconnect("c3", match_id, "Bob", recorder)
    assert result.success

    state = registry.get_match(match_id)
    assert state.turn == "c3"
    assert state.get_player("c3").hand == bob_hand
    assert state.get_player("c3").connected
    assert sessions.match_for("c3") == match_id
    assert len(recorder.snapshots[-1]["players"][1]["hand"]) == 3


@pytest.mark.asyncio
async def test_reconnect_falls_back_to_join():
    registry, sessions = make_sessions()
    match_id = registry.create_match("1v1").id
    await sessions.join("c1", match_id, "Alice", Recorder())

    result = await sessions.reconnect("c2", match_id, "Bob", Recorder())
    assert result.success
    assert registry.get_match(match_id).get_player("c2").name == "Bob"


@pytest.mark.asyncio
async def test_reconnect_to_connected_seat():
    registry, sessions = make_sessions()
    match_id = await started_pair(registry, sessions)

    result = await sessions.reconnect("c9", match_id, "Alice", Recorder())
    assert not result.success
    assert result.error_code == NAME_TAKEN
    assert sessions.match_for("c9") is None


@pytest.mark.asyncio
async def test_abandoned_match_is_removed():
    registry, sessions = make_sessions(abandon_timeout=0.05)
    match_id = await started_pair(registry, sessions)

    await sessions.disconnect("c1")
    assert match_id not in sessions.removal_tasks

    await sessions.disconnect("c2")
    assert match_id in sessions.removal_tasks

    await asyncio.sleep(0.2)
    assert registry.get_match(match_id) is None
    assert match_id not in sessions.removal_tasks


@pytest.mark.asyncio
async def test_reconnect_cancels_removal():
    registry, sessions = make_sessions(abandon_timeout=0.2)
    match_id = await started_pair(registry, sessions)

    await sessions.disconnect("c1")
    await sessions.disconnect("c2")
    await asyncio.sleep(0.05)

    result = await sessions.reconnect("c3", match_id, "Alice", Recorder())
    assert result.success
    assert match_id not in sessions.removal_tasks

    await asyncio.sleep(0.3)
    state = registry.get_match(match_id)
    assert state is not None
    assert state.get_player("c3").connected


@pytest.mark.asyncio
async def test_leave_started_match():
    registry, sessions = make_sessions()
    match_id = await started_pair(registry, sessions)

    result = await sessions.leave("c2")
    assert result.success
    assert sessions.match_for("c2") is None

    state = registry.get_match(match_id)
    assert state.phase == PHASE_WAITING
    assert [p.id for p in state.players] == ["c1"]
    assert "c2" not in registry.subscribers[match_id]


@pytest.mark.asyncio
async def test_close_cancels_timers():
    registry, sessions = make_sessions(abandon_timeout=30)
    match_id = await started_pair(registry, sessions)
    await sessions.disconnect("c1")
    await sessions.disconnect("c2")

    task = sessions.removal_tasks[match_id]
    await sessions.close()
    assert task.cancelled()
    assert sessions.removal_tasks == {}


@pytest.mark.asyncio
async def test_unseated_match_is_removed():
    registry, sessions = make_sessions(abandon_timeout=0.05)
    state = registry.create_match("1v1")

    sessions.schedule_removal(state)
    await asyncio.sleep(0.2)
    assert registry.get_match(state.id) is None


@pytest.mark.asyncio
async def test_joining_keeps_unseated_match():
    registry, sessions = make_sessions(abandon_timeout=0.1)
    state = registry.create_match("1v1")
    sessions.schedule_removal(state)

    await sessions.join("c1", state.id, "Alice", Recorder())
    assert state.id not in sessions.removal_tasks

    await asyncio.sleep(0.2)
    assert registry.get_match(state.id) is not None
