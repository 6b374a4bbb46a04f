"""
Binding of volatile connections to durable seats.

A connection id doubles as the player id of the seat it holds. When a
connection drops mid-match the seat is only marked disconnected; a later
connection presenting the same display name takes it back over.
"""

import asyncio
import logging
from typing import Dict, Optional

from .engine import (
    ActionResult,
    disconnect_player,
    join_match,
    leave_match,
    reconnect_player,
)
from .errors import ALREADY_SEATED, PLAYER_NOT_FOUND, SEAT_NOT_FOUND, GameError, raise_error
from .models import MatchState
from .registry import MatchRegistry, Sender

logger = logging.getLogger(__name__)


class SessionManager:
    """Tracks which match each connection is seated in and arms abandonment timers."""

    def __init__(self, registry: MatchRegistry):
        self.registry = registry
        self.bindings: Dict[str, str] = {}  # connection id -> match id
        self.removal_tasks: Dict[str, asyncio.Task] = {}

    def match_for(self, connection_id: str) -> Optional[str]:
        return self.bindings.get(connection_id)

    def require_match(self, connection_id: str) -> str:
        match_id = self.bindings.get(connection_id)
        if match_id is None:
            raise_error(PLAYER_NOT_FOUND, "Not seated in a match")
        return match_id

    async def join(self, connection_id: str, match_id: str, name: str, sender: Sender) -> ActionResult:
        self.require_unbound(connection_id)
        return await self.registry.dispatch(
            match_id,
            join_match,
            connection_id,
            name,
            on_commit=lambda state: self._bind(state, connection_id, sender),
        )

    async def reconnect(self, connection_id: str, match_id: str, name: str, sender: Sender) -> ActionResult:
        """
        Take back a disconnected seat by display name, or join as a new
        player when no disconnected seat carries that name.
        """
        self.require_unbound(connection_id)
        result = await self.registry.dispatch(
            match_id,
            reconnect_player,
            connection_id,
            name,
            on_commit=lambda state: self._bind(state, connection_id, sender),
        )
        if not result.success and result.error_code == SEAT_NOT_FOUND:
            return await self.join(connection_id, match_id, name, sender)

        if result.success:
            logger.info(f"{name} reconnected to match {match_id} as {connection_id}")
        return result

    async def leave(self, connection_id: str) -> ActionResult:
        """Explicit, permanent departure from the bound match."""
        match_id = self.require_match(connection_id)

        def on_commit(state: MatchState):
            self._unbind(match_id, connection_id)
            self._check_abandoned(state)

        return await self.registry.dispatch(match_id, leave_match, connection_id, on_commit=on_commit)

    async def disconnect(self, connection_id: str) -> Optional[ActionResult]:
        """Transport loss. Cancels nothing already applied; only updates connectivity."""
        match_id = self.bindings.pop(connection_id, None)
        if match_id is None:
            return None
        self.registry.unsubscribe(match_id, connection_id)

        try:
            result = await self.registry.dispatch(
                match_id,
                disconnect_player,
                connection_id,
                on_commit=self._check_abandoned,
            )
        except GameError as e:
            logger.info(f"Disconnect of {connection_id} ignored: {e.message}")
            return None

        logger.info(f"Connection {connection_id} dropped from match {match_id}")
        return result

    def require_unbound(self, connection_id: str):
        if connection_id in self.bindings:
            raise_error(ALREADY_SEATED, "Connection is already seated in a match")

    def _bind(self, state: MatchState, connection_id: str, sender: Sender):
        self.bindings[connection_id] = state.id
        self.registry.subscribe(state.id, connection_id, sender)
        self._cancel_removal(state.id)

    def _unbind(self, match_id: str, connection_id: str):
        self.bindings.pop(connection_id, None)
        self.registry.unsubscribe(match_id, connection_id)

    def _check_abandoned(self, state: MatchState):
        """Runs under the match lock right after a commit."""
        if not state.players:
            self._cancel_removal(state.id)
            return
        if state.connected_count == 0:
            self.schedule_removal(state)

    def schedule_removal(self, state: MatchState):
        """
        Remove the match after the abandonment timeout unless a connection
        takes a seat first. Also used for matches created with nobody seated.
        """
        if state.id in self.removal_tasks:
            return
        timeout = state.rule_config.abandon_timeout
        logger.info(f"Match {state.id} has nobody connected; removing in {timeout}s unless someone joins")
        self.removal_tasks[state.id] = asyncio.create_task(
            self._remove_if_abandoned(state.id, timeout)
        )

    def _cancel_removal(self, match_id: str):
        task = self.removal_tasks.pop(match_id, None)
        if task is not None:
            task.cancel()
            logger.info(f"Removal of match {match_id} cancelled")

    async def _remove_if_abandoned(self, match_id: str, timeout: float):
        await asyncio.sleep(timeout)

        if match_id not in self.registry.matches:
            self.removal_tasks.pop(match_id, None)
            return

        async with self.registry.lock(match_id):
            # A reconnection that committed first has already taken the decision
            if self.removal_tasks.get(match_id) is not asyncio.current_task():
                return
            del self.removal_tasks[match_id]

            state = self.registry.get_match(match_id)
            if state is not None and state.connected_count == 0:
                self.registry.remove_match(match_id)

    async def close(self):
        """Cancel pending removal timers (server shutdown)."""
        tasks = list(self.removal_tasks.values())
        self.removal_tasks.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
