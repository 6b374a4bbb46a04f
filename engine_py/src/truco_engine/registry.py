"""
Registry of live matches: owns every MatchState, serializes the intents of
each match, and fans the committed state out to subscribed connections.
"""

import asyncio
import logging
import uuid
from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, List, Optional

from .engine import ActionResult, create_match
from .errors import MATCH_NOT_FOUND, raise_error
from .models import MatchState
from .rules import RuleConfig, default_rules
from .serialization import get_public_match_info, sanitize_state

logger = logging.getLogger(__name__)

Sender = Callable[[Dict[str, Any]], Awaitable[None]]


class MatchRegistry:
    def __init__(self, rules: Optional[RuleConfig] = None):
        self.rules = rules or default_rules
        self.matches: Dict[str, MatchState] = {}
        self.match_locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self.subscribers: Dict[str, Dict[str, Sender]] = defaultdict(dict)

    def create_match(self, mode: str, match_id: Optional[str] = None) -> MatchState:
        match_id = match_id or str(uuid.uuid4())[:8].upper()
        state = create_match(match_id, mode, self.rules)
        self.matches[match_id] = state
        logger.info(f"Match {match_id} created ({mode})")
        return state

    def get_match(self, match_id: str) -> Optional[MatchState]:
        return self.matches.get(match_id)

    def lock(self, match_id: str) -> asyncio.Lock:
        return self.match_locks[match_id]

    def remove_match(self, match_id: str) -> bool:
        """Drop a match with its subscriptions. Call with the match lock held."""
        removed = self.matches.pop(match_id, None) is not None
        self.subscribers.pop(match_id, None)
        self.match_locks.pop(match_id, None)
        if removed:
            logger.info(f"Match {match_id} removed")
        return removed

    async def discard_if_empty(self, match_id: str) -> bool:
        """Remove a match nobody is seated in, e.g. after its creator failed to join."""
        if match_id not in self.matches:
            return False
        async with self.lock(match_id):
            state = self.matches.get(match_id)
            if state is None or state.players:
                return False
            return self.remove_match(match_id)

    def subscribe(self, match_id: str, connection_id: str, sender: Sender):
        self.subscribers[match_id][connection_id] = sender

    def unsubscribe(self, match_id: str, connection_id: str):
        connections = self.subscribers.get(match_id)
        if connections is not None:
            connections.pop(connection_id, None)

    async def dispatch(
        self,
        match_id: str,
        transition: Callable[..., ActionResult],
        *args,
        on_commit: Optional[Callable[[MatchState], None]] = None,
        **kwargs
    ) -> ActionResult:
        """
        Apply a transition to a match, one intent at a time per match.

        On success the new state is stored, on_commit runs while the lock is
        still held, and every subscriber receives its snapshot before the next
        intent for this match is looked at. Rejected intents change nothing
        and are not broadcast.
        """
        if match_id not in self.matches:
            raise_error(MATCH_NOT_FOUND, f"Match {match_id} not found")

        async with self.lock(match_id):
            # The match may have been removed while we waited for the lock
            state = self.matches.get(match_id)
            if state is None:
                raise_error(MATCH_NOT_FOUND, f"Match {match_id} not found")

            result = transition(state, *args, **kwargs)
            if not result.success:
                logger.debug(f"Match {match_id}: {transition.__name__} rejected ({result.error_code})")
                return result

            self.matches[match_id] = result.state
            if on_commit is not None:
                on_commit(result.state)

            if not result.state.players:
                self.remove_match(match_id)
                return result

            await self.broadcast(match_id, result.state)
            return result

    async def broadcast(self, match_id: str, state: MatchState):
        """Send each subscribed connection its own view of the committed state."""
        for connection_id, sender in list(self.subscribers.get(match_id, {}).items()):
            try:
                await sender(sanitize_state(state, connection_id))
            except Exception as e:
                logger.error(f"Error broadcasting to {connection_id}: {e}")
                self.unsubscribe(match_id, connection_id)

    async def send_state(self, match_id: str, connection_id: str):
        state = self.matches.get(match_id)
        sender = self.subscribers.get(match_id, {}).get(connection_id)
        if state is None or sender is None:
            return
        await sender(sanitize_state(state, connection_id))

    def public_matches(self) -> List[Dict[str, Any]]:
        return [get_public_match_info(state) for state in self.matches.values()]
