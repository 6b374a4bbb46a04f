"""
FastAPI WebSocket server for the Truco match engine.
"""

import logging
import uuid
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import orjson
from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from ..engine import (
    mark_ready,
    play_card,
    reset_match,
    start_match,
    start_next_round,
)
from ..errors import ACTION_NOT_ALLOWED, GameError
from ..registry import MatchRegistry
from ..rules import RuleConfig, rules_from_env
from ..sessions import SessionManager
from ..truco import accept_truco, decline_truco, request_truco
from .events import (
    AcceptTrucoEvent,
    CreateMatchEvent,
    DeclineTrucoEvent,
    ErrorCode,
    JoinEvent,
    LeaveEvent,
    ListMatchesEvent,
    PlayCardEvent,
    ReadyEvent,
    ReconnectEvent,
    RequestStateEvent,
    RequestTrucoEvent,
    ResetMatchEvent,
    StartEvent,
    StartNextRoundEvent,
    create_error_event,
    create_join_success_event,
    create_match_created_event,
    create_matches_event,
    create_state_full_event,
    parse_inbound_event,
    to_error_code,
)

logger = logging.getLogger(__name__)


class GameSocketServer:
    """Translates websocket events into registry and session calls."""

    def __init__(self, registry: MatchRegistry, sessions: SessionManager):
        self.registry = registry
        self.sessions = sessions

    async def handle_websocket(self, websocket: WebSocket):
        await websocket.accept()
        connection_id = str(uuid.uuid4())
        logger.info(f"WebSocket connection {connection_id} accepted")

        async def send_state(snapshot: Dict[str, Any]):
            await websocket.send_text(create_state_full_event(snapshot).model_dump_json())

        try:
            while True:
                raw_data = await websocket.receive_text()

                try:
                    event = parse_inbound_event(orjson.loads(raw_data))
                    await self.handle_event(websocket, connection_id, event, send_state)
                except GameError as e:
                    await self.send_error(websocket, to_error_code(e.code), e.message)
                except ValueError as e:
                    # Invalid JSON or event payload
                    await self.send_error(websocket, ErrorCode.INVALID_EVENT, str(e))
                except WebSocketDisconnect:
                    raise
                except Exception as e:
                    logger.exception(f"Error handling event from {connection_id}: {e}")
                    await self.send_error(websocket, ErrorCode.INTERNAL, "Internal server error")

        except WebSocketDisconnect:
            logger.info(f"WebSocket {connection_id} disconnected")
        except Exception as e:
            logger.error(f"WebSocket error for {connection_id}: {e}")
        finally:
            await self.sessions.disconnect(connection_id)

    async def handle_event(self, websocket: WebSocket, connection_id: str, event, send_state):
        """Handle an inbound event."""
        if isinstance(event, CreateMatchEvent):
            await self.handle_create(websocket, connection_id, event, send_state)
        elif isinstance(event, ReconnectEvent):
            result = await self.sessions.reconnect(connection_id, event.match_id, event.name, send_state)
            await self.report_join(websocket, connection_id, event.match_id, result)
        elif isinstance(event, JoinEvent):
            result = await self.sessions.join(connection_id, event.match_id, event.name, send_state)
            await self.report_join(websocket, connection_id, event.match_id, result)
        elif isinstance(event, LeaveEvent):
            self.require_bound_match(connection_id, event.match_id)
            result = await self.sessions.leave(connection_id)
            await self.report(websocket, result)
            if result.success:
                await self.send_matches(websocket)
        elif isinstance(event, ListMatchesEvent):
            await self.send_matches(websocket)
        elif isinstance(event, RequestStateEvent):
            match_id = self.require_bound_match(connection_id, event.match_id)
            await self.registry.send_state(match_id, connection_id)
        elif isinstance(event, ReadyEvent):
            await self.dispatch(websocket, connection_id, event, mark_ready, connection_id)
        elif isinstance(event, StartEvent):
            await self.dispatch(websocket, connection_id, event, start_match, seed=event.seed)
        elif isinstance(event, PlayCardEvent):
            await self.dispatch(websocket, connection_id, event, play_card, connection_id, event.card_id)
        elif isinstance(event, RequestTrucoEvent):
            await self.dispatch(websocket, connection_id, event, request_truco, connection_id)
        elif isinstance(event, AcceptTrucoEvent):
            await self.dispatch(websocket, connection_id, event, accept_truco, connection_id)
        elif isinstance(event, DeclineTrucoEvent):
            await self.dispatch(websocket, connection_id, event, decline_truco, connection_id)
        elif isinstance(event, StartNextRoundEvent):
            await self.dispatch(websocket, connection_id, event, start_next_round, seed=event.seed)
        elif isinstance(event, ResetMatchEvent):
            await self.dispatch(websocket, connection_id, event, reset_match)
        else:
            raise ValueError(f"Unhandled event type: {type(event)}")

    async def handle_create(self, websocket: WebSocket, connection_id: str, event: CreateMatchEvent, send_state):
        if event.name:
            self.sessions.require_unbound(connection_id)

        state = self.registry.create_match(event.mode)
        await websocket.send_text(create_match_created_event(state.id, state.mode).model_dump_json())

        if not event.name:
            # Nobody holds a seat yet
            self.sessions.schedule_removal(state)
            return

        try:
            result = await self.sessions.join(connection_id, state.id, event.name, send_state)
        except GameError:
            await self.registry.discard_if_empty(state.id)
            raise
        if not result.success:
            await self.registry.discard_if_empty(state.id)
        await self.report_join(websocket, connection_id, state.id, result)

    def require_bound_match(self, connection_id: str, claimed_match_id: Optional[str]) -> str:
        match_id = self.sessions.require_match(connection_id)
        if claimed_match_id is not None and claimed_match_id != match_id:
            raise GameError(ACTION_NOT_ALLOWED, f"You are not seated in match {claimed_match_id}")
        return match_id

    async def dispatch(self, websocket: WebSocket, connection_id: str, event, transition, *args, **kwargs):
        match_id = self.require_bound_match(connection_id, event.match_id)
        result = await self.registry.dispatch(match_id, transition, *args, **kwargs)
        await self.report(websocket, result)

    async def report(self, websocket: WebSocket, result):
        """Rejections go to the originating connection only."""
        if not result.success:
            await self.send_error(websocket, to_error_code(result.error_code), result.error_message)

    async def report_join(self, websocket: WebSocket, connection_id: str, match_id: str, result):
        if result.success:
            await websocket.send_text(create_join_success_event(match_id, connection_id).model_dump_json())
        else:
            await self.report(websocket, result)

    async def send_matches(self, websocket: WebSocket):
        await websocket.send_text(create_matches_event(self.registry.public_matches()).model_dump_json())

    async def send_error(self, websocket: WebSocket, code: ErrorCode, message: str):
        await websocket.send_text(create_error_event(code, message).model_dump_json())


def create_app(rules: Optional[RuleConfig] = None) -> FastAPI:
    """Build the application with its own registry; nothing is shared between apps."""
    registry = MatchRegistry(rules)
    sessions = SessionManager(registry)
    server = GameSocketServer(registry, sessions)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await sessions.close()

    app = FastAPI(title="Truco Match Engine", version="1.0.0", lifespan=lifespan)
    app.state.registry = registry
    app.state.sessions = sessions

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "matches": len(registry.matches),
            "connections": len(sessions.bindings),
        }

    @app.get("/matches")
    async def list_matches():
        return registry.public_matches()

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """Main WebSocket endpoint."""
        await server.handle_websocket(websocket)

    return app


app = create_app(rules_from_env())
