"""
WebSocket event models and validation.
"""

import time
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..constants import MODE_1V1, MODE_2V2


class EventType(str, Enum):
    """Inbound event types."""
    CREATE_MATCH = "create_match"
    JOIN = "join"
    LEAVE = "leave"
    READY = "ready"
    START = "start"
    PLAY_CARD = "play_card"
    REQUEST_TRUCO = "request_truco"
    ACCEPT_TRUCO = "accept_truco"
    DECLINE_TRUCO = "decline_truco"
    START_NEXT_ROUND = "start_next_round"
    RESET_MATCH = "reset_match"
    RECONNECT = "reconnect"
    REQUEST_STATE = "request_state"
    LIST_MATCHES = "list_matches"


class OutboundEventType(str, Enum):
    """Outbound event types."""
    MATCH_CREATED = "match_created"
    JOIN_SUCCESS = "join_success"
    STATE_FULL = "state_full"
    MATCHES = "matches"
    ERROR = "error"


class ErrorCode(str, Enum):
    """Error codes for client events."""
    INVALID_EVENT = "INVALID_EVENT"
    MATCH_NOT_FOUND = "MATCH_NOT_FOUND"
    MATCH_FULL = "MATCH_FULL"
    MATCH_IN_PROGRESS = "MATCH_IN_PROGRESS"
    NOT_ENOUGH_PLAYERS = "NOT_ENOUGH_PLAYERS"
    ALREADY_SEATED = "ALREADY_SEATED"
    NAME_TAKEN = "NAME_TAKEN"
    PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
    SEAT_NOT_FOUND = "SEAT_NOT_FOUND"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    OWNERSHIP_MISMATCH = "OWNERSHIP_MISMATCH"
    WRONG_PHASE = "WRONG_PHASE"
    TRUCO_PENDING = "TRUCO_PENDING"
    NO_TRUCO_PENDING = "NO_TRUCO_PENDING"
    STAKE_AT_MAXIMUM = "STAKE_AT_MAXIMUM"
    ACTION_NOT_ALLOWED = "ACTION_NOT_ALLOWED"
    INTERNAL = "INTERNAL"


# Inbound event models
class BaseEvent(BaseModel):
    """Base event model."""
    type: EventType


class MatchScopedEvent(BaseEvent):
    """Event acting on the match the connection is seated in."""
    match_id: Optional[str] = Field(default=None, min_length=1, max_length=50)


class CreateMatchEvent(BaseEvent):
    """Create a match; when a name is given the creator takes the first seat."""
    type: EventType = EventType.CREATE_MATCH
    mode: str = MODE_1V1
    name: Optional[str] = Field(default=None, min_length=1, max_length=30)

    @field_validator('mode')
    @classmethod
    def validate_mode(cls, v):
        if v not in (MODE_1V1, MODE_2V2):
            raise ValueError(f"mode must be '{MODE_1V1}' or '{MODE_2V2}'")
        return v


class JoinEvent(BaseEvent):
    """Join match event."""
    type: EventType = EventType.JOIN
    match_id: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=30)

    @field_validator('name')
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v


class ReconnectEvent(JoinEvent):
    """Take back a seat after a dropped connection."""
    type: EventType = EventType.RECONNECT


class LeaveEvent(MatchScopedEvent):
    type: EventType = EventType.LEAVE


class ReadyEvent(MatchScopedEvent):
    type: EventType = EventType.READY


class StartEvent(MatchScopedEvent):
    """Start game event."""
    type: EventType = EventType.START
    seed: Optional[int] = None


class PlayCardEvent(MatchScopedEvent):
    """Play a card from hand."""
    type: EventType = EventType.PLAY_CARD
    card_id: str = Field(..., min_length=2, max_length=3)


class RequestTrucoEvent(MatchScopedEvent):
    type: EventType = EventType.REQUEST_TRUCO


class AcceptTrucoEvent(MatchScopedEvent):
    type: EventType = EventType.ACCEPT_TRUCO


class DeclineTrucoEvent(MatchScopedEvent):
    type: EventType = EventType.DECLINE_TRUCO


class StartNextRoundEvent(MatchScopedEvent):
    type: EventType = EventType.START_NEXT_ROUND
    seed: Optional[int] = None


class ResetMatchEvent(MatchScopedEvent):
    """Rematch after a finished game."""
    type: EventType = EventType.RESET_MATCH


class RequestStateEvent(MatchScopedEvent):
    """Request full state event."""
    type: EventType = EventType.REQUEST_STATE


class ListMatchesEvent(BaseEvent):
    type: EventType = EventType.LIST_MATCHES


# Union type for all inbound events
InboundEvent = Union[
    CreateMatchEvent,
    JoinEvent,
    ReconnectEvent,
    LeaveEvent,
    ReadyEvent,
    StartEvent,
    PlayCardEvent,
    RequestTrucoEvent,
    AcceptTrucoEvent,
    DeclineTrucoEvent,
    StartNextRoundEvent,
    ResetMatchEvent,
    RequestStateEvent,
    ListMatchesEvent,
]


# Outbound event models
class MatchCreatedEvent(BaseModel):
    type: OutboundEventType = OutboundEventType.MATCH_CREATED
    match_id: str
    mode: str
    timestamp: float


class JoinSuccessEvent(BaseModel):
    """Join success confirmation event."""
    type: OutboundEventType = OutboundEventType.JOIN_SUCCESS
    match_id: str
    player_id: str
    timestamp: float


class StateFullEvent(BaseModel):
    """Full state event."""
    type: OutboundEventType = OutboundEventType.STATE_FULL
    state: Dict[str, Any]
    timestamp: float


class MatchesEvent(BaseModel):
    """Lobby listing."""
    type: OutboundEventType = OutboundEventType.MATCHES
    matches: List[Dict[str, Any]]
    timestamp: float


class ErrorEvent(BaseModel):
    """Error event."""
    type: OutboundEventType = OutboundEventType.ERROR
    code: ErrorCode
    message: str
    timestamp: float


EVENT_MAP = {
    EventType.CREATE_MATCH: CreateMatchEvent,
    EventType.JOIN: JoinEvent,
    EventType.RECONNECT: ReconnectEvent,
    EventType.LEAVE: LeaveEvent,
    EventType.READY: ReadyEvent,
    EventType.START: StartEvent,
    EventType.PLAY_CARD: PlayCardEvent,
    EventType.REQUEST_TRUCO: RequestTrucoEvent,
    EventType.ACCEPT_TRUCO: AcceptTrucoEvent,
    EventType.DECLINE_TRUCO: DeclineTrucoEvent,
    EventType.START_NEXT_ROUND: StartNextRoundEvent,
    EventType.RESET_MATCH: ResetMatchEvent,
    EventType.REQUEST_STATE: RequestStateEvent,
    EventType.LIST_MATCHES: ListMatchesEvent,
}


def parse_inbound_event(data: Dict[str, Any]) -> InboundEvent:
    """
    Parse raw event data into appropriate event model.

    Args:
        data: Raw event data from WebSocket

    Returns:
        Parsed event model

    Raises:
        ValueError: If event type is invalid or data is malformed
    """
    if not isinstance(data, dict):
        raise ValueError("Event must be a JSON object")

    event_type = data.get("type")

    if not event_type:
        raise ValueError("Missing event type")

    try:
        event_type = EventType(event_type)
    except ValueError:
        raise ValueError(f"Invalid event type: {event_type}")

    event_class = EVENT_MAP[event_type]

    try:
        return event_class(**data)
    except ValidationError as e:
        raise ValueError(f"Invalid event data: {e.errors(include_url=False)}")


def to_error_code(code: Optional[str]) -> ErrorCode:
    try:
        return ErrorCode(code)
    except ValueError:
        return ErrorCode.INTERNAL


def create_error_event(code: ErrorCode, message: str) -> ErrorEvent:
    """Create an error event."""
    return ErrorEvent(
        code=code,
        message=message,
        timestamp=time.time()
    )


def create_match_created_event(match_id: str, mode: str) -> MatchCreatedEvent:
    return MatchCreatedEvent(match_id=match_id, mode=mode, timestamp=time.time())


def create_join_success_event(match_id: str, player_id: str) -> JoinSuccessEvent:
    """Create a join success event."""
    return JoinSuccessEvent(
        match_id=match_id,
        player_id=player_id,
        timestamp=time.time()
    )


def create_state_full_event(state: Dict[str, Any]) -> StateFullEvent:
    """Create a full state event."""
    return StateFullEvent(
        state=state,
        timestamp=time.time()
    )


def create_matches_event(matches: List[Dict[str, Any]]) -> MatchesEvent:
    return MatchesEvent(matches=matches, timestamp=time.time())
