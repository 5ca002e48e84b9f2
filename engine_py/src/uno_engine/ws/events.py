"""
WebSocket event models and validation.
"""

import time
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..constants import COLORS, STACK_CHOICE_STACK, STACK_CHOICE_TAKE

DEFAULT_NAME = "Player"
MAX_NAME_LENGTH = 24


class EventType(str, Enum):
    """Inbound event types."""
    SET_PROFILE = "set-profile"
    CREATE_ROOM = "create-room"
    JOIN_ROOM = "join-room"
    START_ROOM = "start-room"
    LEAVE_ROOM = "leave-room"
    REQUEST_STATE = "request-state"
    PLAY = "play"
    DRAW = "draw"
    CHOOSE_COLOR = "choose-color"
    SWAP_HANDS = "swap-hands"
    STACK_CHOICE = "stack-choice"


class OutboundEventType(str, Enum):
    """Outbound event types."""
    PROFILE_ACK = "profile-ack"
    ROOM_STATE = "room-state"
    ROOM_JOINED = "room-joined"
    ROOM_LEFT = "room-left"
    ROOM_ERROR = "room-error"
    GAME_STATE = "game-state"


class ErrorCode(str, Enum):
    """Error codes for client events."""
    INVALID_EVENT = "INVALID_EVENT"
    ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
    ROOM_FULL = "ROOM_FULL"
    ALREADY_STARTED = "ALREADY_STARTED"
    NOT_ENOUGH_PLAYERS = "NOT_ENOUGH_PLAYERS"
    NOT_HOST = "NOT_HOST"
    NOT_IN_ROOM = "NOT_IN_ROOM"
    INTERNAL = "INTERNAL"


def clean_name(value: Optional[str]) -> str:
    """Trim a display name, falling back to the default when empty."""
    name = (value or "").strip()[:MAX_NAME_LENGTH]
    return name or DEFAULT_NAME


# Inbound event models
class BaseEvent(BaseModel):
    """Base event model; clients send camelCase keys."""
    model_config = ConfigDict(populate_by_name=True)

    type: EventType


class NamedEvent(BaseEvent):
    name: str = DEFAULT_NAME

    @field_validator('name', mode='before')
    @classmethod
    def validate_name(cls, v):
        return clean_name(v if isinstance(v, str) else None)


class SetProfileEvent(NamedEvent):
    """Set the display name used for future rooms."""
    type: EventType = EventType.SET_PROFILE


class CreateRoomEvent(NamedEvent):
    """Create room event."""
    type: EventType = EventType.CREATE_ROOM


class JoinRoomEvent(NamedEvent):
    """Join room event."""
    type: EventType = EventType.JOIN_ROOM
    code: str = Field(..., min_length=1, max_length=12)

    @field_validator('code')
    @classmethod
    def normalize_code(cls, v):
        return v.strip().upper()


class StartRoomEvent(BaseEvent):
    """Start game event (host only)."""
    type: EventType = EventType.START_ROOM
    mode: Optional[str] = None
    fill_bots: bool = Field(default=False, alias="fillBots")


class LeaveRoomEvent(BaseEvent):
    type: EventType = EventType.LEAVE_ROOM


class RequestStateEvent(BaseEvent):
    """Request full state event."""
    type: EventType = EventType.REQUEST_STATE


class PlayEvent(BaseEvent):
    """Play a card, naming the color up front for wilds."""
    type: EventType = EventType.PLAY
    card_id: str = Field(..., min_length=1, alias="cardId")
    chosen_color: Optional[str] = Field(default=None, alias="chosenColor")

    @field_validator('chosen_color')
    @classmethod
    def validate_color(cls, v):
        if v is not None and v not in COLORS:
            raise ValueError(f"chosenColor must be one of {COLORS}")
        return v


class DrawEvent(BaseEvent):
    type: EventType = EventType.DRAW


class ChooseColorEvent(BaseEvent):
    """Complete a wild played without a color."""
    type: EventType = EventType.CHOOSE_COLOR
    color: str

    @field_validator('color')
    @classmethod
    def validate_color(cls, v):
        if v not in COLORS:
            raise ValueError(f"color must be one of {COLORS}")
        return v


class SwapHandsEvent(BaseEvent):
    """Pick the seat to swap hands with after a 7; ids are the sender's aliases."""
    type: EventType = EventType.SWAP_HANDS
    target_id: str = Field(..., min_length=1, alias="targetId")


class StackChoiceEvent(BaseEvent):
    """Answer the stacking prompt."""
    type: EventType = EventType.STACK_CHOICE
    choice: str

    @field_validator('choice')
    @classmethod
    def validate_choice(cls, v):
        if v not in (STACK_CHOICE_TAKE, STACK_CHOICE_STACK):
            raise ValueError("choice must be 'take' or 'stack'")
        return v


# Union type for all inbound events
InboundEvent = Union[
    SetProfileEvent,
    CreateRoomEvent,
    JoinRoomEvent,
    StartRoomEvent,
    LeaveRoomEvent,
    RequestStateEvent,
    PlayEvent,
    DrawEvent,
    ChooseColorEvent,
    SwapHandsEvent,
    StackChoiceEvent,
]


# Outbound event models
class ProfileAckEvent(BaseModel):
    type: OutboundEventType = OutboundEventType.PROFILE_ACK
    name: str
    timestamp: float


class RoomStateEvent(BaseModel):
    """Lobby state broadcast to every member."""
    type: OutboundEventType = OutboundEventType.ROOM_STATE
    room: Dict[str, Any]
    timestamp: float


class RoomJoinedEvent(BaseModel):
    """Sent to a player who created or joined a room."""
    model_config = ConfigDict(populate_by_name=True)

    type: OutboundEventType = OutboundEventType.ROOM_JOINED
    player_id: str = Field(..., serialization_alias="playerId")
    room: Dict[str, Any]
    timestamp: float


class RoomLeftEvent(BaseModel):
    type: OutboundEventType = OutboundEventType.ROOM_LEFT
    timestamp: float


class RoomErrorEvent(BaseModel):
    """Error event."""
    type: OutboundEventType = OutboundEventType.ROOM_ERROR
    code: ErrorCode
    message: str
    timestamp: float


class GameStateEvent(BaseModel):
    """A viewer's perspective of the game."""
    type: OutboundEventType = OutboundEventType.GAME_STATE
    state: Dict[str, Any]
    timestamp: float


# Union type for all outbound events
OutboundEvent = Union[
    ProfileAckEvent,
    RoomStateEvent,
    RoomJoinedEvent,
    RoomLeftEvent,
    RoomErrorEvent,
    GameStateEvent,
]


EVENT_MAP = {
    EventType.SET_PROFILE: SetProfileEvent,
    EventType.CREATE_ROOM: CreateRoomEvent,
    EventType.JOIN_ROOM: JoinRoomEvent,
    EventType.START_ROOM: StartRoomEvent,
    EventType.LEAVE_ROOM: LeaveRoomEvent,
    EventType.REQUEST_STATE: RequestStateEvent,
    EventType.PLAY: PlayEvent,
    EventType.DRAW: DrawEvent,
    EventType.CHOOSE_COLOR: ChooseColorEvent,
    EventType.SWAP_HANDS: SwapHandsEvent,
    EventType.STACK_CHOICE: StackChoiceEvent,
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
        raise ValueError(f"Unknown event type: {event_type!r}") from None

    event_class = EVENT_MAP[event_type]
    try:
        return event_class(**data)
    except ValidationError as e:
        raise ValueError(f"Invalid {event_type.value} event: {e.error_count()} field error(s)") from e


def create_profile_ack_event(name: str) -> ProfileAckEvent:
    return ProfileAckEvent(name=name, timestamp=time.time())


def create_room_state_event(room: Dict[str, Any]) -> RoomStateEvent:
    return RoomStateEvent(room=room, timestamp=time.time())


def create_room_joined_event(player_id: str, room: Dict[str, Any]) -> RoomJoinedEvent:
    return RoomJoinedEvent(player_id=player_id, room=room, timestamp=time.time())


def create_room_left_event() -> RoomLeftEvent:
    return RoomLeftEvent(timestamp=time.time())


def create_error_event(code: ErrorCode, message: str) -> RoomErrorEvent:
    """Create an error event."""
    return RoomErrorEvent(code=code, message=message, timestamp=time.time())


def create_game_state_event(state: Dict[str, Any]) -> GameStateEvent:
    """Create a perspective event."""
    return GameStateEvent(state=state, timestamp=time.time())
