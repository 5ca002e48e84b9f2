"""
FastAPI WebSocket server for networked UNO rooms.
"""

import asyncio
import logging
import uuid
from collections import deque
from typing import Deque, Dict, Optional, Tuple

import orjson
from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from ..errors import GameError, NOT_IN_ROOM
from ..rooms import Room, RoomManager
from ..rules import RuleConfig
from ..serialization import resolve_alias, room_payload, to_perspective
from .events import (
    ChooseColorEvent, CreateRoomEvent, DrawEvent, ErrorCode, JoinRoomEvent,
    LeaveRoomEvent, PlayEvent, RequestStateEvent, SetProfileEvent, StackChoiceEvent,
    StartRoomEvent, SwapHandsEvent, create_error_event, create_game_state_event,
    create_profile_ack_event, create_room_joined_event, create_room_left_event,
    create_room_state_event, parse_inbound_event
)

logger = logging.getLogger(__name__)


def encode(event: BaseModel) -> str:
    return orjson.dumps(event.model_dump(mode="json", by_alias=True)).decode()


class ConnectionManager:
    """Manages WebSocket connections and broadcasting."""

    def __init__(self):
        self.connections: Dict[str, WebSocket] = {}
        self.names: Dict[str, str] = {}
        self.outbox: Deque[Tuple[str, BaseModel]] = deque()
        self._drain_task: Optional[asyncio.Task] = None

    def connect(self, websocket: WebSocket) -> str:
        """Register an accepted socket under a fresh connection id."""
        connection_id = str(uuid.uuid4())
        self.connections[connection_id] = websocket
        self.names[connection_id] = "Player"
        logger.info(f"Connection {connection_id} opened")
        return connection_id

    def disconnect(self, connection_id: str):
        self.connections.pop(connection_id, None)
        self.names.pop(connection_id, None)
        logger.info(f"Connection {connection_id} closed")

    async def send(self, connection_id: str, event: BaseModel):
        websocket = self.connections.get(connection_id)
        if websocket is None:
            return
        try:
            await websocket.send_text(encode(event))
        except Exception as e:
            logger.error(f"Error sending to {connection_id}: {e}")
            self.disconnect(connection_id)

    async def broadcast_room(self, room: Room):
        """Send the lobby state to every human in the room."""
        event = create_room_state_event(room_payload(room))
        for member in room.humans:
            await self.send(member.id, event)

    def queue_game_state(self, room: Room):
        """
        Snapshot every human's perspective now and queue it for sending.

        Perspectives are taken when the change is committed, so two changes
        landing in the same loop tick are both delivered, in order.
        """
        session = room.session
        if session is None:
            return
        for member in room.humans:
            perspective = to_perspective(session, member.id)
            if perspective is not None:
                self.outbox.append((member.id, create_game_state_event(perspective)))
        if self._drain_task is None or self._drain_task.done():
            self._drain_task = asyncio.get_running_loop().create_task(self._drain())

    async def _drain(self):
        while self.outbox:
            connection_id, event = self.outbox.popleft()
            await self.send(connection_id, event)


manager = ConnectionManager()


def _schedule_game_broadcast(room: Room):
    # Engine listeners run synchronously inside handlers and timers on the loop
    manager.queue_game_state(room)


room_manager = RoomManager(rules=RuleConfig.from_env(), on_change=_schedule_game_broadcast)


def register_routes(app: FastAPI):
    """Attach the health check and the websocket endpoint to ``app``."""

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "rooms": len(room_manager.rooms),
            "connections": len(manager.connections),
        }

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """Main WebSocket endpoint."""
        await websocket.accept()
        connection_id = manager.connect(websocket)

        try:
            while True:
                raw_data = await websocket.receive_text()
                try:
                    event = parse_inbound_event(orjson.loads(raw_data))
                    await handle_event(connection_id, event)
                except GameError as e:
                    await manager.send(connection_id, create_error_event(ErrorCode(e.code), e.message))
                except ValueError as e:
                    await manager.send(connection_id, create_error_event(ErrorCode.INVALID_EVENT, str(e)))
                except Exception:
                    logger.exception(f"Error handling event from {connection_id}")
                    await manager.send(
                        connection_id,
                        create_error_event(ErrorCode.INTERNAL, "Internal server error")
                    )
        except WebSocketDisconnect:
            logger.info(f"WebSocket {connection_id} disconnected")
        finally:
            await leave_current_room(connection_id)
            manager.disconnect(connection_id)


async def handle_event(connection_id: str, event):
    """Dispatch an inbound event."""
    if isinstance(event, SetProfileEvent):
        manager.names[connection_id] = event.name
        await manager.send(connection_id, create_profile_ack_event(event.name))
    elif isinstance(event, CreateRoomEvent):
        await handle_create(connection_id, event)
    elif isinstance(event, JoinRoomEvent):
        await handle_join(connection_id, event)
    elif isinstance(event, StartRoomEvent):
        await handle_start(connection_id, event)
    elif isinstance(event, LeaveRoomEvent):
        await leave_current_room(connection_id)
        await manager.send(connection_id, create_room_left_event())
    elif isinstance(event, RequestStateEvent):
        await handle_request_state(connection_id)
    else:
        await handle_game_intent(connection_id, event)


async def leave_current_room(connection_id: str):
    room = room_manager.room_of(connection_id)
    if room is None:
        return
    async with room.lock:
        room_manager.leave_room(connection_id)
    if room.code in room_manager.rooms:
        await manager.broadcast_room(room)


def _display_name(connection_id: str, event) -> str:
    """Name sent with the event, else the one from ``set-profile``."""
    if "name" in event.model_fields_set:
        manager.names[connection_id] = event.name
    return manager.names.get(connection_id, event.name)


async def handle_create(connection_id: str, event: CreateRoomEvent):
    await leave_current_room(connection_id)
    room = room_manager.create_room(connection_id, _display_name(connection_id, event))
    await manager.send(connection_id, create_room_joined_event(connection_id, room_payload(room)))
    await manager.broadcast_room(room)


async def handle_join(connection_id: str, event: JoinRoomEvent):
    previous = room_manager.room_of(connection_id)
    room = room_manager.join_room(event.code, connection_id, _display_name(connection_id, event))
    if previous is not None and previous is not room and previous.code in room_manager.rooms:
        await manager.broadcast_room(previous)
    await manager.send(connection_id, create_room_joined_event(connection_id, room_payload(room)))
    await manager.broadcast_room(room)


async def handle_start(connection_id: str, event: StartRoomEvent):
    room = _require_room(connection_id)
    async with room.lock:
        room_manager.start_room(connection_id, event.mode, event.fill_bots)
    # The game itself is broadcast by the engine listener
    await manager.broadcast_room(room)


async def handle_request_state(connection_id: str):
    room = room_manager.room_of(connection_id)
    if room is None or room.session is None:
        return
    perspective = to_perspective(room.session, connection_id)
    if perspective is not None:
        await manager.send(connection_id, create_game_state_event(perspective))


async def handle_game_intent(connection_id: str, event):
    """Apply a gameplay intent; the engine itself rejects out-of-turn senders."""
    room = room_manager.room_of(connection_id)
    if room is None or room.host is None:
        return

    async with room.lock:
        engine = room.host.engine
        if isinstance(event, PlayEvent):
            result = engine.play_card(connection_id, event.card_id, event.chosen_color)
        elif isinstance(event, DrawEvent):
            result = engine.draw_card(connection_id)
        elif isinstance(event, ChooseColorEvent):
            if engine.session.current_player_id != connection_id:
                return
            result = engine.confirm_color_selection(event.color)
        elif isinstance(event, SwapHandsEvent):
            target = resolve_alias(engine.session, connection_id, event.target_id)
            result = engine.swap_hands(connection_id, target or event.target_id)
        elif isinstance(event, StackChoiceEvent):
            result = engine.resolve_stack_choice(connection_id, event.choice)
        else:
            raise ValueError(f"Unhandled event type: {type(event)}")

    if not result.success:
        logger.debug(f"Rejected {event.type.value} from {connection_id}: {result.error_code}")


def _require_room(connection_id: str) -> Room:
    room = room_manager.room_of(connection_id)
    if room is None:
        raise GameError(NOT_IN_ROOM, "You are not in a room.")
    return room


def create_app(title: str = "UNO Engine", version: str = "1.0.0") -> FastAPI:
    """Build a FastAPI app with CORS, health check and the websocket endpoint."""
    app = FastAPI(title=title, version=version)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_routes(app)
    return app

