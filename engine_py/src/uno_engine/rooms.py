"""
Room lifecycle for networked play: codes, membership, hosts and game start.

Every precondition is checked before anything is mutated; violations raise
``GameError`` so the transport can report them as room errors.
"""

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .constants import (
    AVATARS, MODE_CLASSIC, MODE_NO_MERCY, POSITIONS_BY_COUNT, ROOM_CODE_ALPHABET,
    ROOM_LOBBY, ROOM_PLAYING
)
from .engine import UnoEngine
from .errors import (
    ALREADY_STARTED, NOT_ENOUGH_PLAYERS, NOT_HOST, NOT_IN_ROOM, ROOM_FULL,
    ROOM_NOT_FOUND, raise_error
)
from .models import GameSession, Player
from .rules import RuleConfig, default_rules
from .scheduler import AsyncioScheduler, Scheduler
from .session import SessionHost

logger = logging.getLogger(__name__)


@dataclass
class RoomMember:
    id: str
    name: str
    is_bot: bool = False


@dataclass
class Room:
    code: str
    host_id: str
    members: List[RoomMember] = field(default_factory=list)
    status: str = ROOM_LOBBY
    mode: Optional[str] = None
    host: Optional[SessionHost] = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    @property
    def session(self) -> Optional[GameSession]:
        return self.host.session if self.host else None

    @property
    def humans(self) -> List[RoomMember]:
        return [m for m in self.members if not m.is_bot]

    def member(self, member_id: str) -> Optional[RoomMember]:
        return next((m for m in self.members if m.id == member_id), None)

    def is_game_running(self) -> bool:
        session = self.session
        return self.status == ROOM_PLAYING and session is not None and not session.is_finished


def normalize_mode(mode: Optional[str]) -> str:
    return MODE_NO_MERCY if mode == MODE_NO_MERCY else MODE_CLASSIC


class RoomManager:
    """Keeps every active room and which room each connected player is in."""

    def __init__(
        self,
        rules: RuleConfig = default_rules,
        scheduler_factory: Callable[[], Scheduler] = AsyncioScheduler,
        on_change: Optional[Callable[[Room], Any]] = None,
        rng: Optional[random.Random] = None
    ):
        self.rules = rules
        self.scheduler_factory = scheduler_factory
        self.on_change = on_change
        self.rng = rng or random.Random()
        self.rooms: Dict[str, Room] = {}
        self.player_rooms: Dict[str, str] = {}

    def generate_code(self) -> str:
        """Draw codes from the unambiguous alphabet until one is free."""
        while True:
            code = ''.join(
                self.rng.choice(ROOM_CODE_ALPHABET) for _ in range(self.rules.room_code_length)
            )
            if code not in self.rooms:
                return code

    def get_room(self, code: str) -> Optional[Room]:
        return self.rooms.get(code.strip().upper())

    def room_of(self, player_id: str) -> Optional[Room]:
        code = self.player_rooms.get(player_id)
        return self.rooms.get(code) if code else None

    def create_room(self, player_id: str, name: str) -> Room:
        """Open a new lobby hosted by ``player_id``, leaving any previous room."""
        if player_id in self.player_rooms:
            self.leave_room(player_id)

        code = self.generate_code()
        room = Room(code=code, host_id=player_id, members=[RoomMember(player_id, name)])
        self.rooms[code] = room
        self.player_rooms[player_id] = code
        logger.info(f"Room {code} created by {player_id}")
        return room

    def join_room(self, code: str, player_id: str, name: str) -> Room:
        """
        Seat a player in an existing lobby.

        Raises:
            GameError: ROOM_NOT_FOUND, ROOM_FULL or ALREADY_STARTED
        """
        room = self.get_room(code)
        if room is None:
            raise_error(ROOM_NOT_FOUND, "Room not found.")
        if room.member(player_id):
            return room
        if len(room.members) >= self.rules.max_players:
            raise_error(ROOM_FULL, f"Room is full (max {self.rules.max_players}).")
        if room.status != ROOM_LOBBY:
            raise_error(ALREADY_STARTED, "Game has already started.")

        if player_id in self.player_rooms:
            self.leave_room(player_id)

        room.members.append(RoomMember(player_id, name))
        self.player_rooms[player_id] = room.code
        logger.info(f"Player {player_id} joined room {room.code}")
        return room

    def leave_room(self, player_id: str) -> Optional[Room]:
        """
        Take a player out of their room.

        The host role passes to the next human; a player leaving a running
        game is removed from the ring. A room with no humans left is closed.

        Returns:
            The room the player left, or None if they were not in one
        """
        room = self.room_of(player_id)
        self.player_rooms.pop(player_id, None)
        if room is None:
            return None

        room.members = [m for m in room.members if m.id != player_id]
        logger.info(f"Player {player_id} left room {room.code}")

        if not room.humans:
            self.close_room(room)
            return room

        if room.host_id == player_id:
            room.host_id = room.humans[0].id
            logger.info(f"Room {room.code} host is now {room.host_id}")

        if room.host is not None and room.session.get_player(player_id):
            room.host.engine.remove_player(player_id)
        return room

    def close_room(self, room: Room):
        if room.host is not None:
            room.host.stop()
        for member in room.members:
            self.player_rooms.pop(member.id, None)
        self.rooms.pop(room.code, None)
        logger.info(f"Room {room.code} closed")

    def start_room(self, player_id: str, mode: Optional[str] = None, fill_bots: bool = False) -> Room:
        """
        Start (or restart, once finished) the game in the caller's room.

        Args:
            player_id: Must be the room host
            mode: 'no-mercy', anything else plays classic
            fill_bots: Fill empty seats with bots first (when the rules allow it)

        Raises:
            GameError: NOT_IN_ROOM, NOT_HOST, ALREADY_STARTED or NOT_ENOUGH_PLAYERS
        """
        room = self.room_of(player_id)
        if room is None:
            raise_error(NOT_IN_ROOM, "You are not in a room.")
        if room.host_id != player_id:
            raise_error(NOT_HOST, "Only the host can start the game.")
        if room.is_game_running():
            raise_error(ALREADY_STARTED, "Game has already started.")

        if fill_bots and self.rules.auto_fill_bots:
            self._fill_bots(room)
        if not self.rules.validate_player_count(len(room.members)):
            raise_error(NOT_ENOUGH_PLAYERS, f"Need at least {self.rules.min_players} players.")

        if room.host is not None:
            room.host.stop()

        mode = normalize_mode(mode)
        positions = POSITIONS_BY_COUNT[len(room.members)]
        players = [
            Player(
                id=member.id,
                name=member.name,
                position=positions[idx],
                is_bot=member.is_bot,
                avatar=AVATARS[idx % len(AVATARS)],
            )
            for idx, member in enumerate(room.members)
        ]

        engine = UnoEngine(rules=self.rules, scheduler=self.scheduler_factory(), rng=self.rng)
        room.host = SessionHost(engine, publish=lambda session: self._notify(room))
        room.status = ROOM_PLAYING
        room.mode = mode
        # Networked rooms have no primary seat: mercy overflow always eliminates
        room.host.start(mode, players, primary_player_id=None)
        logger.info(f"Room {room.code} started a {mode} game with {len(players)} players")
        return room

    def _fill_bots(self, room: Room):
        taken = {m.id for m in room.members}
        number = 1
        while len(room.members) < self.rules.max_players:
            bot_id = f"{room.code}-bot{number}"
            number += 1
            if bot_id in taken:
                continue
            room.members.append(RoomMember(bot_id, f"Bot {number - 1}", is_bot=True))

    def _notify(self, room: Room):
        if self.on_change is not None:
            return self.on_change(room)
        return None
