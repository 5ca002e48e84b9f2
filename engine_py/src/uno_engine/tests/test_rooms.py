"""
Tests for room lifecycle: codes, membership, host migration and starting games.
"""

import random

import pytest

from uno_engine.constants import MODE_CLASSIC, MODE_NO_MERCY, ROOM_CODE_ALPHABET, ROOM_PLAYING
from uno_engine.errors import (
    ALREADY_STARTED, NOT_ENOUGH_PLAYERS, NOT_HOST, NOT_IN_ROOM, ROOM_FULL,
    ROOM_NOT_FOUND, GameError
)
from uno_engine.rooms import RoomManager, normalize_mode
from uno_engine.rules import default_rules
from uno_engine.scheduler import ManualScheduler
from uno_engine.serialization import perspective_aliases, to_perspective


def make_manager(**kwargs):
    return RoomManager(scheduler_factory=ManualScheduler, rng=random.Random(3), **kwargs)


def error_code(excinfo):
    return excinfo.value.code


def test_room_codes_use_unambiguous_alphabet():
    manager = make_manager()
    codes = {manager.create_room(f"p{i}", f"P{i}").code for i in range(20)}
    assert len(codes) == 20
    for code in codes:
        assert len(code) == 6
        assert set(code) <= set(ROOM_CODE_ALPHABET)


def test_create_room_makes_creator_host():
    manager = make_manager()
    room = manager.create_room("alice", "Alice")
    assert room.host_id == "alice"
    assert [m.name for m in room.members] == ["Alice"]
    assert manager.room_of("alice") is room


def test_join_room_is_case_insensitive():
    manager = make_manager()
    room = manager.create_room("alice", "Alice")
    joined = manager.join_room(f"  {room.code.lower()} ", "bob", "Bob")
    assert joined is room
    assert [m.id for m in room.members] == ["alice", "bob"]


def test_join_unknown_room():
    manager = make_manager()
    with pytest.raises(GameError) as excinfo:
        manager.join_room("NOPE42", "bob", "Bob")
    assert error_code(excinfo) == ROOM_NOT_FOUND


def test_join_full_room():
    manager = make_manager()
    room = manager.create_room("p0", "P0")
    for i in range(1, 4):
        manager.join_room(room.code, f"p{i}", f"P{i}")
    with pytest.raises(GameError) as excinfo:
        manager.join_room(room.code, "p4", "P4")
    assert error_code(excinfo) == ROOM_FULL
    assert manager.room_of("p4") is None


def test_rejoining_same_room_is_a_no_op():
    manager = make_manager()
    room = manager.create_room("alice", "Alice")
    manager.join_room(room.code, "alice", "Alice")
    assert len(room.members) == 1


def test_join_moves_player_out_of_previous_room():
    manager = make_manager()
    first = manager.create_room("alice", "Alice")
    manager.join_room(first.code, "bob", "Bob")
    second = manager.create_room("carol", "Carol")

    manager.join_room(second.code, "bob", "Bob")

    assert [m.id for m in first.members] == ["alice"]
    assert manager.room_of("bob") is second


def test_start_requires_host_and_players():
    manager = make_manager()
    room = manager.create_room("alice", "Alice")

    with pytest.raises(GameError) as excinfo:
        manager.start_room("alice")
    assert error_code(excinfo) == NOT_ENOUGH_PLAYERS

    manager.join_room(room.code, "bob", "Bob")
    with pytest.raises(GameError) as excinfo:
        manager.start_room("bob")
    assert error_code(excinfo) == NOT_HOST

    with pytest.raises(GameError) as excinfo:
        manager.start_room("nobody")
    assert error_code(excinfo) == NOT_IN_ROOM


def test_start_two_humans():
    manager = make_manager()
    room = manager.create_room("alice", "Alice")
    manager.join_room(room.code, "bob", "Bob")

    manager.start_room("alice", MODE_NO_MERCY)

    session = room.session
    assert room.status == ROOM_PLAYING
    assert room.mode == MODE_NO_MERCY
    assert session.mode == MODE_NO_MERCY
    assert [(p.id, p.position) for p in session.players] == [("alice", "bottom"), ("bob", "top")]
    assert session.primary_player_id is None
    assert all(p.card_count == 7 for p in session.players)


def test_fill_bots_takes_every_seat():
    manager = make_manager()
    room = manager.create_room("alice", "Alice")

    manager.start_room("alice", fill_bots=True)

    session = room.session
    assert [p.position for p in session.players] == ["bottom", "right", "top", "left"]
    assert [p.is_bot for p in session.players] == [False, True, True, True]
    assert session.players[1].id == f"{room.code}-bot1"
    assert session.mode == MODE_CLASSIC


def test_join_after_start_is_rejected():
    manager = make_manager()
    room = manager.create_room("alice", "Alice")
    manager.join_room(room.code, "bob", "Bob")
    manager.start_room("alice")

    with pytest.raises(GameError) as excinfo:
        manager.join_room(room.code, "carol", "Carol")
    assert error_code(excinfo) == ALREADY_STARTED

    with pytest.raises(GameError) as excinfo:
        manager.start_room("alice")
    assert error_code(excinfo) == ALREADY_STARTED


def test_host_migrates_to_next_human():
    manager = make_manager()
    room = manager.create_room("alice", "Alice")
    manager.join_room(room.code, "bob", "Bob")

    manager.leave_room("alice")

    assert room.host_id == "bob"
    assert manager.room_of("alice") is None
    assert manager.get_room(room.code) is room


def test_room_closes_when_last_human_leaves():
    manager = make_manager()
    room = manager.create_room("alice", "Alice")
    manager.start_room("alice", fill_bots=True)

    manager.leave_room("alice")

    assert manager.get_room(room.code) is None
    assert manager.player_rooms == {}
    assert room.host.engine.scheduler.pending == []


def test_leaving_mid_game_hands_the_win_to_the_last_player():
    manager = make_manager()
    room = manager.create_room("alice", "Alice")
    manager.join_room(room.code, "bob", "Bob")
    manager.start_room("alice")

    manager.leave_room("bob")

    assert room.session.winner == "alice"
    assert not room.is_game_running()


def test_finished_room_can_restart():
    manager = make_manager()
    room = manager.create_room("alice", "Alice")
    manager.join_room(room.code, "bob", "Bob")
    manager.start_room("alice")
    room.session.winner = "bob"

    manager.start_room("alice", MODE_NO_MERCY)

    assert room.session.winner is None
    assert room.session.mode == MODE_NO_MERCY


def test_changes_are_reported():
    seen = []
    manager = make_manager(on_change=seen.append)
    room = manager.create_room("alice", "Alice")
    manager.join_room(room.code, "bob", "Bob")

    manager.start_room("alice")
    room.host.engine.draw_card("alice")

    assert len(seen) == 2
    assert all(r is room for r in seen)


def test_normalize_mode():
    assert normalize_mode("no-mercy") == MODE_NO_MERCY
    assert normalize_mode("chaos") == MODE_CLASSIC
    assert normalize_mode(None) == MODE_CLASSIC


def test_winner_stays_visible_after_leaving_finished_room():
    """The winner walking out of a finished table does not erase the result."""
    manager = make_manager()
    room = manager.create_room("alice", "Alice")
    manager.join_room(room.code, "bob", "Bob")
    manager.join_room(room.code, "carol", "Carol")
    manager.start_room("alice")
    room.session.winner = "alice"

    manager.leave_room("alice")

    assert room.session.get_player("alice") is not None
    assert room.host_id == "bob"
    view = to_perspective(room.session, "bob")
    assert view["winner"] == perspective_aliases(room.session, "bob")["alice"]
    assert view["winner"] is not None


def test_player_count_bounds():
    assert not default_rules.validate_player_count(1)
    assert default_rules.validate_player_count(2)
    assert default_rules.validate_player_count(4)
    assert not default_rules.validate_player_count(5)
