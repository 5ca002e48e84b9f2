"""
Tests for the session host: bot timing, stale timers and full bot games.
"""

import asyncio
import logging
import random

import pytest

from uno_engine.bots.base import BotAction
from uno_engine.constants import BLACK, MODE_CLASSIC, MODE_NO_MERCY, RED, TYPE_WILD
from uno_engine.engine import UnoEngine
from uno_engine.models import ActionCard, NumberCard, Player
from uno_engine.rules import create_rules
from uno_engine.scheduler import AsyncioScheduler, ManualScheduler, Scheduler
from uno_engine.session import SessionHost
from uno_engine.shuffle import validate_deck_integrity


def make_host(seed=5, publish=None, **overrides):
    rules = create_rules(**overrides)
    engine = UnoEngine(rules=rules, scheduler=ManualScheduler(), rng=random.Random(seed))
    return SessionHost(engine, publish=publish)


def all_bots():
    return [
        Player(id=f"b{i}", name=f"Bot {i}", position=pos, is_bot=True)
        for i, pos in enumerate(["bottom", "right", "top", "left"])
    ]


def test_bot_acts_after_thinking():
    host = make_host(seven_zero=False)
    host.start(MODE_CLASSIC)
    session = host.session
    host.engine.draw_card("user")
    assert session.current_player_id == "bot1"
    version = session.version

    host.engine.scheduler.advance(1.0)
    assert session.version == version

    host.engine.scheduler.advance(0.3)
    assert session.version > version
    assert session.current_player_id != "bot1"


def test_human_turn_schedules_nothing():
    host = make_host()
    host.start(MODE_CLASSIC)
    assert host.session.current_player_id == "user"
    assert host.engine.scheduler.pending == []


@pytest.mark.parametrize("mode", [MODE_CLASSIC, MODE_NO_MERCY])
def test_bots_play_a_full_game(mode):
    """Four bots play until someone wins, without losing a card."""
    host = make_host(seed=21)
    host.start(mode, all_bots(), primary_player_id=None)
    scheduler = host.engine.scheduler

    for _ in range(20000):
        if host.session.is_finished:
            break
        scheduler.advance(0.5)

    session = host.session
    assert session.is_finished
    assert session.winner in {p.id for p in all_bots()}
    assert validate_deck_integrity(session)


def test_stale_bot_timer_does_nothing():
    host = make_host(seven_zero=False)
    host.start(MODE_CLASSIC)
    engine = host.engine
    engine.draw_card("user")
    bot_hand = host.session.get_player("bot1").card_count

    # bot1 draws before its own timers fire; they must not act again
    engine.draw_card("bot1")
    host.session.current_player_id = "bot1"
    host._bot_turn(host.session.version - 1, "bot1")

    assert host.session.get_player("bot1").card_count == bot_hand + 1


def test_failed_bot_move_falls_back_to_drawing(monkeypatch):
    host = make_host(seven_zero=False)
    host.start(MODE_CLASSIC)
    host.engine.draw_card("user")
    before = host.session.get_player("bot1").card_count

    bot = host.bots["bot1"]
    monkeypatch.setattr(bot, "choose_action", lambda session: BotAction.play("missing"))
    host.engine.scheduler.advance(1.2)

    assert host.session.get_player("bot1").card_count == before + 1
    assert host.session.current_player_id == "bot2"


def test_bot_names_color_for_its_wild():
    host = make_host(seven_zero=False)
    host.start(MODE_CLASSIC)
    host.engine.draw_card("user")
    host.session.get_player("bot1").hand = [
        ActionCard(id="t-black-wild", color=BLACK, type=TYPE_WILD),
        NumberCard(id="t-red-1", color=RED, value=1),
        NumberCard(id="t-red-2", color=RED, value=2),
    ]

    assert host.apply_bot_action("bot1", BotAction.play("t-black-wild"))
    assert not host.session.is_choosing_color
    assert host.session.active_color == RED


def test_stop_cancels_timers():
    host = make_host()
    host.start(MODE_CLASSIC)
    host.engine.draw_card("user")
    assert host.engine.scheduler.pending

    host.stop()

    assert host.engine.scheduler.pending == []
    assert host._on_change not in host.engine._listeners


@pytest.mark.asyncio
async def test_async_host_publishes_and_plays():
    published = []

    async def publish(session):
        published.append(session.version)

    rules = create_rules(bot_think_delay=0.01, bot_safety_delay=0.05, auto_hit_delay=0.01)
    engine = UnoEngine(rules=rules, scheduler=AsyncioScheduler(), rng=random.Random(8))
    host = SessionHost(engine, publish=publish)
    host.start(MODE_CLASSIC)
    engine.draw_card("user")

    for _ in range(100):
        if host.session.current_player_id == "user" or host.session.is_finished:
            break
        await asyncio.sleep(0.02)

    host.stop()
    assert published
    assert host.session.current_player_id == "user" or host.session.is_finished


def test_scheduler_interface_cannot_be_instantiated():
    with pytest.raises(TypeError):
        Scheduler()


def test_async_publish_without_loop_fails_loudly(caplog):
    """An async publisher outside an event loop is reported, never silently dropped."""
    published = []

    async def publish(session):
        published.append(session.version)

    host = make_host(publish=publish)
    with caplog.at_level(logging.ERROR):
        host.start(MODE_CLASSIC)

    assert published == []
    assert host.publish_tasks == set()
    errors = [r.exc_info[1] for r in caplog.records if r.exc_info]
    assert any("running event loop" in str(e) for e in errors)


@pytest.mark.asyncio
async def test_failed_publish_is_logged_and_released(caplog):
    async def publish(session):
        raise ConnectionError("socket closed")

    host = make_host(publish=publish)
    with caplog.at_level(logging.ERROR):
        host.start(MODE_CLASSIC)
        assert len(host.publish_tasks) == 1
        for _ in range(10):
            if not host.publish_tasks:
                break
            await asyncio.sleep(0)

    assert host.publish_tasks == set()
    failures = [r for r in caplog.records if "Publishing version" in r.getMessage()]
    assert failures
    assert isinstance(failures[0].exc_info[1], ConnectionError)
    host.stop()
