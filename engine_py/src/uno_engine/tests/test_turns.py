"""
Tests for seating order and turn advancement.
"""

from uno_engine.constants import CLOCKWISE, COUNTER_CLOCKWISE, RED, TYPE_DRAW2, TYPE_REVERSE, TYPE_SKIP
from uno_engine.models import ActionCard, NumberCard, Player
from uno_engine.turns import advance, seating_ring, steps_for

RING = ["user", "bot1", "bot2", "bot3"]


def test_ring_follows_positions_not_roster_order():
    players = [
        Player(id="c", name="C", position="left"),
        Player(id="a", name="A", position="bottom"),
        Player(id="b", name="B", position="top"),
    ]
    assert seating_ring(players) == ["a", "b", "c"]


def test_clockwise_wraparound():
    assert advance(RING, "user", CLOCKWISE, 1) == "bot1"
    assert advance(RING, "bot3", CLOCKWISE, 1) == "user"


def test_counter_clockwise_wraps_backwards():
    assert advance(RING, "user", COUNTER_CLOCKWISE, 1) == "bot3"
    assert advance(RING, "bot1", COUNTER_CLOCKWISE, 2) == "bot3"


def test_skip_moves_two_seats():
    assert advance(RING, "bot2", CLOCKWISE, 2) == "user"


def test_ring_closes_around_gap():
    ring = ["user", "bot2", "bot3"]
    assert advance(ring, "user", CLOCKWISE, 1) == "bot2"
    assert advance(ring, "user", COUNTER_CLOCKWISE, 1) == "bot3"


def test_steps_for_cards():
    skip = ActionCard(id="s", color=RED, type=TYPE_SKIP)
    reverse = ActionCard(id="r", color=RED, type=TYPE_REVERSE)
    assert steps_for(skip, 4) == 2
    assert steps_for(reverse, 4) == 1
    assert steps_for(reverse, 2) == 2
    assert steps_for(ActionCard(id="d", color=RED, type=TYPE_DRAW2), 4) == 1
    assert steps_for(NumberCard(id="n", color=RED, value=4), 3) == 1
