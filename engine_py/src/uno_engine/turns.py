"""
Turn order: seating ring, direction and skips.
"""

from typing import List

from .constants import CLOCKWISE, TABLE_ORDER, TYPE_REVERSE, TYPE_SKIP
from .models import Card, Player


def seating_ring(players: List[Player]) -> List[str]:
    """
    Order the living players by their fixed seat, clockwise from the bottom.

    The ring follows seat positions rather than roster order, so it closes
    around a gap when a player is removed mid-game.
    """
    seated = sorted(players, key=lambda p: TABLE_ORDER.index(p.position))
    return [p.id for p in seated]


def advance(ring: List[str], current_id: str, direction: str, steps: int = 1) -> str:
    """
    Compute the next player to act.

    Args:
        ring: Player ids in clockwise seating order
        current_id: Player whose turn is ending
        direction: 'cw' or 'ccw'
        steps: 1 for a normal turn, 2 when the next player is skipped

    Returns:
        ID of the next player
    """
    idx = ring.index(current_id)
    move = steps if direction == CLOCKWISE else -steps
    # Python's modulo is never negative, so backwards wraps correctly
    return ring[(idx + move) % len(ring)]


def steps_for(card: Card, ring_size: int) -> int:
    """Ring positions to move after ``card`` resolves (skipAll never gets here)."""
    if card.type == TYPE_SKIP:
        return 2
    if card.type == TYPE_REVERSE and ring_size == 2:
        return 2
    return 1
