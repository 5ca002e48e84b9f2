"""
Special card effects implementation.

Each effect mutates the session it is given; the engine decides when to call
them and in what order.
"""

from typing import Optional

from .constants import (
    COLORS, TYPE_DISCARD_ALL, TYPE_REVERSE, TYPE_X2, other_direction
)
from .models import Card, GameSession, Player, is_wild, stamp_played_by
from .validate import draw_power


def resolve_active_color(session: GameSession, card: Card, chosen_color: Optional[str]):
    """
    Set the active color after ``card`` is played.

    Wilds take the chosen color, the multiplier keeps the running color,
    everything else takes its own color.
    """
    if card.type == TYPE_X2:
        return
    if is_wild(card):
        if chosen_color not in COLORS:
            raise ValueError(f"Wild card needs a real color, got {chosen_color!r}")
        session.active_color = chosen_color
    else:
        session.active_color = card.color


def apply_stack(session: GameSession, card: Card) -> int:
    """
    Add a draw card's power to the pending stack, or double it for the multiplier.

    Returns:
        The new stack accumulation
    """
    if card.type == TYPE_X2:
        # Only meaningful while a stack is pending
        session.stack_accumulation *= 2
    else:
        session.stack_accumulation += draw_power(card)
    return session.stack_accumulation


def apply_reverse(session: GameSession, card: Card) -> bool:
    """Flip the direction of play for a reverse card."""
    if card.type != TYPE_REVERSE:
        return False
    session.direction = other_direction(session.direction)
    session.log(f"Direction is now {session.direction}")
    return True


def apply_discard_all(session: GameSession, player: Player, card: Card) -> int:
    """
    Purge the played card's color, and every other discard-all card, from the actor's hand.

    The purged cards go onto the discard pile beneath the played card so it
    stays on top.

    Returns:
        Number of cards purged
    """
    if card.type != TYPE_DISCARD_ALL:
        return 0

    purged = [c for c in player.hand if c.color == card.color or c.type == TYPE_DISCARD_ALL]
    if not purged:
        return 0

    purged_ids = {c.id for c in purged}
    player.hand = [c for c in player.hand if c.id not in purged_ids]

    top = session.discard_pile.pop()
    session.discard_pile.extend(stamp_played_by(c, player.id) for c in purged)
    session.discard_pile.append(top)

    session.log(f"{player.name} discarded {len(purged)} {card.color} cards")
    return len(purged)
