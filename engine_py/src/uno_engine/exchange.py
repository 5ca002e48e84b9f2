"""
Hand exchanges: the 7 swap and the 0 rotation.

Hands are moved between players, never shared: after an exchange every
player owns a distinct list.
"""

import logging
from typing import List

from .constants import CLOCKWISE
from .models import GameEvent, GameSession

logger = logging.getLogger(__name__)


def swap_hands(session: GameSession, player_id: str, target_id: str) -> bool:
    """
    Exchange the full hands of two players.

    Args:
        session: Current game session
        player_id: Player who played the 7
        target_id: Player chosen to swap with

    Returns:
        True if the hands were exchanged
    """
    player = session.get_player(player_id)
    target = session.get_player(target_id)
    if not player or not target or player_id == target_id:
        return False

    player_hand, target_hand = player.hand, target.hand
    player.hand, target.hand = list(target_hand), list(player_hand)

    session.last_event = GameEvent(type='swap', player_id=player_id, target_id=target_id)
    session.log(f"{player.name} swapped hands with {target.name}")
    logger.debug(f"Swapped hands {player_id} <-> {target_id}")
    return True


def rotate_hands(session: GameSession, ring: List[str], direction: str):
    """
    Pass every hand one seat along the direction of play.

    Clockwise, the player at ring[i + 1] receives the hand of ring[i];
    counter-clockwise it is the other way around.
    """
    if len(ring) < 2:
        return

    hands = [list(session.get_player(pid).hand) for pid in ring]
    if direction == CLOCKWISE:
        hands = hands[-1:] + hands[:-1]
    else:
        hands = hands[1:] + hands[:1]

    for pid, hand in zip(ring, hands):
        session.get_player(pid).hand = hand

    session.last_event = GameEvent(type='rotate', player_id=session.current_player_id)
    session.log(f"All hands passed {'clockwise' if direction == CLOCKWISE else 'counter-clockwise'}")
