"""
Greedy bot implementation with basic heuristics.
"""

from typing import List, Optional, Sequence

from .base import BaseBot, BotAction, Move
from ..constants import (
    COLOR_PREFERENCE, TYPE_DISCARD_ALL, TYPE_DRAW10, TYPE_DRAW2, TYPE_DRAW4,
    TYPE_DRAW6, TYPE_REVERSE, TYPE_SKIP, TYPE_SKIP_ALL, TYPE_WILD, TYPE_X2
)
from ..models import Card, GameSession, NumberCard, is_wild
from ..validate import PlayContext, playable_cards

# Aggression first: stack-breaking attacks, then skips, then discards and
# smaller draws, then numbers by value. Wilds are saved for emergencies.
TYPE_SCORES = {
    TYPE_DRAW10: 100,
    TYPE_SKIP_ALL: 90,
    TYPE_DRAW6: 80,
    TYPE_DRAW4: 60,
    TYPE_DISCARD_ALL: 50,
    TYPE_DRAW2: 40,
    TYPE_SKIP: 20,
    TYPE_REVERSE: 20,
    TYPE_WILD: -10,
}
MULTIPLIER_STACKING_SCORE = 140
MULTIPLIER_IDLE_SCORE = -50


def score_card(card: Card, stack_accumulation: int) -> int:
    """Score a candidate card; higher is better."""
    if card.type == TYPE_X2:
        return MULTIPLIER_STACKING_SCORE if stack_accumulation > 0 else MULTIPLIER_IDLE_SCORE
    if isinstance(card, NumberCard):
        return card.value
    return TYPE_SCORES.get(card.type, 0)


def choose_color(hand: Sequence[Card], played_card: Optional[Card] = None) -> str:
    """
    Pick the color the bot holds most of once ``played_card`` has left the hand.

    Ties go to red, blue, green, yellow in that order; a hand with no
    colored cards names red.
    """
    counts = {color: 0 for color in COLOR_PREFERENCE}
    for card in hand:
        if played_card is not None and card.id == played_card.id:
            continue
        if card.color in counts:
            counts[card.color] += 1
    # max() keeps the first of equal counts, which is the preference order
    return max(COLOR_PREFERENCE, key=lambda color: counts[color])


def choose_move(
    hand: Sequence[Card],
    top_card: Card,
    stack_accumulation: int,
    mode: str,
    active_color: str
) -> Optional[Move]:
    """
    Pick the best legal card to play.

    Args:
        hand: The bot's cards (never modified)
        top_card: Top of the discard pile
        stack_accumulation: Pending forced-draw total
        mode: 'classic' or 'no-mercy'
        active_color: Color new plays must match

    Returns:
        The chosen move, or None if nothing is playable and the bot must draw
    """
    ctx = PlayContext(
        top_card=top_card,
        active_color=active_color,
        stack_accumulation=stack_accumulation,
        mode=mode,
    )
    candidates = playable_cards(list(hand), ctx)
    if not candidates:
        return None

    # First of equal scores wins
    best = max(candidates, key=lambda card: score_card(card, stack_accumulation))

    chosen_color = choose_color(hand, best) if is_wild(best) else None
    return Move(card=best, chosen_color=chosen_color)


def choose_swap_target(session: GameSession, player_id: str) -> Optional[str]:
    """Pick the opponent with the fewest cards to swap hands with after a 7."""
    others = [p for p in session.players if p.id != player_id]
    if not others:
        return None
    return min(others, key=lambda p: p.card_count).id


class GreedyBot(BaseBot):
    """
    Greedy bot that plays the highest-scoring legal card.

    Strategy:
    - Counter and escalate pending stacks whenever possible
    - Prefer attacks and skips over numbers
    - Hold wilds back while colored cards can be played
    - Swap hands with whoever is closest to winning
    """

    def choose_action(self, session: GameSession) -> Optional[BotAction]:
        """Choose the best action for the current state."""
        if not self.is_my_turn(session):
            return None

        if session.is_swapping:
            target = choose_swap_target(session, self.player_id)
            return BotAction.swap(target) if target else None

        hand = self.get_player_hand(session)
        move = choose_move(
            hand,
            session.top_card,
            session.stack_accumulation,
            session.mode,
            session.active_color,
        )
        if move is None:
            return BotAction.draw()
        return BotAction.play(move.card.id, move.chosen_color)

    def legal_cards(self, session: GameSession) -> List[Card]:
        """Get all cards this bot could play right now."""
        return playable_cards(self.get_player_hand(session), PlayContext.from_session(session))
