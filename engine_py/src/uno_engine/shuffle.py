"""
Deck construction, shuffling and dealing utilities.
"""

import random
from collections import Counter
from dataclasses import replace
from typing import List, Optional, Tuple

from .constants import (
    BLACK, COLORS, MODE_NO_MERCY, TYPE_DISCARD_ALL, TYPE_DRAW10, TYPE_DRAW2,
    TYPE_DRAW4, TYPE_DRAW6, TYPE_NUMBER, TYPE_REVERSE, TYPE_SKIP, TYPE_SKIP_ALL,
    TYPE_WILD, TYPE_X2
)
from .models import ActionCard, Card, GameSession, NumberCard, Player

# (color, type, value, copies)
ManifestEntry = Tuple[str, str, Optional[int], int]


def deck_manifest(mode: str) -> List[ManifestEntry]:
    """
    List the cards of a mode's deck.

    Args:
        mode: 'classic' or 'no-mercy'; anything else is treated as classic

    Returns:
        Manifest entries of (color, type, value, copies)
    """
    manifest: List[ManifestEntry] = []

    if mode == MODE_NO_MERCY:
        for color in COLORS:
            for value in range(10):
                manifest.append((color, TYPE_NUMBER, value, 2))
            manifest.append((color, TYPE_SKIP, None, 3))
            manifest.append((color, TYPE_REVERSE, None, 3))
            manifest.append((color, TYPE_DRAW2, None, 2))
            manifest.append((color, TYPE_DRAW4, None, 2))
            manifest.append((color, TYPE_SKIP_ALL, None, 2))
            manifest.append((color, TYPE_DISCARD_ALL, None, 3))
        manifest.append((BLACK, TYPE_WILD, None, 14))
        manifest.append((BLACK, TYPE_DRAW6, None, 8))
        manifest.append((BLACK, TYPE_DRAW10, None, 4))
        manifest.append((BLACK, TYPE_X2, None, 2))
    else:
        for color in COLORS:
            manifest.append((color, TYPE_NUMBER, 0, 1))
            for value in range(1, 10):
                manifest.append((color, TYPE_NUMBER, value, 2))
            manifest.append((color, TYPE_SKIP, None, 2))
            manifest.append((color, TYPE_REVERSE, None, 2))
            manifest.append((color, TYPE_DRAW2, None, 2))
        manifest.append((BLACK, TYPE_WILD, None, 4))
        manifest.append((BLACK, TYPE_DRAW4, None, 4))

    return manifest


def deck_size(mode: str) -> int:
    """Total number of cards in a mode's deck (108 classic, 168 no-mercy)."""
    return sum(copies for _, _, _, copies in deck_manifest(mode))


def create_deck(mode: str) -> List[Card]:
    """Create an unshuffled deck with ids unique within this deck."""
    deck: List[Card] = []
    counter = 0

    for color, card_type, value, copies in deck_manifest(mode):
        for _ in range(copies):
            card_id = f"card-{counter}"
            counter += 1
            if card_type == TYPE_NUMBER:
                deck.append(NumberCard(id=card_id, color=color, value=value))
            else:
                deck.append(ActionCard(id=card_id, color=color, type=card_type))

    return deck


def shuffle_cards(cards: List[Card], rng: Optional[random.Random] = None) -> List[Card]:
    """
    Shuffle cards with a uniform Fisher-Yates permutation.

    Args:
        cards: Cards to shuffle (left untouched)
        rng: Optional random source for deterministic shuffling

    Returns:
        Shuffled copy of the cards
    """
    shuffled = list(cards)
    (rng or random).shuffle(shuffled)
    return shuffled


def build_deck(mode: str, rng: Optional[random.Random] = None) -> List[Card]:
    """Create and shuffle the deck for a mode."""
    return shuffle_cards(create_deck(mode), rng)


def card_signature(card: Card) -> Tuple[str, str, Optional[int]]:
    return card.color, card.type, getattr(card, 'value', None)


def manifest_counter(mode: str) -> Counter:
    """Multiset of (color, type, value) tuples a mode's deck must contain."""
    expected: Counter = Counter()
    for color, card_type, value, copies in deck_manifest(mode):
        expected[(color, card_type, value)] += copies
    return expected


def deal_cards(deck: List[Card], players: List[Player], hand_size: int):
    """
    Deal ``hand_size`` cards from the front of the deck to every player.

    Each player receives a contiguous block, the way the table deals.
    """
    for player in players:
        player.hand = deck[:hand_size]
        del deck[:hand_size]


def recycle_discard(session: GameSession, rng: Optional[random.Random] = None) -> bool:
    """
    Shuffle all but the top of the discard pile back into the deck.

    Returns:
        True if any cards were recycled
    """
    if len(session.discard_pile) <= 1:
        return False
    top = session.discard_pile[-1]
    returned = [replace(card, played_by=None) for card in session.discard_pile[:-1]]
    session.deck.extend(shuffle_cards(returned, rng))
    session.discard_pile = [top]
    return True


def draw_from_deck(session: GameSession, count: int,
                   rng: Optional[random.Random] = None) -> List[Card]:
    """
    Draw up to ``count`` cards, recycling the discard pile whenever the deck runs out.

    Drawing is best-effort: when deck and discard are both exhausted the
    result holds fewer cards than requested.
    """
    drawn: List[Card] = []
    for _ in range(count):
        if not session.deck and not recycle_discard(session, rng):
            break
        drawn.append(session.deck.pop(0))
    return drawn


def validate_deck_integrity(session: GameSession) -> bool:
    """
    Validate that all cards are accounted for and no duplicates exist.

    Cards abandoned with a mercy-eliminated hand are the documented exception:
    they are subtracted from the expected total.

    Args:
        session: Game session to validate

    Returns:
        True if deck integrity is valid
    """
    ids = [card.id for player in session.players for card in player.hand]
    ids.extend(card.id for card in session.discard_pile)
    ids.extend(card.id for card in session.deck)
    if len(ids) != len(set(ids)):
        return False

    return session.cards_in_play() + session.abandoned_cards == session.total_cards
