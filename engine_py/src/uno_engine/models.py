"""Game models and data structures"""

from dataclasses import dataclass, field, replace
from typing import List, Optional, Union

from .constants import (
    CLOCKWISE, MODE_CLASSIC, MERCY_ELIMINATED, PHASE_ACTIVE, PHASE_CHOOSING_COLOR,
    PHASE_DEALING, PHASE_FINISHED, PHASE_STACKING_CHOICE, PHASE_SWAPPING,
    TYPE_NUMBER, TYPE_X2, is_wild_color
)


@dataclass(frozen=True)
class NumberCard:
    id: str
    color: str
    value: int
    played_by: Optional[str] = None

    @property
    def type(self) -> str:
        return TYPE_NUMBER


@dataclass(frozen=True)
class ActionCard:
    id: str
    color: str
    type: str
    played_by: Optional[str] = None


Card = Union[NumberCard, ActionCard]


def is_wild(card: Card) -> bool:
    """Wild-class card: colour is chosen at play time (the multiplier is excluded)."""
    return is_wild_color(card.color) and card.type != TYPE_X2


def stamp_played_by(card: Card, player_id: str) -> Card:
    return replace(card, played_by=player_id)


def describe_card(card: Card) -> str:
    if isinstance(card, NumberCard):
        return f"{card.color} {card.value}"
    if is_wild_color(card.color):
        return card.type
    return f"{card.color} {card.type}"


@dataclass
class Player:
    id: str
    name: str
    position: str
    hand: List[Card] = field(default_factory=list)
    is_bot: bool = False
    avatar: Optional[str] = None

    @property
    def card_count(self) -> int:
        return len(self.hand)

    def find_card(self, card_id: str) -> Optional[Card]:
        return next((c for c in self.hand if c.id == card_id), None)


@dataclass
class GameEvent:
    type: str  # draw|play|stack|swap|rotate|eliminate
    player_id: str
    count: Optional[int] = None
    card_id: Optional[str] = None
    target_id: Optional[str] = None


@dataclass
class GameSession:
    mode: str = MODE_CLASSIC
    deck: List[Card] = field(default_factory=list)
    discard_pile: List[Card] = field(default_factory=list)
    players: List[Player] = field(default_factory=list)
    current_player_id: str = ''
    direction: str = CLOCKWISE
    stack_accumulation: int = 0
    active_color: Optional[str] = None
    winner: Optional[str] = None
    primary_player_id: Optional[str] = None
    total_cards: int = 0
    started: bool = False
    # Transient signals for consumers
    last_event: Optional[GameEvent] = None
    last_action: Optional[str] = None
    error: Optional[str] = None
    is_choosing_color: bool = False
    pending_card: Optional[Card] = None
    is_swapping: bool = False
    is_stacking_choice: bool = False
    # Bookkeeping
    version: int = 0
    game_log: List[str] = field(default_factory=list)
    eliminated: List[str] = field(default_factory=list)
    # Ring order at deal time; removed seats keep their place for their own view
    seating: List[str] = field(default_factory=list)
    abandoned_cards: int = 0

    @property
    def top_card(self) -> Optional[Card]:
        return self.discard_pile[-1] if self.discard_pile else None

    @property
    def is_finished(self) -> bool:
        return self.winner is not None

    @property
    def is_mercy_eliminated(self) -> bool:
        return self.winner == MERCY_ELIMINATED

    @property
    def phase(self) -> str:
        if not self.started:
            return PHASE_DEALING
        if self.winner is not None:
            return PHASE_FINISHED
        if self.is_choosing_color:
            return PHASE_CHOOSING_COLOR
        if self.is_stacking_choice:
            return PHASE_STACKING_CHOICE
        if self.is_swapping:
            return PHASE_SWAPPING
        return PHASE_ACTIVE

    def get_player(self, player_id: str) -> Optional[Player]:
        return next((p for p in self.players if p.id == player_id), None)

    @property
    def current_player(self) -> Optional[Player]:
        return self.get_player(self.current_player_id)

    def cards_in_play(self) -> int:
        return sum(p.card_count for p in self.players) + len(self.deck) + len(self.discard_pile)

    def log(self, message: str):
        self.game_log.append(message)
        self.last_action = message

    def increment_version(self):
        self.version += 1
