"""
Rule predicates and play validation.

The predicates are pure: they look only at the card and the context they are
given. Move validation, hand highlighting and the bots all go through them.
"""

from dataclasses import dataclass
from typing import List, Optional

from .constants import (
    BLACK, DRAW_POWER, ERROR_CHOICE_PENDING, ERROR_GAME_OVER, ERROR_INVALID_MOVE,
    ERROR_NOT_YOUR_TURN, ERROR_OWNERSHIP, INVALID_MOVE_MESSAGE, MODE_NO_MERCY,
    TYPE_NUMBER, TYPE_X2
)
from .models import Card, GameSession, NumberCard


@dataclass(frozen=True)
class PlayContext:
    top_card: Card
    active_color: str
    stack_accumulation: int
    mode: str

    @classmethod
    def from_session(cls, session: GameSession) -> 'PlayContext':
        return cls(
            top_card=session.top_card,
            active_color=session.active_color,
            stack_accumulation=session.stack_accumulation,
            mode=session.mode,
        )


class ValidationResult:
    """Result of play validation."""

    def __init__(
        self,
        valid: bool,
        error_code: Optional[str] = None,
        error_message: Optional[str] = None,
        card: Optional[Card] = None
    ):
        self.valid = valid
        self.error_code = error_code
        self.error_message = error_message
        self.card = card

    @classmethod
    def success(cls, card: Card) -> 'ValidationResult':
        """Create a successful validation result."""
        return cls(valid=True, card=card)

    @classmethod
    def error(cls, error_code: str, error_message: str) -> 'ValidationResult':
        """Create an error validation result."""
        return cls(valid=False, error_code=error_code, error_message=error_message)


def draw_power(card: Card) -> int:
    """Cards a draw card forces on the next player; 0 for everything else."""
    return DRAW_POWER.get(card.type, 0)


def can_stack(card: Card, top_card: Card, mode: str) -> bool:
    """
    Check whether ``card`` can counter a pending draw chain topped by ``top_card``.

    In no-mercy the multiplier chains onto any draw card and any draw card
    chains onto the multiplier; draw cards otherwise have to match or beat
    the top card's power. Classic lets any draw card stack on any other.
    """
    card_power = draw_power(card)
    top_power = draw_power(top_card)

    if mode == MODE_NO_MERCY and (card.type == TYPE_X2 or top_card.type == TYPE_X2):
        return card.type == TYPE_X2 or card_power > 0

    if card_power == 0 or top_power == 0:
        return False

    if mode == MODE_NO_MERCY:
        return card_power >= top_power

    return True


def can_play(card: Card, ctx: PlayContext) -> bool:
    """
    Check whether ``card`` is a legal play in the given context.

    Args:
        card: Card the player wants to play
        ctx: Top card, active color, pending stack and mode

    Returns:
        True if the card may be played
    """
    if ctx.stack_accumulation > 0:
        return can_stack(card, ctx.top_card, ctx.mode)

    # The multiplier only extends an active stack
    if card.type == TYPE_X2:
        return False

    top = ctx.top_card
    color_match = card.color == ctx.active_color
    is_wild = card.color == BLACK
    value_match = (
        isinstance(card, NumberCard)
        and isinstance(top, NumberCard)
        and card.value == top.value
    )
    type_match = card.type != TYPE_NUMBER and card.type == top.type

    return color_match or is_wild or value_match or type_match


def playable_cards(hand: List[Card], ctx: PlayContext) -> List[Card]:
    """Filter a hand down to the cards that can be played."""
    return [card for card in hand if can_play(card, ctx)]


def has_counter(hand: List[Card], top_card: Card, mode: str) -> bool:
    """Check if any card in the hand can be stacked on ``top_card``."""
    return any(can_stack(card, top_card, mode) for card in hand)


def validate_play(session: GameSession, player_id: str, card_id: str) -> ValidationResult:
    """
    Validate a card play attempt.

    Args:
        session: Current game session
        player_id: ID of player attempting the play
        card_id: ID of the card being played

    Returns:
        ValidationResult with validation outcome
    """
    if session.is_finished:
        return ValidationResult.error(ERROR_GAME_OVER, "The game is over")

    if session.current_player_id != player_id:
        return ValidationResult.error(
            ERROR_NOT_YOUR_TURN,
            f"It's not your turn (current turn: {session.current_player_id})"
        )

    if session.is_choosing_color or session.is_swapping:
        return ValidationResult.error(
            ERROR_CHOICE_PENDING,
            "Must complete the pending choice before playing"
        )

    player = session.get_player(player_id)
    card = player.find_card(card_id) if player else None
    if card is None:
        return ValidationResult.error(ERROR_OWNERSHIP, f"Player does not hold {card_id}")

    if not can_play(card, PlayContext.from_session(session)):
        return ValidationResult.error(ERROR_INVALID_MOVE, INVALID_MOVE_MESSAGE)

    return ValidationResult.success(card)
