"""
Base bot interface and utilities.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from ..models import Card, GameSession


@dataclass(frozen=True)
class Move:
    """A card chosen by a bot, with the color to name if it is a wild."""
    card: Card
    chosen_color: Optional[str] = None


class BotAction:
    """Represents a bot action."""

    def __init__(self, action_type: str, **kwargs):
        self.type = action_type
        self.data = kwargs

    def __repr__(self) -> str:
        return f"BotAction({self.type!r}, {self.data!r})"

    @classmethod
    def play(cls, card_id: str, chosen_color: Optional[str] = None) -> 'BotAction':
        """Create a play action."""
        return cls('play', card_id=card_id, chosen_color=chosen_color)

    @classmethod
    def draw(cls) -> 'BotAction':
        """Create a draw action."""
        return cls('draw')

    @classmethod
    def swap(cls, target_id: str) -> 'BotAction':
        """Create a 7-swap target action."""
        return cls('swap', target_id=target_id)


class BaseBot(ABC):
    """Abstract base class for bot players."""

    def __init__(self, player_id: str):
        self.player_id = player_id

    @abstractmethod
    def choose_action(self, session: GameSession) -> Optional[BotAction]:
        """
        Choose an action based on the current game state.

        Args:
            session: Current game session

        Returns:
            BotAction to take, or None if no action needed
        """
        pass

    def get_player_hand(self, session: GameSession) -> List[Card]:
        """Get a copy of this bot's current hand."""
        player = session.get_player(self.player_id)
        return list(player.hand) if player else []

    def is_my_turn(self, session: GameSession) -> bool:
        """Check if it's this bot's turn."""
        return session.current_player_id == self.player_id and not session.is_finished

    def get_other_players(self, session: GameSession) -> List[str]:
        """Get list of other player IDs."""
        return [p.id for p in session.players if p.id != self.player_id]

    def count_cards_in_hand(self, session: GameSession, player_id: str) -> int:
        """Get number of cards in another player's hand."""
        player = session.get_player(player_id)
        return player.card_count if player else 0
