"""Main game engine: the turn and stacking state machine for one game session"""

import logging
import random
from typing import Callable, List, Optional

from .bots.greedy import choose_color
from .constants import (
    AVATARS, COLORS, ERROR_CHOICE_PENDING, ERROR_GAME_OVER, ERROR_INVALID_CHOICE,
    ERROR_INVALID_COLOR, ERROR_INVALID_MOVE, ERROR_INVALID_TARGET, ERROR_NOT_YOUR_TURN,
    ERROR_NOTHING_PENDING, ERROR_STACK_PENDING, MERCY_ELIMINATED, MODE_CLASSIC,
    MODE_NO_MERCY, MODES, POSITION_BOTTOM, POSITION_LEFT, POSITION_RIGHT, POSITION_TOP,
    STACK_CHOICE_STACK, STACK_CHOICE_TAKE, TYPE_SKIP_ALL, TYPE_X2, USER_ID, is_wild_color
)
from .effects import apply_discard_all, apply_reverse, apply_stack, resolve_active_color
from .exchange import rotate_hands, swap_hands
from .models import (
    Card, GameEvent, GameSession, NumberCard, Player, describe_card, is_wild, stamp_played_by
)
from .rules import RuleConfig, default_rules
from .scheduler import ManualScheduler, Scheduler
from .shuffle import build_deck, deal_cards, deck_size, draw_from_deck, shuffle_cards
from .turns import advance, seating_ring, steps_for
from .validate import PlayContext, has_counter, playable_cards, validate_play

logger = logging.getLogger(__name__)

Listener = Callable[[GameSession], None]


class ActionResult:
    """Outcome of an engine action. Failed actions leave the game untouched."""

    def __init__(self, success: bool, error_code: Optional[str] = None, message: str = ''):
        self.success = success
        self.error_code = error_code
        self.message = message

    def __bool__(self) -> bool:
        return self.success

    def __repr__(self) -> str:
        return f"ActionResult(success={self.success}, error_code={self.error_code!r}, message={self.message!r})"

    @classmethod
    def ok(cls, message: str = '') -> 'ActionResult':
        return cls(True, message=message)

    @classmethod
    def fail(cls, error_code: str, message: str = '') -> 'ActionResult':
        return cls(False, error_code=error_code, message=message)


def default_players() -> List[Player]:
    """The local table: the human at the bottom, three bots clockwise from them."""
    return [
        Player(id=USER_ID, name='You', position=POSITION_BOTTOM, avatar=AVATARS[0]),
        Player(id='bot1', name='Bot 1', position=POSITION_RIGHT, is_bot=True, avatar=AVATARS[1]),
        Player(id='bot2', name='Bot 2', position=POSITION_TOP, is_bot=True, avatar=AVATARS[2]),
        Player(id='bot3', name='Bot 3', position=POSITION_LEFT, is_bot=True, avatar=AVATARS[3]),
    ]


class UnoEngine:
    """
    Owns one game session and is the only thing that mutates it.

    Every public action checks that the caller is the player to act, applies
    the rules, and either commits (version bump, listeners notified) or
    returns a failed ActionResult without touching the game.
    """

    def __init__(
        self,
        rules: RuleConfig = default_rules,
        scheduler: Optional[Scheduler] = None,
        rng: Optional[random.Random] = None
    ):
        self.rules = rules
        self.scheduler = scheduler or ManualScheduler()
        self.rng = rng or random.Random()
        self.session = GameSession()
        self._listeners: List[Listener] = []
        self._generation = 0
        self._turn_serial = 0
        self._error_serial = 0

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, listener: Listener):
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _commit(self):
        self.session.increment_version()
        for listener in list(self._listeners):
            try:
                listener(self.session)
            except Exception:
                logger.exception("Session listener failed")

    # ------------------------------------------------------------------
    # Game setup
    # ------------------------------------------------------------------

    def initialize_game(
        self,
        mode: str = MODE_CLASSIC,
        players: Optional[List[Player]] = None,
        primary_player_id: Optional[str] = USER_ID
    ) -> GameSession:
        """
        Start a new game, fully replacing the previous session.

        Args:
            mode: 'classic' or 'no-mercy' (anything else plays classic)
            players: Roster in seating order; defaults to the local table
            primary_player_id: Seat whose mercy overflow ends the game

        Returns:
            The new session
        """
        if mode not in MODES:
            logger.warning(f"Unknown mode {mode!r}, playing {MODE_CLASSIC}")
            mode = MODE_CLASSIC

        # Timers of the previous session must never touch the new one
        self.scheduler.cancel_all()
        self._generation += 1

        roster = [
            Player(id=p.id, name=p.name, position=p.position, is_bot=p.is_bot, avatar=p.avatar)
            for p in (players or default_players())
        ]

        deck = build_deck(mode, self.rng)
        deal_cards(deck, roster, self.rules.hand_size)

        opener = deck.pop(0)
        while is_wild_color(opener.color) or opener.type == TYPE_X2:
            deck.append(opener)
            deck = shuffle_cards(deck, self.rng)
            opener = deck.pop(0)

        if primary_player_id not in {p.id for p in roster}:
            primary_player_id = None

        self.session = GameSession(
            mode=mode,
            deck=deck,
            discard_pile=[opener],
            players=roster,
            current_player_id=roster[0].id,
            active_color=opener.color,
            primary_player_id=primary_player_id,
            total_cards=deck_size(mode),
            started=True,
            seating=seating_ring(roster),
        )
        self.session.log(f"Game started ({mode}), {roster[0].name} goes first")
        logger.info(f"Started {mode} game with {len(roster)} players, opener {describe_card(opener)}")

        self._commit()
        return self.session

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def play_context(self) -> PlayContext:
        return PlayContext.from_session(self.session)

    def playable_cards(self, player_id: str) -> List[Card]:
        """Cards the player could legally play right now (empty when it is not their turn)."""
        session = self.session
        player = session.get_player(player_id)
        if not player or session.is_finished or session.current_player_id != player_id:
            return []
        return playable_cards(player.hand, self.play_context())

    # ------------------------------------------------------------------
    # Player actions
    # ------------------------------------------------------------------

    def play_card(self, player_id: str, card_id: str, chosen_color: Optional[str] = None) -> ActionResult:
        """
        Play a card from the acting player's hand.

        Human players playing a wild without a color pause the game until
        ``confirm_color_selection``; bots pick their color immediately.
        """
        validation = validate_play(self.session, player_id, card_id)
        if not validation.valid:
            if validation.error_code == ERROR_INVALID_MOVE:
                self._report_error(validation.error_message)
            else:
                logger.debug(f"Ignored play from {player_id}: {validation.error_message}")
            return ActionResult.fail(validation.error_code, validation.error_message)

        session = self.session
        player = session.current_player
        card = validation.card

        if is_wild(card):
            if chosen_color is None and player.is_bot:
                chosen_color = choose_color(player.hand, card)
            if chosen_color is None:
                session.is_choosing_color = True
                session.pending_card = card
                session.is_stacking_choice = False
                self._commit()
                return ActionResult.ok("Choose a color")
            if chosen_color not in COLORS:
                return ActionResult.fail(ERROR_INVALID_COLOR, f"{chosen_color!r} is not a playable color")

        session.is_stacking_choice = False
        self._apply_card(player, card, chosen_color)
        self._commit()
        return ActionResult.ok(f"{player.name} played {describe_card(card)}")

    def confirm_color_selection(self, color: str) -> ActionResult:
        """Complete a paused wild play with the chosen color."""
        session = self.session
        if session.is_finished or not session.is_choosing_color or session.pending_card is None:
            return ActionResult.fail(ERROR_NOTHING_PENDING, "No card is waiting for a color")
        if color not in COLORS:
            return ActionResult.fail(ERROR_INVALID_COLOR, f"{color!r} is not a playable color")

        player = session.current_player
        card = session.pending_card
        session.is_choosing_color = False
        session.pending_card = None

        if player is None or player.find_card(card.id) is None:
            self._commit()
            return ActionResult.fail(ERROR_NOTHING_PENDING, "The pending card is no longer in hand")

        self._apply_card(player, card, color)
        self._commit()
        return ActionResult.ok(f"{player.name} chose {color}")

    def draw_card(self, player_id: str, forced_count: Optional[int] = None) -> ActionResult:
        """
        Draw for the acting player: ``forced_count``, else the pending stack, else one card.

        Drawing always ends the turn.
        """
        rejected = self._check_turn(player_id)
        if rejected:
            return rejected

        drawn = self._draw_for_current(forced_count)
        self._commit()
        return ActionResult.ok(f"Drew {drawn} cards")

    def pass_turn(self, player_id: str) -> ActionResult:
        """Hand the turn to the next seat without any other effect."""
        rejected = self._check_turn(player_id)
        if rejected:
            return rejected
        if self.session.stack_accumulation > 0:
            return ActionResult.fail(ERROR_STACK_PENDING, "A pending stack must be countered or drawn")

        self._advance(1)
        self._commit()
        return ActionResult.ok("Passed")

    def resolve_stack_choice(self, player_id: str, choice: str) -> ActionResult:
        """
        Answer the stacking prompt.

        'take' draws the whole pending stack and ends the turn; 'stack' only
        closes the prompt so the player can play a counter card.
        """
        session = self.session
        if session.is_finished or not session.is_stacking_choice:
            return ActionResult.fail(ERROR_NOTHING_PENDING, "No stacking choice is pending")
        if session.current_player_id != player_id:
            return ActionResult.fail(ERROR_NOT_YOUR_TURN, "It's not your turn")

        if choice == STACK_CHOICE_TAKE:
            drawn = self._draw_for_current(session.stack_accumulation)
            self._commit()
            return ActionResult.ok(f"Took {drawn} cards")
        if choice == STACK_CHOICE_STACK:
            session.is_stacking_choice = False
            self._commit()
            return ActionResult.ok("Play a card to stack")
        return ActionResult.fail(ERROR_INVALID_CHOICE, f"Unknown stack choice {choice!r}")

    def swap_hands(self, player_id: str, target_id: str) -> ActionResult:
        """Finish a 7: exchange hands with ``target_id`` and pass the turn."""
        session = self.session
        if session.is_finished or not session.is_swapping:
            return ActionResult.fail(ERROR_NOTHING_PENDING, "No swap is pending")
        if session.current_player_id != player_id:
            return ActionResult.fail(ERROR_NOT_YOUR_TURN, "It's not your turn")
        if not swap_hands(session, player_id, target_id):
            return ActionResult.fail(ERROR_INVALID_TARGET, f"Cannot swap with {target_id}")

        session.is_swapping = False
        self._advance(1)
        self._commit()
        return ActionResult.ok("Hands swapped")

    def clear_error(self):
        if self.session.error is not None:
            self.session.error = None
            self._commit()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check_turn(self, player_id: str) -> Optional[ActionResult]:
        session = self.session
        if not session.started or session.is_finished:
            return ActionResult.fail(ERROR_GAME_OVER, "The game is over")
        if session.current_player_id != player_id:
            return ActionResult.fail(ERROR_NOT_YOUR_TURN, "It's not your turn")
        if session.is_choosing_color or session.is_swapping:
            return ActionResult.fail(ERROR_CHOICE_PENDING, "Must complete the pending choice first")
        return None

    def _report_error(self, message: str):
        self.session.error = message
        self._error_serial += 1
        serial = self._error_serial
        generation = self._generation
        self.scheduler.call_later(
            self.rules.error_clear_delay,
            lambda: self._expire_error(generation, serial),
            name='clear-error'
        )
        self._commit()

    def _expire_error(self, generation: int, serial: int):
        if generation == self._generation and serial == self._error_serial:
            self.clear_error()

    def _apply_card(self, player: Player, card: Card, chosen_color: Optional[str]):
        """Resolve a validated play: discard, color, stack, win check, then effects and turn."""
        session = self.session

        player.hand = [c for c in player.hand if c.id != card.id]
        session.discard_pile.append(stamp_played_by(card, player.id))
        resolve_active_color(session, card, chosen_color)
        apply_stack(session, card)

        session.last_event = GameEvent(type='play', player_id=player.id, card_id=card.id)
        played = describe_card(card)
        if chosen_color and is_wild(card):
            played += f" ({chosen_color})"
        session.log(f"{player.name} played {played}")

        if not player.hand:
            self._declare_winner(player)
            return

        apply_reverse(session, card)

        ring = seating_ring(session.players)
        if self.rules.seven_zero and isinstance(card, NumberCard):
            if card.value == 7:
                session.is_swapping = True
                session.log(f"{player.name} must pick a player to swap hands with")
            elif card.value == 0:
                rotate_hands(session, ring, session.direction)

        if session.mode == MODE_NO_MERCY and apply_discard_all(session, player, card):
            if not player.hand:
                self._declare_winner(player)
                return

        if card.type == TYPE_SKIP_ALL:
            # Same player goes again
            return
        if session.is_swapping:
            return

        self._advance(steps_for(card, len(ring)))

    def _advance(self, steps: int):
        session = self.session
        ring = seating_ring(session.players)
        session.current_player_id = advance(ring, session.current_player_id, session.direction, steps)
        session.is_stacking_choice = False
        self._turn_serial += 1
        self._resolve_pending_stack()

    def _resolve_pending_stack(self):
        """Decide what the new player to act faces while a stack is pending."""
        session = self.session
        if session.stack_accumulation <= 0 or session.is_finished:
            return

        player = session.current_player
        if has_counter(player.hand, session.top_card, session.mode):
            if not player.is_bot:
                session.is_stacking_choice = True
            # Bots see the stack through can_play and counter or draw themselves
            return

        generation, serial = self._generation, self._turn_serial
        self.scheduler.call_later(
            self.rules.auto_hit_delay,
            lambda: self._auto_hit(generation, serial, player.id),
            name='auto-hit'
        )

    def _auto_hit(self, generation: int, serial: int, player_id: str):
        session = self.session
        if generation != self._generation or serial != self._turn_serial:
            return
        if session.is_finished or session.stack_accumulation <= 0:
            return
        if session.current_player_id != player_id:
            return
        logger.debug(f"Auto-hit: {player_id} takes {session.stack_accumulation}")
        self._draw_for_current(None)
        self._commit()

    def _draw_for_current(self, forced_count: Optional[int]) -> int:
        session = self.session
        player = session.current_player
        amount = forced_count or session.stack_accumulation or 1

        drawn = draw_from_deck(session, amount, self.rng)
        player.hand = player.hand + drawn
        session.is_stacking_choice = False
        session.last_event = GameEvent(type='draw', player_id=player.id, count=len(drawn))
        session.log(f"{player.name} drew {len(drawn)} cards")

        if session.mode == MODE_NO_MERCY and player.card_count > self.rules.mercy_limit:
            self._apply_mercy_rule(player)
            return len(drawn)

        session.stack_accumulation = 0
        self._advance(1)
        return len(drawn)

    def _apply_mercy_rule(self, player: Player):
        session = self.session
        session.stack_accumulation = 0

        if player.id == session.primary_player_id:
            session.winner = MERCY_ELIMINATED
            session.log(f"{player.name} holds {player.card_count} cards and is out by the mercy rule")
            logger.info(f"Mercy rule ended the game for {player.id}")
            return

        session.eliminated.append(player.id)
        session.last_event = GameEvent(type='eliminate', player_id=player.id, count=player.card_count)
        session.log(f"{player.name} was eliminated by the mercy rule")
        logger.info(f"Mercy rule eliminated {player.id} with {player.card_count} cards")
        self._drop_player(player)

    def _drop_player(self, player: Player):
        """Take a seat out of the ring; its hand leaves circulation."""
        session = self.session
        was_current = session.current_player_id == player.id
        ring = seating_ring(session.players)
        next_id = advance(ring, player.id, session.direction, 1)

        session.players = [p for p in session.players if p.id != player.id]
        session.abandoned_cards += player.card_count

        if session.is_finished or not session.players:
            return
        if len(session.players) == 1:
            self._declare_winner(session.players[0])
            return
        if was_current:
            session.current_player_id = next_id
            session.is_choosing_color = False
            session.pending_card = None
            session.is_swapping = False
            session.is_stacking_choice = False
            self._turn_serial += 1
            self._resolve_pending_stack()

    def remove_player(self, player_id: str) -> ActionResult:
        """Remove a seat that left the table mid-game."""
        session = self.session
        player = session.get_player(player_id)
        if not session.started or player is None:
            return ActionResult.fail(ERROR_INVALID_TARGET, f"{player_id} is not seated")
        if session.is_finished:
            # A finished table keeps its roster so the winner stays visible
            return ActionResult.fail(ERROR_GAME_OVER, "Game is over")

        session.log(f"{player.name} left the game")
        self._drop_player(player)
        self._commit()
        return ActionResult.ok(f"{player.name} left")

    def _declare_winner(self, player: Player):
        session = self.session
        session.winner = player.id
        session.is_swapping = False
        session.is_stacking_choice = False
        session.is_choosing_color = False
        session.pending_card = None
        session.log(f"{player.name} wins!")
        logger.info(f"Player {player.id} won the {session.mode} game")
