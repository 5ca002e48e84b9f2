"""
Session host: drives bot turns for one engine and publishes every change.
"""

import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, List, Optional, Set

from .bots.base import BotAction
from .bots.greedy import GreedyBot
from .constants import MODE_CLASSIC, USER_ID
from .engine import ActionResult, UnoEngine, default_players
from .models import GameSession, Player

logger = logging.getLogger(__name__)

Publisher = Callable[[GameSession], Any]


class SessionHost:
    """
    Owns the bot timing around an engine.

    After every committed change the host looks at who is to act; if it is a
    bot it schedules the move after ``bot_think_delay`` plus a safety retry
    after ``bot_safety_delay``. Both timers capture the session version and
    the bot's id and do nothing if either has moved on by the time they fire.
    """

    def __init__(self, engine: UnoEngine, publish: Optional[Publisher] = None):
        self.engine = engine
        self.publish = publish
        self.bots: Dict[str, GreedyBot] = {}
        self.publish_tasks: Set[asyncio.Future] = set()
        engine.add_listener(self._on_change)

    @property
    def session(self) -> GameSession:
        return self.engine.session

    @property
    def rules(self):
        return self.engine.rules

    def start(
        self,
        mode: str = MODE_CLASSIC,
        players: Optional[List[Player]] = None,
        primary_player_id: Optional[str] = USER_ID
    ) -> GameSession:
        """Start a new game and prime bot instances for every bot seat."""
        session_players = players if players is not None else default_players()
        self.bots = {p.id: GreedyBot(p.id) for p in session_players if p.is_bot}
        return self.engine.initialize_game(mode, session_players, primary_player_id)

    def stop(self):
        """Cancel every pending timer and stop publishing."""
        self.engine.scheduler.cancel_all()
        self.engine.remove_listener(self._on_change)

    def _on_change(self, session: GameSession):
        self.schedule_bot_turn()
        if self.publish is None:
            return
        outcome = self.publish(session)
        if inspect.isawaitable(outcome):
            self._spawn_publish(outcome)

    def _spawn_publish(self, outcome):
        """Run an async publish on the running loop, keeping a reference until it finishes."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(outcome):
                outcome.close()
            raise RuntimeError("An async publish callback needs a running event loop") from None
        task = asyncio.ensure_future(outcome, loop=loop)
        self.publish_tasks.add(task)
        task.add_done_callback(self._publish_done)

    def _publish_done(self, task: asyncio.Future):
        self.publish_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Publishing version {self.session.version} failed", exc_info=error)

    def schedule_bot_turn(self):
        """Queue the think and safety timers if a bot is to act."""
        session = self.session
        if not session.started or session.is_finished or session.is_choosing_color:
            return
        player = session.current_player
        if player is None or not player.is_bot:
            return

        version = session.version
        scheduler = self.engine.scheduler
        scheduler.call_later(
            self.rules.bot_think_delay,
            lambda: self._bot_turn(version, player.id),
            name=f'bot-think:{player.id}'
        )
        scheduler.call_later(
            self.rules.bot_safety_delay,
            lambda: self._bot_turn(version, player.id, retry=True),
            name=f'bot-safety:{player.id}'
        )

    def _bot_turn(self, version: int, player_id: str, retry: bool = False):
        session = self.session
        if session.version != version or session.current_player_id != player_id:
            return
        if session.is_finished:
            return
        if retry:
            logger.warning(f"Bot {player_id} stalled at version {version}, retrying")

        bot = self.bots.setdefault(player_id, GreedyBot(player_id))
        action = bot.choose_action(session)
        if action is None:
            return

        result = self.apply_bot_action(player_id, action)
        if not result.success:
            logger.warning(f"Bot {player_id} move {action} failed ({result.error_code}), drawing instead")
            self.engine.draw_card(player_id)

    def apply_bot_action(self, player_id: str, action: BotAction) -> ActionResult:
        """Feed a bot decision into the engine as if the player had made it."""
        if action.type == 'play':
            return self.engine.play_card(player_id, action.data['card_id'], action.data.get('chosen_color'))
        if action.type == 'swap':
            return self.engine.swap_hands(player_id, action.data['target_id'])
        return self.engine.draw_card(player_id)
