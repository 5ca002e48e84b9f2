"""
Tests for the rule predicates and play validation.
"""

from uno_engine.constants import (
    BLACK, BLUE, ERROR_CHOICE_PENDING, ERROR_GAME_OVER, ERROR_INVALID_MOVE,
    ERROR_NOT_YOUR_TURN, ERROR_OWNERSHIP, GREEN, MODE_CLASSIC, MODE_NO_MERCY, PURPLE,
    RED, TYPE_DRAW10, TYPE_DRAW2, TYPE_DRAW4, TYPE_DRAW6, TYPE_REVERSE, TYPE_SKIP,
    TYPE_WILD, TYPE_X2, YELLOW
)
from uno_engine.models import ActionCard, GameSession, NumberCard, Player
from uno_engine.validate import (
    PlayContext, can_play, can_stack, draw_power, has_counter, playable_cards, validate_play
)


def action(color, card_type, card_id=None):
    return ActionCard(id=card_id or f"{color}-{card_type}", color=color, type=card_type)


def number(color, value, card_id=None):
    return NumberCard(id=card_id or f"{color}-{value}", color=color, value=value)


def ctx(top, active_color=None, stack=0, mode=MODE_CLASSIC):
    return PlayContext(
        top_card=top,
        active_color=active_color or top.color,
        stack_accumulation=stack,
        mode=mode,
    )


def test_draw_power():
    assert draw_power(action(RED, TYPE_DRAW2)) == 2
    assert draw_power(action(BLACK, TYPE_DRAW4)) == 4
    assert draw_power(action(BLACK, TYPE_DRAW6)) == 6
    assert draw_power(action(BLACK, TYPE_DRAW10)) == 10
    assert draw_power(action(RED, TYPE_SKIP)) == 0
    assert draw_power(number(RED, 2)) == 0


def test_no_mercy_stacking_escalates():
    assert can_stack(action(BLACK, TYPE_DRAW6), action(RED, TYPE_DRAW4), MODE_NO_MERCY)
    assert can_stack(action(RED, TYPE_DRAW4), action(BLUE, TYPE_DRAW4), MODE_NO_MERCY)
    assert not can_stack(action(RED, TYPE_DRAW2), action(BLACK, TYPE_DRAW10), MODE_NO_MERCY)


def test_classic_stacking_has_no_escalation():
    assert can_stack(action(RED, TYPE_DRAW2), action(BLACK, TYPE_DRAW4), MODE_CLASSIC)


def test_multiplier_chains_with_draw_cards():
    x2 = action(BLACK, TYPE_X2)
    assert can_stack(x2, action(BLACK, TYPE_DRAW10), MODE_NO_MERCY)
    assert can_stack(action(RED, TYPE_DRAW2), x2, MODE_NO_MERCY)
    assert can_stack(x2, x2, MODE_NO_MERCY)
    assert not can_stack(number(RED, 4), x2, MODE_NO_MERCY)


def test_non_draw_cards_never_stack():
    assert not can_stack(action(RED, TYPE_SKIP), action(RED, TYPE_DRAW2), MODE_CLASSIC)
    assert not can_stack(action(RED, TYPE_DRAW2), action(RED, TYPE_SKIP), MODE_CLASSIC)


def test_pending_stack_only_allows_counters():
    top = action(RED, TYPE_DRAW2)
    assert not can_play(number(RED, 5), ctx(top, stack=2))
    assert not can_play(action(BLACK, TYPE_WILD), ctx(top, stack=2))
    assert can_play(action(BLUE, TYPE_DRAW2), ctx(top, stack=2))


def test_multiplier_never_opens():
    assert not can_play(action(BLACK, TYPE_X2), ctx(number(RED, 3)))


def test_matching_rules():
    top = number(RED, 7)
    assert can_play(number(RED, 1), ctx(top))
    assert can_play(number(BLUE, 7), ctx(top))
    assert can_play(action(BLACK, TYPE_WILD), ctx(top))
    assert not can_play(number(BLUE, 1), ctx(top))
    assert not can_play(action(BLUE, TYPE_SKIP), ctx(top))


def test_action_type_matches_action_type():
    top = action(RED, TYPE_REVERSE)
    assert can_play(action(GREEN, TYPE_REVERSE), ctx(top))
    assert not can_play(action(GREEN, TYPE_SKIP), ctx(top))


def test_active_color_overrides_top_color():
    top = action(BLACK, TYPE_WILD)
    assert can_play(number(YELLOW, 2), ctx(top, active_color=YELLOW))
    assert not can_play(number(RED, 2), ctx(top, active_color=YELLOW))


def test_purple_legacy_wild_is_not_match_anything():
    """Only black cards match anything; purple is wild-class for colour choice only."""
    assert not can_play(action(PURPLE, TYPE_WILD), ctx(number(RED, 3)))


def test_playable_cards_and_counters():
    hand = [number(RED, 1), number(BLUE, 2), action(BLUE, TYPE_DRAW2)]
    assert playable_cards(hand, ctx(number(RED, 9))) == [hand[0]]
    assert has_counter(hand, action(RED, TYPE_DRAW2), MODE_CLASSIC)
    assert not has_counter(hand[:2], action(RED, TYPE_DRAW2), MODE_CLASSIC)


def make_session():
    top = number(RED, 3, "top")
    return GameSession(
        players=[
            Player(id="user", name="You", position="bottom", hand=[number(RED, 5, "r5"), number(BLUE, 9, "b9")]),
            Player(id="bot1", name="Bot 1", position="top", is_bot=True, hand=[number(RED, 6, "r6")]),
        ],
        discard_pile=[top],
        current_player_id="user",
        active_color=RED,
        started=True,
    )


def test_validate_play_success():
    result = validate_play(make_session(), "user", "r5")
    assert result.valid
    assert result.card.id == "r5"


def test_validate_play_errors():
    session = make_session()
    assert validate_play(session, "bot1", "r6").error_code == ERROR_NOT_YOUR_TURN
    assert validate_play(session, "user", "r6").error_code == ERROR_OWNERSHIP
    assert validate_play(session, "user", "b9").error_code == ERROR_INVALID_MOVE

    session.is_swapping = True
    assert validate_play(session, "user", "r5").error_code == ERROR_CHOICE_PENDING

    session.winner = "bot1"
    assert validate_play(session, "user", "r5").error_code == ERROR_GAME_OVER
