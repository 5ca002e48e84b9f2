"""Game constants and utilities"""

from typing import List

# Game modes
MODE_CLASSIC = 'classic'
MODE_NO_MERCY = 'no-mercy'
MODES = [MODE_CLASSIC, MODE_NO_MERCY]

# Colors
RED = 'red'
YELLOW = 'yellow'
GREEN = 'green'
BLUE = 'blue'
BLACK = 'black'
PURPLE = 'purple'  # legacy wild-class color
COLORS: List[str] = [RED, YELLOW, GREEN, BLUE]
WILD_COLORS = [BLACK, PURPLE]
# Tie-break order used when a bot picks a color for a wild
COLOR_PREFERENCE = [RED, BLUE, GREEN, YELLOW]

# Card types
TYPE_NUMBER = 'number'
TYPE_SKIP = 'skip'
TYPE_REVERSE = 'reverse'
TYPE_DRAW2 = 'draw2'
TYPE_WILD = 'wild'
TYPE_DRAW4 = 'draw4'
TYPE_DRAW6 = 'draw6'
TYPE_DRAW10 = 'draw10'
TYPE_SKIP_ALL = 'skipAll'
TYPE_DISCARD_ALL = 'discardAll'
TYPE_X2 = 'x2'

DRAW_POWER = {
    TYPE_DRAW2: 2,
    TYPE_DRAW4: 4,
    TYPE_DRAW6: 6,
    TYPE_DRAW10: 10,
}

# Directions
CLOCKWISE = 'cw'
COUNTER_CLOCKWISE = 'ccw'

# Seats, in clockwise table order
POSITION_BOTTOM = 'bottom'
POSITION_RIGHT = 'right'
POSITION_TOP = 'top'
POSITION_LEFT = 'left'
TABLE_ORDER = [POSITION_BOTTOM, POSITION_RIGHT, POSITION_TOP, POSITION_LEFT]

# Viewer-relative seat layout by table size
POSITIONS_BY_COUNT = {
    1: [POSITION_BOTTOM],
    2: [POSITION_BOTTOM, POSITION_TOP],
    3: [POSITION_BOTTOM, POSITION_RIGHT, POSITION_TOP],
    4: TABLE_ORDER,
}

# Identities
USER_ID = 'user'
MERCY_ELIMINATED = 'mercy_eliminated'

AVATARS = [
    'https://picsum.photos/104/104',
    'https://picsum.photos/101/101',
    'https://picsum.photos/102/102',
    'https://picsum.photos/103/103',
]

# Session phases
PHASE_DEALING = 'dealing'
PHASE_ACTIVE = 'active'
PHASE_CHOOSING_COLOR = 'choosingColor'
PHASE_STACKING_CHOICE = 'stackingChoice'
PHASE_SWAPPING = 'swapping'
PHASE_FINISHED = 'finished'

# Room status
ROOM_LOBBY = 'lobby'
ROOM_PLAYING = 'playing'

ROOM_CODE_ALPHABET = 'ABCDEFGHJKLMNPQRSTUVWXYZ'

# Stack choices
STACK_CHOICE_TAKE = 'take'
STACK_CHOICE_STACK = 'stack'

# Error codes
ERROR_GAME_OVER = 'GAME_OVER'
ERROR_NOT_YOUR_TURN = 'NOT_YOUR_TURN'
ERROR_OWNERSHIP = 'OWNERSHIP'
ERROR_INVALID_MOVE = 'INVALID_MOVE'
ERROR_CHOICE_PENDING = 'CHOICE_PENDING'
ERROR_NOTHING_PENDING = 'NOTHING_PENDING'
ERROR_INVALID_TARGET = 'INVALID_TARGET'
ERROR_INVALID_COLOR = 'INVALID_COLOR'
ERROR_STACK_PENDING = 'STACK_PENDING'
ERROR_INVALID_CHOICE = 'INVALID_CHOICE'

INVALID_MOVE_MESSAGE = 'Invalid Move! Check color or value.'


def is_wild_color(color: str) -> bool:
    return color in WILD_COLORS


def other_direction(direction: str) -> str:
    return COUNTER_CLOCKWISE if direction == CLOCKWISE else CLOCKWISE
