"""Server-side dice model.

Every color has six faces of signed modifiers. Outcomes are drawn
uniformly from the face list, so repeated values weight the die.
"""

import random
from typing import Dict, List, Tuple

DICE_FACES: Dict[str, Tuple[int, ...]] = {
    'black': (4, 2, -2, -2, -2, 1),
    'red': (3, 1, -2, -2, -2, -1),
    'blue': (5, 3, -1, -2, -2, -2),
    'yellow': (0, -1, -1, -2, -2, -3),
}

# Colors a player may pick for action and task rolls, in dice-list order
POOL_COLORS: Tuple[str, ...] = ('black', 'red', 'blue')

CORP_COLOR = 'yellow'


def faces(color: str) -> Tuple[int, ...]:
    return DICE_FACES[color]


def roll_die(color: str, rng=random) -> int:
    """Return one outcome for a die of ``color``."""
    return rng.choice(DICE_FACES[color])


def roll_dice(colors: List[str], rng=random) -> List[int]:
    return [roll_die(color, rng) for color in colors]
