"""Roll engine: validate a roll request, draw outcomes, lock the roll.

The full outcome goes to the roller only. The room sees a ROLL_LOCKED
entry that says a roll happened, never what it showed.
"""

import random
from typing import Any, Dict, List, Optional, Tuple

from darkmoon.models import ROLL_LOCKED, SECTIONS, FeedEntry, Roll, Session, new_id
from .dice import CORP_COLOR, POOL_COLORS, roll_dice
from .errors import (
    InvalidActionType,
    InvalidCorpCount,
    InvalidDiceCounts,
    InvalidDiceTotal,
    RollInProgress,
    UnknownSection,
)
from .rooms import Channel, RoomRegistry

ACTION_TYPES = (
    'actions.repairShields',
    'actions.repairOutpost',
    'actions.repairLifeSupport',
    'actions.loneWolf',
)

CORP_LABEL = 'corp yellow'
CORP_DICE_COUNTS = (2, 3)

# Inclusive total dice range per pool section
POOL_LIMITS = {
    'action': (1, 3),
    'task': (1, 6),
}


def read_count(value) -> Optional[int]:
    """Coerce a client-supplied count to a non-negative int, or None if it isn't one.

    Missing values count as zero.
    """
    if value is None or value == '':
        return 0
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        count = value
    elif isinstance(value, float):
        if not value.is_integer():
            return None
        count = int(value)
    elif isinstance(value, str):
        try:
            count = int(value.strip())
        except ValueError:
            return None
    else:
        return None
    return count if count >= 0 else None


def read_dice_counts(raw, section: str) -> Dict[str, int]:
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise InvalidDiceCounts(section=section)
    counts = {}
    for color in POOL_COLORS:
        count = read_count(raw.get(color))
        if count is None:
            raise InvalidDiceCounts(section=section)
        counts[color] = count
    return counts


def expand_counts(counts: Dict[str, int]) -> List[str]:
    """Turn per-color counts into a dice list, one color block at a time."""
    dice: List[str] = []
    for color in POOL_COLORS:
        dice.extend([color] * counts.get(color, 0))
    return dice


def _pool_dice(section: str, payload: Dict[str, Any]) -> List[str]:
    counts = read_dice_counts(payload.get('diceCounts'), section)
    if section == 'action' and payload.get('actionType') not in ACTION_TYPES:
        raise InvalidActionType(section=section)
    low, high = POOL_LIMITS[section]
    total = sum(counts.values())
    if total < low or total > high:
        raise InvalidDiceTotal(
            f"{section.capitalize()} rolls must use {low} to {high} dice total.", section=section
        )
    return expand_counts(counts)


def build_dice(section: str, payload: Dict[str, Any]) -> Tuple[List[str], Optional[str]]:
    """Validate the section parameters and return ``(dice list, action label)``."""
    if section == 'action':
        return _pool_dice(section, payload), payload.get('actionType')
    if section == 'task':
        return _pool_dice(section, payload), None
    if section == 'corp':
        count = read_count(payload.get('diceCount'))
        if count not in CORP_DICE_COUNTS:
            raise InvalidCorpCount(section=section)
        return [CORP_COLOR] * count, CORP_LABEL
    raise UnknownSection(section=section)


def request_roll(registry: RoomRegistry, session: Session, payload: Dict[str, Any],
                 channel: Channel, rng=random) -> Roll:
    payload = payload or {}
    section = payload.get('section')
    room = registry.room_for(session, section)
    if section not in SECTIONS:
        raise UnknownSection(section=section)

    with room.lock:
        if room.pending_roll(session.sid, section) is not None:
            raise RollInProgress(section=section)
        dice, action_type = build_dice(section, payload)

        roll = Roll(
            id=new_id(),
            room_code=room.code,
            sid=session.sid,
            player_name=session.player_name,
            section=section,
            action_type=action_type,
            dice=tuple(dice),
            outcomes=tuple(roll_dice(dice, rng)),
        )
        room.rolls[roll.id] = roll

        # Private result first; the broadcast never carries outcomes
        channel.reply('roll_result', roll.to_result())
        entry = FeedEntry.create(
            ROLL_LOCKED,
            session.player_name,
            section=section,
            action=action_type if section == 'action' else None,
            dice_count=len(dice) if section == 'corp' else None,
        )
        registry.append(room, entry, channel)

    registry.logger.info(
        f"[roll-locked] room={room.code} player={session.player_name} section={section} dice={len(dice)}"
    )
    return roll
