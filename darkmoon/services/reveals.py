"""Reveal engine: show part of a pending roll to the room and complete it."""

from typing import Any, Dict, List

from darkmoon.models import ROLL_REVEALED, FeedEntry, Session
from .errors import AlreadyCompleted, InvalidSelection, NotOwner, RollNotFound
from .rolls import read_count
from .rooms import Channel, RoomRegistry

# Sections whose rolls reveal exactly one die
SINGLE_DIE_SECTIONS = ('action', 'corp')


def read_indices(raw, dice_count: int, section: str) -> List[int]:
    """De-duplicate and bounds-check the requested indices, keeping request order."""
    if not isinstance(raw, (list, tuple)):
        raise InvalidSelection(section=section)
    indices: List[int] = []
    for value in raw:
        idx = read_count(value) if value is not None and value != '' else None
        if idx is None or idx >= dice_count:
            raise InvalidSelection(section=section)
        if idx not in indices:
            indices.append(idx)
    if not indices:
        raise InvalidSelection(section=section)
    return indices


def reveal_dice(registry: RoomRegistry, session: Session, payload: Dict[str, Any],
                channel: Channel) -> Dict[str, Any]:
    """Reveal the selected dice of the caller's roll and return the roller's ack.

    Any successful reveal completes the roll, including a partial one on a
    task roll; the dice left hidden are never shown afterwards.
    """
    payload = payload or {}
    room = registry.room_for(session, payload.get('section'))
    roll_id = payload.get('rollId')

    with room.lock:
        roll = room.rolls.get(roll_id) if isinstance(roll_id, str) else None
        if roll is None:
            retired = room.retired.get(roll_id) if isinstance(roll_id, str) else None
            if retired is None:
                raise RollNotFound(section=payload.get('section'))
            owner_sid, section = retired
            if owner_sid != session.sid:
                raise NotOwner(section=section)
            raise AlreadyCompleted(section=section)
        if roll.sid != session.sid:
            raise NotOwner(section=roll.section)
        if roll.completed:
            raise AlreadyCompleted(section=roll.section)

        indices = read_indices(payload.get('indices'), len(roll.dice), roll.section)
        if roll.section in SINGLE_DIE_SECTIONS and len(indices) != 1:
            raise InvalidSelection('Select exactly one die to reveal.', section=roll.section)

        shown = roll.reveal(indices)
        entry = FeedEntry.create(ROLL_REVEALED, session.player_name, section=roll.section, revealed=shown)
        registry.append(room, entry, channel)

        ack = {'rollId': roll.id, 'section': roll.section, 'revealedIndices': indices}
        channel.reply('roll_revealed_ack', ack)
        dropped = room.prune_completed(registry.max_completed_rolls)

    registry.logger.info(
        f"[roll-revealed] room={room.code} player={session.player_name} section={roll.section} shown={len(indices)}"
    )
    if dropped:
        registry.logger.debug(f"[rolls-pruned] room={room.code} dropped={dropped}")
    return ack
