import threading
import time
import uuid
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional, Tuple

SECTIONS = ('action', 'corp', 'task')

JOINED = 'JOINED'
LEFT = 'LEFT'
RESET = 'RESET'
ROLL_LOCKED = 'ROLL_LOCKED'
ROLL_REVEALED = 'ROLL_REVEALED'


def new_id() -> str:
    return str(uuid.uuid4())


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class Session:
    """Identity of one connection: its id plus the room and name it joined with."""

    sid: str
    room_code: Optional[str] = None
    player_name: Optional[str] = None

    @property
    def joined(self) -> bool:
        return bool(self.room_code and self.player_name)


@dataclass
class Roll:
    id: str
    room_code: str
    sid: str
    player_name: str
    section: str
    action_type: Optional[str]
    dice: Tuple[str, ...]
    outcomes: Tuple[int, ...]
    revealed: List[bool] = field(default_factory=list)
    completed: bool = False
    created_at: int = field(default_factory=now_ms)

    def __post_init__(self):
        if len(self.dice) != len(self.outcomes):
            raise ValueError('dice and outcomes must have the same length')
        if not self.revealed:
            self.revealed = [False] * len(self.dice)

    @property
    def pending(self) -> bool:
        return not self.completed

    def reveal(self, indices: List[int]) -> List[Dict[str, Any]]:
        """Flag ``indices`` as revealed, complete the roll and return the shown dice.

        Callers validate the indices first; unselected dice stay hidden for good.
        """
        for idx in indices:
            self.revealed[idx] = True
        self.completed = True
        return [{'color': self.dice[idx], 'value': self.outcomes[idx]} for idx in indices]

    def to_result(self) -> Dict[str, Any]:
        # Private payload for the roller only
        return {
            'rollId': self.id,
            'section': self.section,
            'actionType': self.action_type,
            'diceList': list(self.dice),
            'outcomes': list(self.outcomes),
        }


@dataclass(frozen=True)
class FeedEntry:
    id: str
    type: str
    player_name: str
    ts: int
    section: Optional[str] = None
    action: Optional[str] = None
    dice_count: Optional[int] = None
    revealed: Optional[Tuple[Tuple[str, int], ...]] = None

    @classmethod
    def create(cls, entry_type: str, player_name: str, **payload) -> 'FeedEntry':
        revealed = payload.pop('revealed', None)
        if revealed is not None:
            revealed = tuple((die['color'], die['value']) for die in revealed)
        return cls(id=new_id(), type=entry_type, player_name=player_name, ts=now_ms(),
                   revealed=revealed, **payload)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'id': self.id,
            'type': self.type,
            'playerName': self.player_name,
            'ts': self.ts,
        }
        if self.section is not None:
            data['section'] = self.section
        if self.action is not None:
            data['action'] = self.action
        if self.dice_count is not None:
            data['diceCount'] = self.dice_count
        if self.revealed is not None:
            data['revealed'] = [{'color': color, 'value': value} for color, value in self.revealed]
        return data


class Room:
    """Membership, bounded feed and rolls of one room code."""

    def __init__(self, code: str, feed_limit: int = 200):
        self.code = code
        self.players: Dict[str, str] = {}  # sid -> display name
        self.feed: Deque[FeedEntry] = deque(maxlen=feed_limit)
        self.rolls: Dict[str, Roll] = {}
        # Pruned completed rolls: roll id -> (owner sid, section)
        self.retired: Dict[str, Tuple[str, str]] = {}
        self.lock = threading.RLock()

    def pending_roll(self, sid: str, section: str) -> Optional[Roll]:
        for roll in self.rolls.values():
            if roll.sid == sid and roll.section == section and roll.pending:
                return roll
        return None

    def prune_completed(self, keep: int) -> int:
        """Drop the oldest completed rolls beyond ``keep``. Returns how many were dropped."""
        if keep <= 0:
            return 0
        completed = [roll_id for roll_id, roll in self.rolls.items() if roll.completed]
        excess = completed[:max(0, len(completed) - keep)]
        for roll_id in excess:
            roll = self.rolls.pop(roll_id)
            self.retired[roll_id] = (roll.sid, roll.section)
        return len(excess)

    def feed_snapshot(self) -> List[Dict[str, Any]]:
        return [entry.to_dict() for entry in self.feed]

    def public_view(self) -> Dict[str, Any]:
        pending = sum(1 for roll in self.rolls.values() if roll.pending)
        return {
            'roomCode': self.code,
            'players': sorted(self.players.values()),
            'feed': self.feed_snapshot(),
            'pendingRolls': pending,
            'completedRolls': len(self.rolls) - pending,
        }
