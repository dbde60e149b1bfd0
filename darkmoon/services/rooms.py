"""Room registry and feed broadcast.

The registry owns every Room and every connection Session. Rooms are
created on first reference and live as long as the process; nothing is
persisted. Each room carries its own lock so a request runs its whole
validate/mutate/emit sequence without interleaving with another request
for the same room, while different rooms proceed independently.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from darkmoon.models import JOINED, LEFT, RESET, SECTIONS, FeedEntry, Room, Session
from .errors import InvalidJoin, NotJoined, UnknownSection


class Channel(ABC):
    """Transport capability handed to the services for one request.

    ``reply`` reaches the requesting connection only; ``broadcast`` reaches
    every connection subscribed to a room.
    """

    @abstractmethod
    def reply(self, event: str, payload: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    def broadcast(self, room_code: str, event: str, payload: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    def subscribe(self, room_code: str) -> None:
        ...

    @abstractmethod
    def unsubscribe(self, room_code: str) -> None:
        ...


def normalize_room_code(value) -> str:
    return str(value if value is not None else '').strip().upper()


def normalize_player_name(value) -> str:
    return str(value if value is not None else '').strip()


class RoomRegistry:
    def __init__(self, app=None):
        self.feed_limit = 200
        self.max_completed_rolls = 500
        self.logger = logging.getLogger(__name__)
        self._rooms: Dict[str, Room] = {}
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()
        if app is not None:
            self.init_app(app)

    def init_app(self, app) -> None:
        self.feed_limit = int(app.config.get('FEED_LIMIT', 200))
        self.max_completed_rolls = int(app.config.get('MAX_COMPLETED_ROLLS', 500))
        self.logger = app.logger
        self.clear()
        app.extensions['darkmoon_rooms'] = self

    def clear(self) -> None:
        with self._lock:
            self._rooms.clear()
            self._sessions.clear()

    # ---- rooms ----

    def get_room(self, code: str) -> Room:
        """Return the room for ``code``, creating an empty one on first access."""
        code = normalize_room_code(code)
        with self._lock:
            room = self._rooms.get(code)
            if room is None:
                room = Room(code, feed_limit=self.feed_limit)
                self._rooms[code] = room
                self.logger.info(f"[room-created] room={code}")
            return room

    def find_room(self, code: str) -> Optional[Room]:
        with self._lock:
            return self._rooms.get(normalize_room_code(code))

    def room_for(self, session: Session, section: Any = None) -> Room:
        if not session.joined:
            raise NotJoined(section=section)
        return self.get_room(session.room_code)

    # ---- sessions ----

    def session_for(self, sid: str) -> Session:
        with self._lock:
            return self._sessions.get(sid) or Session(sid)

    # ---- feed ----

    def append(self, room: Room, entry: FeedEntry, channel: Channel) -> FeedEntry:
        """Push ``entry`` to the room feed and send it to every member."""
        with room.lock:
            room.feed.append(entry)
            channel.broadcast(room.code, 'feed_entry', entry.to_dict())
        return entry

    # ---- membership ----

    def join(self, sid: str, room_code, player_name, channel: Channel) -> Session:
        code = normalize_room_code(room_code)
        name = normalize_player_name(player_name)
        if not code or not name:
            raise InvalidJoin()

        previous = self.session_for(sid)
        if previous.joined:
            self.leave(sid, channel)

        session = Session(sid, code, name)
        room = self.get_room(code)
        with room.lock:
            channel.subscribe(code)
            room.players[sid] = name
            with self._lock:
                self._sessions[sid] = session
            snapshot = room.feed_snapshot()
            channel.reply('room_joined', {'roomCode': code, 'playerName': name, 'feed': snapshot})
            self.append(room, FeedEntry.create(JOINED, name), channel)
        self.logger.info(f"[joined] room={code} player={name} sid={sid}")
        return session

    def leave(self, sid: str, channel: Channel) -> Optional[Session]:
        """Drop the connection's membership. A no-op for connections that never joined."""
        with self._lock:
            session = self._sessions.pop(sid, None)
        if session is None or not session.joined:
            return None
        room = self.get_room(session.room_code)
        with room.lock:
            room.players.pop(sid, None)
            channel.unsubscribe(room.code)
            self.append(room, FeedEntry.create(LEFT, session.player_name), channel)
        self.logger.info(f"[left] room={room.code} player={session.player_name} sid={sid}")
        return session

    def reset_section(self, session: Session, section, channel: Channel) -> FeedEntry:
        """Announce a section reset. Pending rolls are left untouched."""
        room = self.room_for(session, section)
        if section not in SECTIONS:
            raise UnknownSection(section=section)
        entry = self.append(room, FeedEntry.create(RESET, session.player_name, section=section), channel)
        self.logger.info(f"[reset] room={room.code} player={session.player_name} section={section}")
        return entry
