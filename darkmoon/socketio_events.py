from flask_socketio import join_room, leave_room, emit
from flask import current_app, request
from darkmoon import socketio, rooms
from darkmoon.services.errors import GameError
from darkmoon.services.rolls import request_roll
from darkmoon.services.reveals import reveal_dice
from darkmoon.services.rooms import Channel
from typing import Any, Dict


def room_key(room_code: str) -> str:
    return f"room:{room_code}"


class SocketChannel(Channel):
    """Channel bound to the Socket.IO request being handled."""

    def reply(self, event: str, payload: Dict[str, Any]) -> None:
        emit(event, payload)

    def broadcast(self, room_code: str, event: str, payload: Dict[str, Any]) -> None:
        emit(event, payload, to=room_key(room_code))

    def subscribe(self, room_code: str) -> None:
        join_room(room_key(room_code))

    def unsubscribe(self, room_code: str) -> None:
        leave_room(room_key(room_code))


def _get_sid() -> str:
    return request.sid  # type: ignore


def _reject(event: str, exc: GameError) -> None:
    current_app.logger.info(f"[{event}] sid={_get_sid()} section={exc.section} message={exc.message}")
    emit(event, exc.to_dict())


def handle_connect():
    current_app.logger.debug(f"[connect] sid={_get_sid()}")


def handle_disconnect(reason=None):
    # The connection's rolls stay in the room; a reconnect gets a new sid
    rooms.leave(_get_sid(), SocketChannel())


def handle_join_room(data):
    data = data if isinstance(data, dict) else {}
    try:
        rooms.join(_get_sid(), data.get('roomCode'), data.get('playerName'), SocketChannel())
    except GameError as exc:
        current_app.logger.info(f"[join_error] sid={_get_sid()} message={exc.message}")
        emit('join_error', {'message': exc.message})


def handle_roll_request(data):
    data = data if isinstance(data, dict) else {}
    session = rooms.session_for(_get_sid())
    try:
        request_roll(rooms, session, data, SocketChannel())
    except GameError as exc:
        _reject('roll_error', exc)


def handle_reveal_request(data):
    data = data if isinstance(data, dict) else {}
    session = rooms.session_for(_get_sid())
    try:
        reveal_dice(rooms, session, data, SocketChannel())
    except GameError as exc:
        _reject('reveal_error', exc)


def handle_reset_section(data):
    data = data if isinstance(data, dict) else {}
    session = rooms.session_for(_get_sid())
    try:
        rooms.reset_section(session, data.get('section'), SocketChannel())
    except GameError as exc:
        # No reset ack exists on the wire
        current_app.logger.info(f"[reset-ignored] sid={_get_sid()} message={exc.message}")


HANDLERS = (
    ('connect', handle_connect),
    ('disconnect', handle_disconnect),
    ('join_room', handle_join_room),
    ('roll_request', handle_roll_request),
    ('reveal_request', handle_reveal_request),
    ('reset_section', handle_reset_section),
)


def register_socketio_handlers(namespaces=('/',)) -> None:
    """Register the dice room handlers on every configured namespace."""
    for namespace in namespaces:
        for event, handler in HANDLERS:
            socketio.on_event(event, handler, namespace=namespace)
