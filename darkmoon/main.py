from flask import Blueprint, jsonify
from darkmoon import rooms

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return 'Dark Moon Dice server running'


@main.route('/api/rooms/<string:room_code>', methods=['GET'])
def get_room(room_code):
    """
    Returns the public view of a room: members, feed and roll counts.
    Outcomes of pending rolls are never included.
    """
    room = rooms.find_room(room_code)
    if room is None:
        return jsonify({'error': 'Room not found'}), 404
    with room.lock:
        return jsonify(room.public_view()), 200
