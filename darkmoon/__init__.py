from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config
from darkmoon.services.rooms import RoomRegistry

socketio = SocketIO(async_mode=None)
rooms = RoomRegistry()


def _origins(value):
    if value == '*':
        return '*'
    return [origin.strip() for origin in value.split(',') if origin.strip()]


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = _origins(flask_app.config.get('CORS_ORIGINS', '*'))
    CORS(flask_app, origins=allowed_origins)
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Room state lives for the process only
    rooms.init_app(flask_app)

    from darkmoon.main import main
    flask_app.register_blueprint(main)

    from darkmoon.socketio_events import register_socketio_handlers
    namespaces = flask_app.config.get('SOCKETIO_NAMESPACES') or ['/']
    register_socketio_handlers(namespaces)
    flask_app.logger.info(f"[startup] socketio namespaces={','.join(namespaces)}")

    return flask_app
