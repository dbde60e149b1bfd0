import os


def _split(value):
    return [item.strip() for item in value.split(',') if item.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dark-moon-dev-secret'
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', '4000'))
    # '*' or a comma-separated list of origins
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')
    # Namespaces the Socket.IO handlers are bound to. The browser client uses '/'.
    SOCKETIO_NAMESPACES = _split(os.environ.get('SOCKETIO_NAMESPACES', '/,/ws'))
    # Feed entries kept per room (oldest evicted first)
    FEED_LIMIT = int(os.environ.get('FEED_LIMIT', '200'))
    # Completed rolls kept per room for AlreadyCompleted answers. 0 keeps all.
    MAX_COMPLETED_ROLLS = int(os.environ.get('MAX_COMPLETED_ROLLS', '500'))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
