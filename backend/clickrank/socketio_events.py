from flask_socketio import join_room, leave_room, emit
from flask import current_app
from clickrank import socketio
from clickrank.errors import StorageError
from clickrank.services.leaderboard import top_scores

LEADERBOARD_ROOM = 'leaderboard'


def _serialize(rows):
    return [{'name': name, 'best_score': best} for name, best in rows]


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_watch_leaderboard(data=None):
    join_room(LEADERBOARD_ROOM)
    emit('joined', {'room': LEADERBOARD_ROOM})


def handle_unwatch_leaderboard(data=None):
    leave_room(LEADERBOARD_ROOM)
    emit('left', {'room': LEADERBOARD_ROOM})


def handle_ping(data):
    emit('pong', data or {})


def broadcast_leaderboard(size: int) -> None:
    """Push the current top list to every watcher after a result lands."""
    try:
        rows = top_scores(size)
    except StorageError:
        current_app.logger.exception("[leaderboard] broadcast skipped")
        return
    socketio.emit('leaderboard_update', {'top_users': _serialize(rows)}, to=LEADERBOARD_ROOM, namespace='/ws')


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    handlers = {
        'connect': handle_connect,
        'watch_leaderboard': handle_watch_leaderboard,
        'unwatch_leaderboard': handle_unwatch_leaderboard,
        'ping': handle_ping,
    }
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        for event, handler in handlers.items():
            socketio.on_event(event, handler, namespace=namespace)
