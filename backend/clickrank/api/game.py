from flask import Blueprint, jsonify, current_app
from flask_login import login_required, current_user
from clickrank.errors import StorageError
from clickrank.main import form_data
from clickrank.services.stats import record_result, dashboard_for, EMPTY_STATS, MAX_SCORE
from clickrank.services.leaderboard import top_scores
from clickrank.socketio_events import broadcast_leaderboard


game = Blueprint('game', __name__)


def _parse_score(raw):
    """Accept ints and decimal strings up to MAX_SCORE; anything else (negatives, floats, bools) is rejected."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, str) and raw.strip().isdecimal():
        try:
            raw = int(raw.strip())
        except ValueError:
            return None
    if isinstance(raw, int) and 0 <= raw <= MAX_SCORE:
        return raw
    return None


def _leaderboard_size():
    try:
        return int(current_app.config.get('LEADERBOARD_SIZE', 3))
    except (TypeError, ValueError):
        return 3


@game.route('/game', methods=['GET'])
@login_required
def game_settings():
    return jsonify({'duration_sec': int(current_app.config.get('GAME_DURATION_SEC', 10))})


@game.route('/game/result', methods=['POST'])
@login_required
def submit_result():
    data = form_data()
    score = _parse_score(data.get('score'))
    if score is None:
        return jsonify({'error': 'Score must be a non-negative integer'}), 400

    # StorageError propagates to the app-level 503 handler
    stats = record_result(current_user.user_id, score)
    broadcast_leaderboard(_leaderboard_size())
    return jsonify(stats.to_dict())


@game.route('/dashboard', methods=['GET'])
@login_required
def dashboard():
    user = current_user.user
    try:
        payload = dashboard_for(user)
    except StorageError:
        current_app.logger.exception(f"[dashboard] stats unavailable for user={user.id}")
        payload = {'name': user.name, **EMPTY_STATS}
    return jsonify({'user_stats': payload})


@game.route('/leaderboard', methods=['GET'])
@login_required
def leaderboard():
    try:
        rows = top_scores(_leaderboard_size())
    except StorageError:
        current_app.logger.exception("[leaderboard] ranking unavailable")
        rows = []
    return jsonify({'top_users': [{'name': name, 'best_score': best} for name, best in rows]})
