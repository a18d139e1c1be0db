from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

DEMO_USERS = [
    ('Alice', 'alice@example.com', [12, 30]),
    ('Bob', 'bob@example.com', [18]),
    ('Cara', 'cara@example.com', [7, 9, 25]),
]


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    login_manager.login_view = 'main.login_form'
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from clickrank.main import main
    flask_app.register_blueprint(main)

    from clickrank.api.game import game
    flask_app.register_blueprint(game)

    from clickrank.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    from clickrank.errors import StorageError

    @flask_app.errorhandler(StorageError)
    def handle_storage_error(exc):
        flask_app.logger.warning(f"[storage] {exc.kind}: {exc}")
        return jsonify({'error': 'Storage unavailable, please retry', 'retryable': exc.retryable}), 503

    # Flask-Login carries the session token as the user id
    from clickrank.services.sessions import session_binder

    @login_manager.user_loader
    def load_session(token):
        return session_binder.lookup(token)

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from clickrank.services.auth import register
        from clickrank.services.stats import record_result
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            for name, email, scores in DEMO_USERS:
                user = register(name, email, 'password')
                for score in scores:
                    record_result(user.id, score)

            print('Database has been reset and seeded!')

    @click.command('prune-sessions')
    def prune_sessions_command():
        """Deletes expired login sessions."""
        with flask_app.app_context():
            removed = session_binder.prune_expired()
            print(f'Removed {removed} expired session(s).')

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(prune_sessions_command)

    return flask_app


def dispose_engine(flask_app):
    """Release every pooled database connection held by the app's engine."""
    with flask_app.app_context():
        db.engine.dispose()
