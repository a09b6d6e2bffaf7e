from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    db.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Session store shared by HTTP routes, socket handlers and CLI commands
    from focus_together.services.sessions import build_store
    flask_app.extensions['focus_sessions'] = build_store(flask_app.config)

    from focus_together.api.sessions import sessions
    flask_app.register_blueprint(sessions, url_prefix='/api')

    from focus_together.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    from focus_together.identity import load_visitor
    login_manager.user_loader(load_visitor)

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the session tables."""
        import focus_together.models  # noqa: F401
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
        click.echo('Database has been reset!')

    @click.command('sweep-inactive')
    def sweep_inactive_command():
        """Deletes sessions whose owner went quiet and drops idle participants."""
        from focus_together.services.sessions import sweep_inactive
        with flask_app.app_context():
            result = sweep_inactive(flask_app.extensions['focus_sessions'])
        flask_app.logger.info(
            f"[sweep] deleted={len(result['deleted_sessions'])} expired={result['expired_participants']}"
        )
        click.echo(
            f"Deleted {len(result['deleted_sessions'])} abandoned session(s), "
            f"expired {result['expired_participants']} participant(s)."
        )

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(sweep_inactive_command)

    return flask_app
