from flask import Flask, current_app
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

WORLD_EXTENSION_KEY = 'coinclaim.world'


def get_world(app=None):
    """Return the GameWorld bound to ``app`` (defaults to the current app)."""
    app = app or current_app
    return app.extensions[WORLD_EXTENSION_KEY]


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Ensure models are registered before anything touches the database
    from coinclaim import models  # noqa: F401

    # One world per app; engine modules are imported here to avoid import cycles
    from coinclaim.services.engine import GameWorld
    from coinclaim.services.engine.notify import SocketIONotifier
    from coinclaim.services.engine.persistence import DatabaseProgressStore

    world = GameWorld.from_config(
        flask_app.config,
        DatabaseProgressStore(flask_app),
        notifier=SocketIONotifier(socketio),
    )
    flask_app.extensions[WORLD_EXTENSION_KEY] = world

    # Import and register blueprints here
    from coinclaim.main import main
    flask_app.register_blueprint(main)

    from coinclaim.api.world import world_api
    flask_app.register_blueprint(world_api, url_prefix='/api/world')

    # Register Socket.IO event handlers
    from coinclaim.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the progress tables."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Database has been reset!')

    @click.command('progress')
    @click.argument('player_id')
    def progress_command(player_id):
        """Prints the stored companion and currency for a player."""
        from coinclaim.models import StoredValue
        with flask_app.app_context():
            rows = StoredValue.query.filter_by(key=player_id).order_by(StoredValue.store).all()
            if not rows:
                print(f'No stored progress for {player_id}')
            for row in rows:
                data = row.to_dict()
                print(f"{data['store']}: {data['value']}")

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(progress_command)

    if flask_app.config.get('ENGINE_AUTOSTART'):
        from coinclaim.services.engine.scheduler import start_engine_loops
        start_engine_loops(flask_app)

    return flask_app
