from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

NAMESPACE = '/ws'

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ORIGINS', [])
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from solow_game.models import GameSettings
    from solow_game.services.coordinator import GameCoordinator
    from solow_game.services.economy import SolowModel
    from solow_game.services.fanout import Fanout, SocketIOTransport
    from solow_game.services.roster import StudentRoster

    # The countdown task is not spawned in tests; they drive ticks by hand
    run_timer = not flask_app.config.get('TESTING') or flask_app.config.get('ENABLE_SCHEDULER_IN_TESTS')
    coordinator = GameCoordinator(
        settings=GameSettings.from_config(flask_app.config),
        model=SolowModel.from_config(flask_app.config),
        fanout=Fanout(SocketIOTransport(socketio, NAMESPACE)),
        roster=StudentRoster(flask_app.config.get('STUDENT_LIST_PATH')),
        spawn=socketio.start_background_task if run_timer else None,
        sleep=socketio.sleep,
    )
    flask_app.extensions['game_coordinator'] = coordinator

    from solow_game.routes import main
    flask_app.register_blueprint(main)

    from solow_game.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    flask_app.logger.info(
        f"[app-ready] rounds={coordinator.settings.total_rounds} "
        f"duration={coordinator.settings.round_duration}s timer={'on' if run_timer else 'off'}"
    )
    return flask_app
