import logging

from solow_game import create_app, socketio

app = create_app()
logging.basicConfig(level=app.config.get('LOG_LEVEL', 'INFO'))

if __name__ == '__main__':
    # Use SocketIO server to enable websockets in dev
    socketio.run(app, debug=True)
