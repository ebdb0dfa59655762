import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


def _env_bool(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    CORS_ORIGINS = [o for o in os.environ.get(
        'CORS_ORIGINS',
        'http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000',
    ).split(',') if o]
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # Round timing (seconds)
    TOTAL_ROUNDS = int(os.environ.get('TOTAL_ROUNDS', '10'))
    ROUND_DURATION_SEC = int(os.environ.get('ROUND_DURATION_SEC', '60'))
    FIRST_ROUND_NUMBER = int(os.environ.get('FIRST_ROUND_NUMBER', '1'))
    TIMER_TICK_SEC = float(os.environ.get('TIMER_TICK_SEC', '1'))
    # Optional: heartbeat interval for timer logs (ticks). 0 disables.
    TIMER_HEARTBEAT_SEC = int(os.environ.get('TIMER_HEARTBEAT_SEC', '0'))
    # Solow model constants
    INITIAL_CAPITAL = float(os.environ.get('INITIAL_CAPITAL', '100'))
    ALPHA = float(os.environ.get('ALPHA', '0.3'))
    DEPRECIATION_RATE = float(os.environ.get('DEPRECIATION_RATE', '0.1'))
    INVESTMENT_MIN = float(os.environ.get('INVESTMENT_MIN', '0'))
    DECIMAL_PRECISION = int(os.environ.get('DECIMAL_PRECISION', '1'))
    # Lobby
    MAX_PLAYERS = int(os.environ.get('MAX_PLAYERS', '100'))
    AUTO_START_ENABLED = _env_bool('AUTO_START_ENABLED', False)
    AUTO_START_PLAYERS = int(os.environ.get('AUTO_START_PLAYERS', '2'))
    # Class list for team registration, one name per line
    STUDENT_LIST_PATH = os.environ.get('STUDENT_LIST_PATH') or os.path.join(BASE_DIR, 'data', 'students.txt')
