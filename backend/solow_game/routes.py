from flask import Blueprint, jsonify, current_app

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Solow game server!'})


@main.route('/health')
def health():
    return jsonify({'status': 'ok'})


@main.route('/api/game/constants')
def game_constants():
    coordinator = current_app.extensions['game_coordinator']
    settings = coordinator.settings
    data = {
        'totalRounds': settings.total_rounds,
        'firstRoundNumber': settings.first_round_number,
        'roundDuration': settings.round_duration,
        'investmentMin': settings.investment_min,
        'decimalPrecision': settings.decimal_precision,
    }
    data.update(coordinator.model.constants())
    return jsonify(data)


@main.route('/api/game/state')
def game_state():
    return jsonify(current_app.extensions['game_coordinator'].state())
