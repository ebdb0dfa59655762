import pytest

from solow_game.commands import (
    COMMAND_EVENTS, COMMAND_TYPES, JoinGame, RegisterTeam, SetManualStart, SubmitInvestment,
    parse_command,
)
from solow_game.errors import InvalidInput
from solow_game.socketio_events import HANDLERS


def test_every_command_has_a_handler():
    assert set(HANDLERS) == set(COMMAND_TYPES)
    assert len(COMMAND_EVENTS) == len(COMMAND_TYPES)


def test_instructor_only_commands():
    restricted = {event for event, c in COMMAND_EVENTS.items() if c.instructor_only}
    assert restricted == {'create_game', 'set_manual_start', 'start_game', 'force_end_game', 'reset_game'}


def test_parse_known_commands():
    assert parse_command('join_game', {'playerName': 'Alice'}) == JoinGame(player_name='Alice')
    assert parse_command('set_manual_start', {'enabled': False}) == SetManualStart(enabled=False)
    assert parse_command('submit_investment', {'investment': '3'}) == SubmitInvestment(investment='3')
    assert parse_command('submit_investment', {'investment': 0, 'isAutoSubmit': True}).is_auto_submit
    assert parse_command('register_team', {'teamName': 'Owls', 'students': ['Ann']}) == \
        RegisterTeam(team_name='Owls', students=['Ann'])


def test_parse_payloadless_command():
    assert parse_command('start_game', None).event == 'start_game'


@pytest.mark.parametrize('event,data', [
    ('fly_away', {}),
    ('join_game', 'Alice'),
    ('set_manual_start', {'enabled': 'no'}),
    ('submit_investment', {}),
])
def test_parse_rejects(event, data):
    with pytest.raises(InvalidInput):
        parse_command(event, data)
