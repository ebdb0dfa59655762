"""Inbound socket commands.

Each event name maps to exactly one command type. Payloads are parsed here
so handlers only ever see well-formed commands.
"""
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Type

from solow_game.errors import InvalidInput


@dataclass(frozen=True)
class Command:
    event: ClassVar[str] = ''
    instructor_only: ClassVar[bool] = False

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> 'Command':
        return cls()


@dataclass(frozen=True)
class CreateGame(Command):
    event = 'create_game'
    instructor_only = True


@dataclass(frozen=True)
class SetManualStart(Command):
    event = 'set_manual_start'
    instructor_only = True
    enabled: bool = True

    @classmethod
    def from_payload(cls, data):
        enabled = data.get('enabled')
        if not isinstance(enabled, bool):
            raise InvalidInput('enabled must be true or false')
        return cls(enabled=enabled)


@dataclass(frozen=True)
class StartGame(Command):
    event = 'start_game'
    instructor_only = True


@dataclass(frozen=True)
class ForceEndGame(Command):
    event = 'force_end_game'
    instructor_only = True


@dataclass(frozen=True)
class ResetGame(Command):
    event = 'reset_game'
    instructor_only = True


@dataclass(frozen=True)
class JoinGame(Command):
    event = 'join_game'
    player_name: Any = None

    @classmethod
    def from_payload(cls, data):
        return cls(player_name=data.get('playerName'))


@dataclass(frozen=True)
class ReconnectGame(Command):
    event = 'reconnect_game'
    player_name: Any = None

    @classmethod
    def from_payload(cls, data):
        return cls(player_name=data.get('playerName'))


@dataclass(frozen=True)
class SubmitInvestment(Command):
    event = 'submit_investment'
    investment: Any = None
    is_auto_submit: bool = False

    @classmethod
    def from_payload(cls, data):
        if 'investment' not in data:
            raise InvalidInput('investment is required')
        return cls(investment=data['investment'], is_auto_submit=bool(data.get('isAutoSubmit', False)))


@dataclass(frozen=True)
class GetStudentList(Command):
    event = 'get_student_list'


@dataclass(frozen=True)
class ScreenConnect(Command):
    event = 'screen_connect'


@dataclass(frozen=True)
class RegisterTeam(Command):
    event = 'register_team'
    team_name: Any = None
    students: List[str] = field(default_factory=list)

    @classmethod
    def from_payload(cls, data):
        return cls(team_name=data.get('teamName'), students=data.get('students'))


COMMAND_TYPES: List[Type[Command]] = [
    CreateGame,
    SetManualStart,
    StartGame,
    ForceEndGame,
    ResetGame,
    JoinGame,
    ReconnectGame,
    SubmitInvestment,
    GetStudentList,
    ScreenConnect,
    RegisterTeam,
]

COMMAND_EVENTS: Dict[str, Type[Command]] = {c.event: c for c in COMMAND_TYPES}


def parse_command(event: str, data) -> Command:
    command_type = COMMAND_EVENTS.get(event)
    if command_type is None:
        raise InvalidInput(f'Unknown command: {event}')
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise InvalidInput('Payload must be an object')
    return command_type.from_payload(data)
