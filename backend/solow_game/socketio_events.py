from typing import Callable, Dict, Type

from flask import current_app, request
from flask_socketio import emit

from solow_game import socketio, NAMESPACE
from solow_game.commands import (
    COMMAND_EVENTS, COMMAND_TYPES, Command, CreateGame, ForceEndGame, GetStudentList,
    JoinGame, ReconnectGame, RegisterTeam, ResetGame, ScreenConnect, SetManualStart,
    StartGame, SubmitInvestment, parse_command,
)
from solow_game.errors import GameError, InternalFailure, NotAuthorized
from solow_game.services.coordinator import GameCoordinator
from solow_game.services.fanout import Notice

ROLE_PLAYER = 'player'
ROLE_INSTRUCTOR = 'instructor'
ROLE_SCREEN = 'screen'
ROLES = (ROLE_PLAYER, ROLE_INSTRUCTOR, ROLE_SCREEN)

# Role declared by each live connection at connect time
_sid_roles: Dict[str, str] = {}


def _get_sid() -> str:
    return request.sid  # type: ignore


def _coordinator() -> GameCoordinator:
    return current_app.extensions['game_coordinator']


def handle_connect(auth=None):
    sid = _get_sid()
    role = auth.get('role', ROLE_PLAYER) if isinstance(auth, dict) else ROLE_PLAYER
    if role not in ROLES:
        current_app.logger.warning(f"[connect] sid={sid} unknown role={role!r}, treating as player")
        role = ROLE_PLAYER
    _sid_roles[sid] = role
    current_app.logger.info(f"[connect] sid={sid} role={role}")
    emit('connected', {'role': role})
    coordinator = _coordinator()
    if role == ROLE_INSTRUCTOR:
        coordinator.instructor_connected(sid)
    elif role == ROLE_SCREEN:
        coordinator.screen_connected(sid)


def handle_disconnect(reason=None):
    sid = _get_sid()
    role = _sid_roles.pop(sid, ROLE_PLAYER)
    current_app.logger.info(f"[disconnect] sid={sid} role={role}")
    coordinator = _coordinator()
    # Any role may have joined as a player
    coordinator.release(sid)
    if role == ROLE_INSTRUCTOR:
        coordinator.instructor_disconnected(sid)


# ---- Command handlers ----

def _create_game(coordinator, command: CreateGame, sid):
    coordinator.create_game()


def _set_manual_start(coordinator, command: SetManualStart, sid):
    coordinator.set_manual_start(command.enabled)


def _start_game(coordinator, command: StartGame, sid):
    coordinator.start_game()


def _force_end_game(coordinator, command: ForceEndGame, sid):
    coordinator.force_end()


def _reset_game(coordinator, command: ResetGame, sid):
    coordinator.reset()


def _join_game(coordinator, command: JoinGame, sid):
    coordinator.join(command.player_name, sid)


def _reconnect_game(coordinator, command: ReconnectGame, sid):
    coordinator.reconnect(command.player_name, sid)


def _submit_investment(coordinator, command: SubmitInvestment, sid):
    coordinator.submit_investment(sid, command.investment, command.is_auto_submit)


def _get_student_list(coordinator, command: GetStudentList, sid):
    coordinator.student_list(sid)


def _screen_connect(coordinator, command: ScreenConnect, sid):
    _sid_roles[sid] = ROLE_SCREEN
    coordinator.screen_connected(sid)


def _register_team(coordinator, command: RegisterTeam, sid):
    coordinator.register_team(command.team_name, command.students, sid)


HANDLERS: Dict[Type[Command], Callable] = {
    CreateGame: _create_game,
    SetManualStart: _set_manual_start,
    StartGame: _start_game,
    ForceEndGame: _force_end_game,
    ResetGame: _reset_game,
    JoinGame: _join_game,
    ReconnectGame: _reconnect_game,
    SubmitInvestment: _submit_investment,
    GetStudentList: _get_student_list,
    ScreenConnect: _screen_connect,
    RegisterTeam: _register_team,
}


def _report(coordinator: GameCoordinator, event: str, sid: str, error: GameError) -> None:
    """Send a failed command back to the connection that sent it."""
    payload = error.to_payload()
    if event in (JoinGame.event, ReconnectGame.event):
        coordinator.fanout.join_ack(sid, {'success': False, 'error': error.message, 'code': error.code})
    elif event == RegisterTeam.event:
        coordinator.fanout.reply(sid, Notice.TEAM_REGISTRATION_ERROR, {'error': error.message, 'code': error.code})
    else:
        coordinator.fanout.error(sid, payload)


def _dispatcher(event: str) -> Callable:
    def handler(data=None):
        sid = _get_sid()
        coordinator = _coordinator()
        try:
            command = parse_command(event, data)
            if command.instructor_only and _sid_roles.get(sid) != ROLE_INSTRUCTOR:
                raise NotAuthorized()
            HANDLERS[type(command)](coordinator, command, sid)
        except GameError as e:
            current_app.logger.info(f"[command-rejected] event={event} sid={sid} code={e.code} message={e.message}")
            _report(coordinator, event, sid, e)
        except Exception:
            current_app.logger.exception(f"[command-failed] event={event} sid={sid}")
            _report(coordinator, event, sid, InternalFailure())
    handler.__name__ = f"handle_{event}"
    return handler


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on the game namespace.

    Every command type must have a handler; a gap fails app creation.
    """
    missing = [c.__name__ for c in COMMAND_TYPES if c not in HANDLERS]
    if missing:
        raise RuntimeError(f"No handler for commands: {', '.join(missing)}")

    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    for event in COMMAND_EVENTS:
        socketio.on_event(event, _dispatcher(event), namespace=NAMESPACE)
