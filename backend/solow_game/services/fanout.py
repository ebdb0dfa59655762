"""All outbound notifications go through ``Fanout``.

Audience groups are Socket.IO rooms: every player, every screen, the
instructor, and one private room per player name. A connection's own sid
is also a room, which is how replies reach only the originating client.
"""
import logging
from enum import Enum
from typing import Iterable, List

logger = logging.getLogger(__name__)

ROOM_PLAYERS = 'players'
ROOM_SCREENS = 'screens'
ROOM_INSTRUCTOR = 'instructor'
PLAYER_ROOM_PREFIX = 'player:'


def player_room(player_name: str) -> str:
    return f"{PLAYER_ROOM_PREFIX}{player_name}"


class Notice(str, Enum):
    JOIN_ACK = 'join_ack'
    GAME_CREATED = 'game_created'
    MANUAL_START_MODE = 'manual_start_mode'
    GAME_STARTED = 'game_started'
    GAME_RESET = 'game_reset'
    PLAYER_JOINED = 'player_joined'
    PLAYER_DISCONNECTED = 'player_disconnected'
    INSTRUCTOR_DISCONNECTED = 'instructor_disconnected'
    ROUND_START = 'round_start'
    TIMER_UPDATE = 'timer_update'
    INVESTMENT_RECEIVED = 'investment_received'
    ALL_SUBMITTED = 'all_submitted'
    ROUND_SUMMARY = 'round_summary'
    GAME_OVER = 'game_over'
    STATE_SNAPSHOT = 'state_snapshot'
    ERROR = 'error'
    STUDENT_LIST = 'student_list'
    STUDENT_LIST_UPDATED = 'student_list_updated'
    TEAM_REGISTERED = 'team_registered'
    TEAM_REGISTRATION_ERROR = 'team_registration_error'


EVERYONE = (ROOM_PLAYERS, ROOM_SCREENS, ROOM_INSTRUCTOR)
OBSERVERS = (ROOM_SCREENS, ROOM_INSTRUCTOR)


class SocketIOTransport:
    """Adapter from Fanout to a ``flask_socketio.SocketIO`` instance."""

    def __init__(self, socketio, namespace: str):
        self.socketio = socketio
        self.namespace = namespace

    def emit(self, event: str, payload: dict, to: str) -> None:
        self.socketio.emit(event, payload, to=to, namespace=self.namespace)

    def enter(self, handle: str, room: str) -> None:
        self.socketio.server.enter_room(handle, room, namespace=self.namespace)

    def leave(self, handle: str, room: str) -> None:
        self.socketio.server.leave_room(handle, room, namespace=self.namespace)


class Fanout:

    def __init__(self, transport):
        self.transport = transport

    def _send(self, notice: Notice, payload: dict, rooms: Iterable[str]) -> None:
        for room in rooms:
            self.transport.emit(notice.value, payload, room)

    # -- group membership --

    def add_player(self, handle: str, player_name: str) -> None:
        self.transport.enter(handle, ROOM_PLAYERS)
        self.transport.enter(handle, player_room(player_name))

    def drop_player(self, handle: str, player_name: str) -> None:
        self.transport.leave(handle, ROOM_PLAYERS)
        self.transport.leave(handle, player_room(player_name))

    def add_screen(self, handle: str) -> None:
        self.transport.enter(handle, ROOM_SCREENS)

    def add_instructor(self, handle: str) -> None:
        self.transport.enter(handle, ROOM_INSTRUCTOR)

    # -- originating client only --

    def reply(self, handle: str, notice: Notice, payload: dict) -> None:
        self.transport.emit(notice.value, payload, handle)

    def join_ack(self, handle: str, payload: dict) -> None:
        self.reply(handle, Notice.JOIN_ACK, payload)

    def error(self, handle: str, payload: dict) -> None:
        self.reply(handle, Notice.ERROR, payload)

    # -- session lifecycle, everyone --

    def game_created(self, manual_start_enabled: bool) -> None:
        self._send(Notice.GAME_CREATED, {'manualStartEnabled': manual_start_enabled}, EVERYONE)

    def manual_start_mode(self, enabled: bool) -> None:
        self._send(Notice.MANUAL_START_MODE, {'enabled': enabled}, EVERYONE)

    def game_started(self) -> None:
        self._send(Notice.GAME_STARTED, {}, EVERYONE)

    def game_reset(self) -> None:
        self._send(Notice.GAME_RESET, {}, EVERYONE)

    def round_start(self, round_number: int, time_remaining: int) -> None:
        self._send(Notice.ROUND_START, {'roundNumber': round_number, 'timeRemaining': time_remaining}, EVERYONE)

    def timer_update(self, time_remaining: int) -> None:
        self._send(Notice.TIMER_UPDATE, {'timeRemaining': time_remaining}, EVERYONE)

    def all_submitted(self, time_remaining: int) -> None:
        self._send(Notice.ALL_SUBMITTED, {'timeRemaining': time_remaining}, EVERYONE)

    def round_summary(self, summary: dict) -> None:
        self._send(Notice.ROUND_SUMMARY, summary, EVERYONE)

    def game_over(self, results: List[dict], winner) -> None:
        logger.info(f"[game-over] winner={winner} players={len(results)}")
        self._send(Notice.GAME_OVER, {'results': results, 'winner': winner}, EVERYONE)

    # -- observers only --

    def player_joined(self, payload: dict) -> None:
        self._send(Notice.PLAYER_JOINED, payload, OBSERVERS)

    def player_disconnected(self, player_name: str) -> None:
        self._send(Notice.PLAYER_DISCONNECTED, {'playerName': player_name}, OBSERVERS)

    def investment_received(self, player_name: str, investment: float, is_auto_submit: bool) -> None:
        payload = {'playerName': player_name, 'investment': investment, 'isAutoSubmit': is_auto_submit}
        self._send(Notice.INVESTMENT_RECEIVED, payload, OBSERVERS)

    def instructor_disconnected(self) -> None:
        self._send(Notice.INSTRUCTOR_DISCONNECTED, {}, (ROOM_SCREENS,))

    # -- one player's private channel --

    def investment_ack(self, player_name: str, investment: float, is_auto_submit: bool,
                       already_submitted: bool = False) -> None:
        payload = {
            'playerName': player_name,
            'investment': investment,
            'isAutoSubmit': is_auto_submit,
            'alreadySubmitted': already_submitted,
        }
        self._send(Notice.INVESTMENT_RECEIVED, payload, (player_room(player_name),))

    def state_snapshot(self, player_name: str, snapshot: dict) -> None:
        self._send(Notice.STATE_SNAPSHOT, snapshot, (player_room(player_name),))

    # -- roster --

    def student_list_updated(self, payload: dict) -> None:
        self._send(Notice.STUDENT_LIST_UPDATED, payload, EVERYONE)
