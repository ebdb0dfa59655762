"""The game session coordinator.

One ``GameCoordinator`` per Flask app owns the ``GameSession`` and is the
only thing that mutates it. Socket handlers and the round timer both go
through it, and it serializes them with a single re-entrant lock: a
command's read-modify-write finishes before the next command or tick is
applied. Operations validate before mutating, so a raised ``GameError``
leaves the session untouched.
"""
import logging
import threading
from typing import Callable, Optional

from solow_game.errors import IllegalTransition, InvalidInput, UnknownConnection
from solow_game.models import GameSession, GameSettings, Phase, Player, PlayerView, RoundSummary
from .economy import SolowModel, parse_investment
from .fanout import Fanout, Notice
from .ledger import PlayerLedger
from .registry import Binding, IdentityRegistry
from .roster import StudentRoster
from .scheduler import RoundScheduler, RoundTimer

logger = logging.getLogger(__name__)


class GameCoordinator:

    def __init__(self, settings: GameSettings, model: SolowModel, fanout: Fanout,
                 roster: Optional[StudentRoster] = None,
                 spawn: Optional[Callable] = None, sleep: Optional[Callable] = None):
        self.settings = settings
        self.model = model
        self.fanout = fanout
        self.roster = roster if roster is not None else StudentRoster()
        self.lock = threading.RLock()
        self.session = GameSession()
        self.players = PlayerLedger(self.session.players)
        self.registry = IdentityRegistry(self.players, model.initial_state)

        timer_factory = None
        if spawn is not None:
            def timer_factory():
                return RoundTimer(spawn, sleep, settings.tick_interval, self.tick)
        self.scheduler = RoundScheduler(
            self.session, self.players, model, fanout, settings,
            on_settled=self._round_settled,
            timer_factory=timer_factory,
        )

    @property
    def precision(self) -> int:
        return self.settings.decimal_precision

    # -- session lifecycle --

    def create_game(self) -> None:
        with self.lock:
            if self.session.created or self.session.phase != Phase.IDLE:
                raise IllegalTransition('Game already created')
            self.session.created = True
            logger.info(f"[game-created] manual_start={self.session.manual_start_enabled}")
            self.fanout.game_created(self.session.manual_start_enabled)

    def set_manual_start(self, enabled: bool) -> None:
        with self.lock:
            if self.session.phase != Phase.IDLE:
                raise IllegalTransition('Start mode can only change before the game starts')
            self.session.manual_start_enabled = enabled
            logger.info(f"[manual-start] enabled={enabled}")
            self.fanout.manual_start_mode(enabled)
            self._maybe_auto_start()

    def start_game(self) -> None:
        with self.lock:
            if self.session.phase != Phase.IDLE:
                raise IllegalTransition('Game already in progress')
            if not self.players.connected():
                raise IllegalTransition('Cannot start game without players')
            self._start()

    def force_end(self) -> None:
        with self.lock:
            if self.session.phase == Phase.GAME_OVER:
                raise IllegalTransition('Game is already over')
            logger.info(f"[game-force-end] phase={self.session.phase.value}")
            self.scheduler.abort()
            self._finish()

    def reset(self) -> None:
        with self.lock:
            self.scheduler.abort()
            for handle, name in self.registry.clear().items():
                self.fanout.drop_player(handle, name)
            session = self.session
            session.players.clear()
            session.history.clear()
            session.current_round = None
            session.final_results = None
            session.phase = Phase.IDLE
            session.created = False
            session.manual_start_enabled = True
            self.roster.clear_teams()
            logger.info('[game-reset]')
            self.fanout.game_reset()

    def _start(self) -> None:
        self.session.phase = Phase.RUNNING
        self.session.created = True
        logger.info(f"[game-start] players={len(self.players)} rounds={self.settings.total_rounds}")
        self.fanout.game_started()
        self.scheduler.start(self.settings.first_round_number)

    def _maybe_auto_start(self) -> None:
        s = self.settings
        if not s.auto_start_enabled or self.session.manual_start_enabled:
            return
        if self.session.phase != Phase.IDLE:
            return
        if len(self.players.connected()) >= s.auto_start_players:
            logger.info(f"[game-auto-start] connected={len(self.players.connected())}")
            self._start()

    def _finish(self) -> None:
        results = self.players.rankings(self.precision)
        self.session.phase = Phase.GAME_OVER
        self.session.final_results = results
        winner = results[0]['playerName'] if results else None
        self.fanout.game_over(results, winner)

    def _round_settled(self, summary: RoundSummary) -> None:
        if summary.round_number >= self.settings.last_round_number:
            self._finish()
        else:
            self.scheduler.start(summary.round_number + 1)

    # -- identity --

    def join(self, name, handle: str) -> PlayerView:
        with self.lock:
            binding = self.registry.join(
                name, handle,
                accept_new=self.session.phase == Phase.IDLE,
                max_players=self.settings.max_players,
            )
            view = self._bound(binding, handle, is_reconnect=not binding.created)
            self._maybe_auto_start()
            return view

    def reconnect(self, name, handle: str) -> PlayerView:
        with self.lock:
            binding = self.registry.reconnect(name, handle)
            return self._bound(binding, handle, is_reconnect=True)

    def release(self, handle: str) -> Optional[Player]:
        with self.lock:
            player = self.registry.release(handle)
            if player is not None:
                self.fanout.player_disconnected(player.name)
            return player

    def register_team(self, team_name, students, handle: str) -> PlayerView:
        with self.lock:
            team = self.roster.validate_team(team_name, students)
            if team.name in self.players:
                raise InvalidInput('Team name already taken')
            binding = self.registry.join(
                team.name, handle,
                accept_new=self.session.phase == Phase.IDLE,
                max_players=self.settings.max_players,
            )
            binding.player.is_team = True
            binding.player.team_members = list(team.students)
            self.roster.add_team(team)
            view = self._bound(binding, handle, is_reconnect=False)
            self.fanout.reply(handle, Notice.TEAM_REGISTERED,
                              {'success': True, 'teamName': team.name, 'students': team.students})
            self.fanout.student_list_updated(self.roster.student_list())
            self._maybe_auto_start()
            return view

    def _bound(self, binding: Binding, handle: str, is_reconnect: bool) -> PlayerView:
        player = binding.player
        if binding.previous_handle:
            self.fanout.drop_player(binding.previous_handle, player.name)
        if binding.displaced is not None:
            self.fanout.drop_player(handle, binding.displaced.name)
            self.fanout.player_disconnected(binding.displaced.name)
        self.fanout.add_player(handle, player.name)
        view = self._view(player, is_reconnect, binding.previous_handle)
        self.fanout.join_ack(handle, dict(success=True, **view.to_dict(self.precision)))
        joined = {
            'playerName': player.name,
            'isReconnect': is_reconnect,
            'capital': round(player.capital, self.precision),
            'output': round(player.output, self.precision),
        }
        if player.is_team:
            joined['isTeam'] = True
            joined['teamMembers'] = list(player.team_members)
        self.fanout.player_joined(joined)
        if is_reconnect and self.session.is_running:
            self.fanout.state_snapshot(player.name, view.snapshot(self.precision))
        return view

    def _view(self, player: Player, is_reconnect: bool, superseded: Optional[str] = None) -> PlayerView:
        current = self.session.current_round if self.session.is_running else None
        return PlayerView(
            player_name=player.name,
            capital=player.capital,
            output=player.output,
            submitted=player.submitted_this_round,
            round_number=current.number if current else None,
            time_remaining=current.time_remaining if current else 0,
            is_game_running=self.session.is_running,
            manual_start_enabled=self.session.manual_start_enabled,
            is_reconnect=is_reconnect,
            superseded_handle=superseded,
        )

    # -- rounds --

    def submit_investment(self, handle: str, value, is_auto_submit: bool = False) -> None:
        with self.lock:
            player = self.registry.player_for(handle)
            if player is None:
                raise UnknownConnection()
            if not self.session.is_running or not self.scheduler.active:
                raise IllegalTransition('No round in progress')
            try:
                amount = parse_investment(value)
            except (TypeError, ValueError) as e:
                raise InvalidInput('Investment must be a number') from e
            amount = self.model.clamp_investment(amount, player.output)

            ledger = self.scheduler.ledger
            if ledger.has_submitted(player.name):
                earlier = ledger.round.investments[player.name]
                logger.info(f"[investment-duplicate] round={ledger.number} player={player.name}")
                self.fanout.investment_ack(player.name, earlier.investment, earlier.is_auto_submit,
                                           already_submitted=True)
                return

            self.scheduler.record(player, amount, is_auto_submit)
            logger.info(f"[investment] round={ledger.number} player={player.name} amount={amount}")
            self.fanout.investment_received(player.name, amount, is_auto_submit)
            self.fanout.investment_ack(player.name, amount, is_auto_submit)
            self.scheduler.check_early_end()

    def tick(self, timer: Optional[RoundTimer] = None) -> Optional[RoundSummary]:
        """Advance the countdown by one step; ticks from a stale timer are dropped."""
        with self.lock:
            if not self.session.is_running or not self.scheduler.owns(timer):
                return None
            return self.scheduler.tick()

    # -- read side --

    def state(self) -> dict:
        with self.lock:
            return self.session.to_dict(self.precision)

    def instructor_connected(self, handle: str) -> None:
        self.fanout.add_instructor(handle)
        logger.info(f"[instructor-connect] handle={handle}")

    def instructor_disconnected(self, handle: str) -> None:
        logger.info(f"[instructor-disconnect] handle={handle}")
        self.fanout.instructor_disconnected()

    def screen_connected(self, handle: str) -> None:
        self.fanout.add_screen(handle)
        self.fanout.reply(handle, Notice.STATE_SNAPSHOT, self.state())

    def student_list(self, handle: str) -> None:
        self.fanout.reply(handle, Notice.STUDENT_LIST, self.roster.student_list())
