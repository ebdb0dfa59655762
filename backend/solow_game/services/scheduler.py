import logging
import threading
from typing import Callable, Optional

from solow_game.models import GameSession, Round, RoundSummary, GameSettings
from .economy import SolowModel
from .fanout import Fanout
from .ledger import PlayerLedger, RoundLedger

logger = logging.getLogger(__name__)


class RoundTimer:
    """Countdown task for one round.

    ``spawn`` and ``sleep`` are ``socketio.start_background_task`` and
    ``socketio.sleep`` in the app, so the loop cooperates with whatever
    async mode Flask-SocketIO picked. ``on_tick`` receives the timer itself
    so the receiver can discard ticks from a timer it no longer owns.
    """

    def __init__(self, spawn: Callable, sleep: Callable, interval: float,
                 on_tick: Callable[['RoundTimer'], None]):
        self._spawn = spawn
        self._sleep = sleep
        self.interval = interval
        self._on_tick = on_tick
        self._cancelled = threading.Event()
        self.started = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def start(self) -> None:
        if self.started:
            return
        self.started = True
        self._spawn(self._run)

    def cancel(self) -> None:
        self._cancelled.set()

    def _run(self) -> None:
        while not self._cancelled.is_set():
            self._sleep(self.interval)
            if self._cancelled.is_set():
                break
            try:
                self._on_tick(self)
            except Exception:
                logger.exception('[timer-error] tick handler failed')


class RoundScheduler:
    """Runs one round at a time: countdown, early end, timeout, settlement.

    Every method is called with the coordinator lock held.
    """

    def __init__(self, session: GameSession, players: PlayerLedger, model: SolowModel,
                 fanout: Fanout, settings: GameSettings,
                 on_settled: Callable[[RoundSummary], None],
                 timer_factory: Optional[Callable[[], RoundTimer]] = None):
        self.session = session
        self.players = players
        self.model = model
        self.fanout = fanout
        self.settings = settings
        self.on_settled = on_settled
        self.timer_factory = timer_factory
        self.timer: Optional[RoundTimer] = None
        self.ledger: Optional[RoundLedger] = None
        self._ticks = 0

    @property
    def active(self) -> bool:
        return self.ledger is not None and not self.ledger.round.sealed

    def owns(self, timer: Optional[RoundTimer]) -> bool:
        return timer is None or timer is self.timer

    def start(self, number: int) -> Round:
        current = Round(number=number, duration_seconds=self.settings.round_duration)
        self.session.current_round = current
        self.ledger = RoundLedger(current)
        self.players.reset_round_flags()
        self._ticks = 0
        logger.info(f"[round-start] round={number} duration={current.duration_seconds}s")
        self.fanout.round_start(number, current.time_remaining)
        if self.timer_factory is not None:
            self.timer = self.timer_factory()
            self.timer.start()
        return current

    def tick(self) -> Optional[RoundSummary]:
        if not self.active:
            return None
        current = self.ledger.round
        current.time_remaining = max(0, current.time_remaining - 1)
        self._ticks += 1
        hb = self.settings.heartbeat_ticks
        if hb and self._ticks % hb == 0:
            logger.info(f"[timer-heartbeat] round={current.number} remaining={current.time_remaining}s")
        self.fanout.timer_update(current.time_remaining)
        if current.time_remaining <= 0:
            logger.info(f"[timer-fire] round={current.number} timeout")
            return self.settle()
        return None

    def record(self, player, investment: float, is_auto_submit: bool = False) -> bool:
        return self.ledger.record(player, investment, is_auto_submit)

    def check_early_end(self) -> Optional[RoundSummary]:
        """Settle now if every connected player has submitted."""
        if not self.active:
            return None
        connected = self.players.connected()
        if not connected:
            return None
        if not all(self.ledger.has_submitted(p.name) for p in connected):
            return None
        remaining = self.ledger.round.time_remaining
        logger.info(f"[round-early-end] round={self.ledger.number} remaining={remaining}s")
        self.fanout.all_submitted(remaining)
        return self.settle()

    def settle(self) -> Optional[RoundSummary]:
        if not self.active:
            return None
        self._cancel_timer()
        everyone = self.players.all()
        minimum = self.settings.investment_min
        for name in self.ledger.auto_submit_missing(everyone, minimum):
            self.fanout.investment_received(name, minimum, True)
        summary = self.ledger.settle(everyone, self.model.advance)
        self.session.history.append(summary)
        logger.info(f"[round-settled] round={summary.round_number} players={len(summary.results)}")
        self.fanout.round_summary(summary.to_dict(self.settings.decimal_precision))
        self.on_settled(summary)
        return summary

    def abort(self) -> None:
        """Drop the in-flight round without settling it."""
        self._cancel_timer()
        if self.active:
            logger.info(f"[round-abort] round={self.ledger.number} discarded={len(self.ledger.round.investments)}")
            self.ledger.round.investments.clear()
            self.players.reset_round_flags()
        self.ledger = None

    def _cancel_timer(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None
