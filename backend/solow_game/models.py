from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class Phase(str, Enum):
    IDLE = 'idle'
    RUNNING = 'running'
    GAME_OVER = 'game_over'


@dataclass
class GameSettings:
    """Game rules resolved from the Flask config."""
    total_rounds: int = 10
    round_duration: int = 60
    first_round_number: int = 1
    investment_min: float = 0.0
    decimal_precision: int = 1
    max_players: int = 100
    auto_start_enabled: bool = False
    auto_start_players: int = 2
    tick_interval: float = 1.0
    heartbeat_ticks: int = 0

    @property
    def last_round_number(self) -> int:
        return self.first_round_number + self.total_rounds - 1

    @classmethod
    def from_config(cls, config) -> 'GameSettings':
        return cls(
            total_rounds=int(config.get('TOTAL_ROUNDS', 10)),
            round_duration=int(config.get('ROUND_DURATION_SEC', 60)),
            first_round_number=int(config.get('FIRST_ROUND_NUMBER', 1)),
            investment_min=float(config.get('INVESTMENT_MIN', 0)),
            decimal_precision=int(config.get('DECIMAL_PRECISION', 1)),
            max_players=int(config.get('MAX_PLAYERS', 100)),
            auto_start_enabled=bool(config.get('AUTO_START_ENABLED', False)),
            auto_start_players=int(config.get('AUTO_START_PLAYERS', 2)),
            tick_interval=float(config.get('TIMER_TICK_SEC', 1)),
            heartbeat_ticks=int(config.get('TIMER_HEARTBEAT_SEC', 0)),
        )


@dataclass
class Player:
    name: str
    capital: float
    output: float
    connection_handle: Optional[str] = None
    connected: bool = False
    submitted_this_round: bool = False
    auto_submitted_this_round: bool = False
    is_team: bool = False
    team_members: List[str] = field(default_factory=list)

    def reset_round_flags(self) -> None:
        self.submitted_this_round = False
        self.auto_submitted_this_round = False

    def to_dict(self, precision: int = 1):
        data = {
            'playerName': self.name,
            'capital': round(self.capital, precision),
            'output': round(self.output, precision),
            'connected': self.connected,
            'submitted': self.submitted_this_round,
        }
        if self.is_team:
            data['isTeam'] = True
            data['teamMembers'] = list(self.team_members)
        return data


@dataclass
class Investment:
    investment: float
    is_auto_submit: bool = False


@dataclass
class RoundResult:
    player_name: str
    investment: float
    new_capital: float
    new_output: float
    is_auto_submit: bool

    def to_dict(self, precision: int = 1):
        return {
            'playerName': self.player_name,
            'investment': round(self.investment, precision),
            'newCapital': round(self.new_capital, precision),
            'newOutput': round(self.new_output, precision),
            'isAutoSubmit': self.is_auto_submit,
        }


@dataclass
class RoundSummary:
    round_number: int
    results: List[RoundResult]

    def to_dict(self, precision: int = 1):
        return {
            'roundNumber': self.round_number,
            'results': [r.to_dict(precision) for r in self.results],
        }


@dataclass
class Round:
    number: int
    duration_seconds: int
    time_remaining: int = 0
    investments: Dict[str, Investment] = field(default_factory=dict)
    sealed: bool = False
    results: List[RoundResult] = field(default_factory=list)

    def __post_init__(self):
        if not self.time_remaining:
            self.time_remaining = self.duration_seconds


@dataclass
class PlayerView:
    """What a player needs to (re)enter the game, sent with join_ack."""
    player_name: str
    capital: float
    output: float
    submitted: bool
    round_number: Optional[int]
    time_remaining: int
    is_game_running: bool
    manual_start_enabled: bool
    is_reconnect: bool = False
    superseded_handle: Optional[str] = None

    def to_dict(self, precision: int = 1):
        return {
            'playerName': self.player_name,
            'capital': round(self.capital, precision),
            'output': round(self.output, precision),
            'submitted': self.submitted,
            'roundNumber': self.round_number,
            'timeRemaining': self.time_remaining,
            'isGameRunning': self.is_game_running,
            'manualStartEnabled': self.manual_start_enabled,
            'isReconnect': self.is_reconnect,
        }

    def snapshot(self, precision: int = 1):
        return {
            'roundNumber': self.round_number,
            'capital': round(self.capital, precision),
            'output': round(self.output, precision),
            'submitted': self.submitted,
            'timeRemaining': self.time_remaining,
        }


@dataclass
class GameSession:
    manual_start_enabled: bool = True
    phase: Phase = Phase.IDLE
    created: bool = False
    current_round: Optional[Round] = None
    players: Dict[str, Player] = field(default_factory=dict)
    history: List[RoundSummary] = field(default_factory=list)
    final_results: Optional[list] = None

    @property
    def is_running(self) -> bool:
        return self.phase == Phase.RUNNING

    def to_dict(self, precision: int = 1):
        current = self.current_round
        return {
            'phase': self.phase.value,
            'created': self.created,
            'manualStartEnabled': self.manual_start_enabled,
            'roundNumber': current.number if current else None,
            'timeRemaining': current.time_remaining if current else 0,
            'players': [p.to_dict(precision) for p in self.players.values()],
            'completedRounds': len(self.history),
            'finalResults': self.final_results,
        }
