"""In-memory ledgers for players (whole session) and rounds (one round each)."""
import logging
from typing import Callable, Dict, List, Optional, Tuple

from solow_game.errors import IllegalTransition
from solow_game.models import Investment, Player, Round, RoundResult, RoundSummary

logger = logging.getLogger(__name__)

UpdateFn = Callable[[float, float, float], Tuple[float, float]]


class PlayerLedger:
    """Per-player records, keyed by name. Players are never removed mid-session."""

    def __init__(self, players: Dict[str, Player]):
        self._players = players

    def __contains__(self, name: str) -> bool:
        return name in self._players

    def __len__(self) -> int:
        return len(self._players)

    def get(self, name: str) -> Optional[Player]:
        return self._players.get(name)

    def add(self, name: str, capital: float, output: float) -> Player:
        player = Player(name=name, capital=capital, output=output)
        self._players[name] = player
        return player

    def all(self) -> List[Player]:
        return list(self._players.values())

    def connected(self) -> List[Player]:
        return [p for p in self._players.values() if p.connected]

    def reset_round_flags(self) -> None:
        for player in self._players.values():
            player.reset_round_flags()

    def rankings(self, precision: int = 1) -> List[dict]:
        """Final standings: highest displayed output first, ties by name."""
        standings = sorted(
            self._players.values(),
            key=lambda p: (-round(p.output, precision), p.name),
        )
        return [
            {
                'rank': idx + 1,
                'playerName': p.name,
                'finalOutput': round(p.output, precision),
                'finalCapital': round(p.capital, precision),
            }
            for idx, p in enumerate(standings)
        ]


class RoundLedger:
    """Investments and results for a single round."""

    def __init__(self, round_obj: Round):
        self.round = round_obj

    @property
    def number(self) -> int:
        return self.round.number

    def has_submitted(self, name: str) -> bool:
        return name in self.round.investments

    def record(self, player: Player, investment: float, is_auto_submit: bool = False) -> bool:
        """Record one investment; returns False for a duplicate."""
        if self.round.sealed:
            raise IllegalTransition(f"Round {self.round.number} is already closed")
        if player.name in self.round.investments:
            return False
        self.round.investments[player.name] = Investment(investment, is_auto_submit)
        player.submitted_this_round = True
        if is_auto_submit:
            player.auto_submitted_this_round = True
        return True

    def auto_submit_missing(self, players: List[Player], minimum: float) -> List[str]:
        filled = []
        for player in players:
            if not self.has_submitted(player.name):
                self.record(player, minimum, is_auto_submit=True)
                filled.append(player.name)
        if filled:
            logger.info(f"[auto-submit] round={self.round.number} players={filled} investment={minimum}")
        return filled

    def settle(self, players: List[Player], update: UpdateFn) -> RoundSummary:
        """Apply the update function to every player and seal the round."""
        results = []
        for player in players:
            entry = self.round.investments[player.name]
            new_capital, new_output = update(player.capital, player.output, entry.investment)
            player.capital = new_capital
            player.output = new_output
            results.append(RoundResult(
                player_name=player.name,
                investment=entry.investment,
                new_capital=new_capital,
                new_output=new_output,
                is_auto_submit=entry.is_auto_submit,
            ))
        self.round.results = results
        self.round.sealed = True
        return RoundSummary(round_number=self.round.number, results=results)
