"""Connection handle <-> player name bindings.

A name has at most one live handle. Binding a name to a new handle
supersedes the old one: the old handle is forgotten, so anything it sends
afterwards is treated as coming from an unknown connection.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from solow_game.errors import IllegalTransition, InvalidInput, ReconnectFailed
from solow_game.models import Player
from .ledger import PlayerLedger

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 32


def normalize_name(value) -> str:
    if not isinstance(value, str):
        raise InvalidInput('Player name is required')
    name = value.strip()
    if not name:
        raise InvalidInput('Player name cannot be empty')
    if len(name) > MAX_NAME_LENGTH:
        raise InvalidInput(f'Player name must be at most {MAX_NAME_LENGTH} characters')
    return name


@dataclass
class Binding:
    player: Player
    previous_handle: Optional[str] = None
    created: bool = False
    # Player this handle spoke for until now, if it was someone else
    displaced: Optional[Player] = None


class IdentityRegistry:

    def __init__(self, ledger: PlayerLedger, initial_state: Callable[[], Tuple[float, float]]):
        self._ledger = ledger
        self._initial_state = initial_state
        self._names_by_handle: Dict[str, str] = {}

    def player_for(self, handle: str) -> Optional[Player]:
        name = self._names_by_handle.get(handle)
        return self._ledger.get(name) if name else None

    def join(self, name: str, handle: str, accept_new: bool = True,
             max_players: Optional[int] = None) -> Binding:
        name = normalize_name(name)
        player = self._ledger.get(name)
        if player is not None:
            return self._rebind(player, handle)
        if not accept_new:
            raise IllegalTransition('Game already in progress')
        if max_players and len(self._ledger) >= max_players:
            raise IllegalTransition('Maximum number of players reached')
        capital, output = self._initial_state()
        player = self._ledger.add(name, capital, output)
        binding = self._rebind(player, handle)
        binding.created = True
        logger.info(f"[player-new] name={name} handle={handle}")
        return binding

    def reconnect(self, name: str, handle: str) -> Binding:
        name = normalize_name(name)
        player = self._ledger.get(name)
        if player is None:
            raise ReconnectFailed(name)
        return self._rebind(player, handle)

    def release(self, handle: str) -> Optional[Player]:
        """Mark the player behind ``handle`` disconnected; stale handles are ignored."""
        name = self._names_by_handle.pop(handle, None)
        if name is None:
            return None
        player = self._ledger.get(name)
        if player is None or player.connection_handle != handle:
            return None
        player.connection_handle = None
        player.connected = False
        logger.info(f"[player-release] name={name} handle={handle}")
        return player

    def clear(self) -> Dict[str, str]:
        bound = dict(self._names_by_handle)
        self._names_by_handle.clear()
        return bound

    def _rebind(self, player: Player, handle: str) -> Binding:
        previous = player.connection_handle
        if previous and previous != handle:
            self._names_by_handle.pop(previous, None)
            logger.info(f"[player-supersede] name={player.name} old={previous} new={handle}")
        else:
            previous = None
        # A handle speaks for one player at a time
        displaced = None
        other = self._names_by_handle.get(handle)
        if other and other != player.name:
            stale = self._ledger.get(other)
            if stale is not None and stale.connection_handle == handle:
                stale.connection_handle = None
                stale.connected = False
                displaced = stale
                logger.info(f"[player-displaced] name={other} handle={handle} now={player.name}")
        self._names_by_handle[handle] = player.name
        player.connection_handle = handle
        player.connected = True
        return Binding(player=player, previous_handle=previous, displaced=displaced)
