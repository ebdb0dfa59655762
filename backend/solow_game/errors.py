"""Domain errors raised by the game coordinator.

Every error carries a stable ``code`` so the socket layer can turn it into an
``error`` (or failed ``join_ack``) payload for the originating client only.
"""


class GameError(Exception):
    """Base class for all game errors."""
    code = 'game_error'

    def __init__(self, message=None):
        self.message = message or self.__class__.__doc__ or 'Game error'
        super().__init__(self.message)

    def to_payload(self):
        return {'message': self.message, 'code': self.code}


class InvalidInput(GameError):
    """Invalid input"""
    code = 'invalid_input'


class ReconnectFailed(GameError):
    """Player not found in this game"""
    code = 'player_not_found'

    def __init__(self, player_name):
        self.player_name = player_name
        super().__init__(f"Player '{player_name}' not found in this game")


class IllegalTransition(GameError):
    """Command not allowed in the current game phase"""
    code = 'illegal_transition'


class UnknownConnection(GameError):
    """You are not in the game"""
    code = 'not_in_game'


class NotAuthorized(GameError):
    """Only the instructor can do that"""
    code = 'not_authorized'


class InternalFailure(GameError):
    """Internal server error"""
    code = 'internal_error'
