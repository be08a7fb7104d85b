"""
Error kinds raised by the engine and the session layer.

None of these is fatal to a session: move rejections leave the state untouched
and every advisory failure ends in the fallback policy choosing the move.
"""

from typing import Optional


class JoinDotsError(Exception):
    """Base class for all game errors"""


class InvalidColumn(JoinDotsError, ValueError):
    def __init__(self, column, message: Optional[str] = None):
        self.column = column
        super().__init__(message or f"Invalid column: {column}")


class ColumnFull(InvalidColumn):
    def __init__(self, column: int):
        super().__init__(column, f"Column {column} is full")


class NotYourTurn(JoinDotsError):
    pass


class GameAlreadyOver(JoinDotsError):
    pass


class GameNotFound(JoinDotsError, KeyError):
    def __init__(self, game_id: int):
        self.game_id = game_id
        super().__init__(f"Game {game_id} not found")

    def __str__(self):
        # KeyError would quote the message
        return self.args[0]


# --- Advisory ---

class AdvisoryError(JoinDotsError):
    """Any advisory outcome that makes the policy fall back."""


class AdvisoryUnavailable(AdvisoryError):
    pass


class AdvisoryMalformed(AdvisoryError):
    pass


class InvalidAdvisorySuggestion(AdvisoryError):
    def __init__(self, column, reason: str):
        self.column = column
        self.reason = reason
        super().__init__(f"Suggested column {column!r} rejected: {reason}")
