from enum import IntEnum, StrEnum

class Cell(IntEnum):
    EMPTY = 0
    RED = 1     # Side A, the human
    YELLOW = 2  # Side B, the automated opponent

    @property
    def symbol(self) -> str:
        return _SYMBOLS[self]

    @property
    def opponent(self) -> "Cell":
        if self is Cell.EMPTY:
            raise ValueError("EMPTY has no opponent")
        return Cell.YELLOW if self is Cell.RED else Cell.RED

    @classmethod
    def from_symbol(cls, symbol: str) -> "Cell":
        for cell, sym in _SYMBOLS.items():
            if sym == symbol.upper():
                return cell
        raise ValueError(f"Unknown cell symbol: {symbol!r}")


_SYMBOLS = {Cell.EMPTY: ".", Cell.RED: "R", Cell.YELLOW: "Y"}

HUMAN_SIDE = Cell.RED
AUTOMATED_SIDE = Cell.YELLOW


class Difficulty(StrEnum):
    RELAXED = "relaxed"
    STANDARD = "standard"
    STRICT = "strict"

class OutcomeStatus(StrEnum):
    IN_PROGRESS = "in_progress"
    WIN = "win"
    DRAW = "draw"

class ThreatKind(StrEnum):
    IMMEDIATE = "immediate"
    CRITICAL = "critical"
    POTENTIAL = "potential"

class DecisionSource(StrEnum):
    HUMAN = "human"
    ADVISORY = "advisory"
    FALLBACK = "fallback"

class PolicyPhase(StrEnum):
    IDLE = "idle"
    GATHERING = "gathering"
    DECIDING = "deciding"
    RESOLVED = "resolved"
