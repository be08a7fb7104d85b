"""
Move Policy

Per automated turn:  GATHERING -> DECIDING -> RESOLVED

- GATHERING: build an AnalysisSnapshot (valid, winning, must-block columns and
  threats for both sides).
- DECIDING:  if an advisor is configured, ask it once, bounded by a timeout,
  and validate the answer against the hard rules.
- RESOLVED:  the suggestion if it passed, otherwise the tiered fallback:
  win > block > opponent critical > opponent immediate > centre-first.

The fallback is total as long as one column is open, so the advisory can fail
in any way without stalling the game.
"""

import asyncio
import logging
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from joindots.core.errors import AdvisoryError, InvalidAdvisorySuggestion
from joindots.engine.board import COLS, Board
from joindots.engine.rules import is_winning_move
from joindots.engine.threats import Threat, find_threats, threat_columns
from joindots.models.enums import Cell, DecisionSource, Difficulty, PolicyPhase, ThreatKind
from joindots.schemas.analysis_schema import AnalysisSummary, Suggestion

logger = logging.getLogger(__name__)

CENTER_PRIORITY = [3, 2, 4, 1, 5, 0, 6]

DEFAULT_ADVISORY_TIMEOUT = 20.0


class AnalysisSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    mover: Cell
    valid_columns: List[int]
    winning_columns: List[int]
    blocking_columns: List[int]
    mover_threats: List[Threat]
    opponent_threats: List[Threat]

    def opponent_columns(self, kind: ThreatKind) -> List[int]:
        """Opponent threat columns of `kind` that can still be played."""
        return threat_columns(self.opponent_threats, kind, self.valid_columns)

    def mover_columns(self, kind: ThreatKind) -> List[int]:
        return threat_columns(self.mover_threats, kind, self.valid_columns)

    def summary(self) -> AnalysisSummary:
        return AnalysisSummary(
            valid_columns=self.valid_columns,
            winning_columns=self.winning_columns,
            blocking_columns=self.blocking_columns,
            opponent_critical=self.opponent_columns(ThreatKind.CRITICAL),
            opponent_immediate=self.opponent_columns(ThreatKind.IMMEDIATE),
            opponent_potential=self.opponent_columns(ThreatKind.POTENTIAL),
            own_critical=self.mover_columns(ThreatKind.CRITICAL),
            own_immediate=self.mover_columns(ThreatKind.IMMEDIATE),
            own_potential=self.mover_columns(ThreatKind.POTENTIAL),
        )


class Decision(BaseModel):
    model_config = ConfigDict(frozen=True)

    column: int
    source: DecisionSource
    thoughts: List[str] = []


def analyze(board: Board, mover: Cell) -> AnalysisSnapshot:
    valid = board.valid_columns()
    opponent = mover.opponent
    return AnalysisSnapshot(
        mover=mover,
        valid_columns=valid,
        winning_columns=[c for c in valid if is_winning_move(board, c, mover)],
        blocking_columns=[c for c in valid if is_winning_move(board, c, opponent)],
        mover_threats=find_threats(board, mover),
        opponent_threats=find_threats(board, opponent),
    )


def resolve_fallback(snapshot: AnalysisSnapshot) -> Decision:
    """Strict priority order, first non-empty candidate set wins."""
    if not snapshot.valid_columns:
        raise ValueError("No valid columns left to play")

    def pick(column: int, reason: str) -> Decision:
        return Decision(column=column, source=DecisionSource.FALLBACK,
                        thoughts=["Using strategic fallback analysis", reason])

    if snapshot.winning_columns:
        return pick(snapshot.winning_columns[0], "Found winning move!")
    if snapshot.blocking_columns:
        return pick(snapshot.blocking_columns[0], "Blocking opponent's win!")

    critical = snapshot.opponent_columns(ThreatKind.CRITICAL)
    if critical:
        return pick(critical[0], "Preventing critical threat!")

    immediate = snapshot.opponent_columns(ThreatKind.IMMEDIATE)
    if immediate:
        return pick(immediate[0], "Blocking developing threat")

    for col in CENTER_PRIORITY:
        if col in snapshot.valid_columns:
            return pick(col, "Taking the most central open column")

    # valid_columns only ever holds 0..6
    raise AssertionError("unreachable")


def validate_suggestion(suggestion: Suggestion, snapshot: AnalysisSnapshot) -> int:
    """
    Hard rules, independent of difficulty and checked independently: a
    suggestion must take a winning column when there is one and must block
    when the opponent threatens to win. If no column does both, the
    suggestion is rejected and the fallback takes the win.
    """
    column = suggestion.column
    if not 0 <= column < COLS:
        raise InvalidAdvisorySuggestion(column, "out of range")
    if column not in snapshot.valid_columns:
        raise InvalidAdvisorySuggestion(column, "column is full")
    if snapshot.winning_columns and column not in snapshot.winning_columns:
        raise InvalidAdvisorySuggestion(column, f"ignores winning columns {snapshot.winning_columns}")
    if snapshot.blocking_columns and column not in snapshot.blocking_columns:
        raise InvalidAdvisorySuggestion(column, f"ignores must-block columns {snapshot.blocking_columns}")
    return column


class MovePolicy:
    def __init__(self, advisor=None, timeout: float = DEFAULT_ADVISORY_TIMEOUT):
        self.advisor = advisor
        self.timeout = timeout
        self.phase = PolicyPhase.IDLE

    def _enter(self, phase: PolicyPhase):
        logger.debug("Policy phase %s -> %s", self.phase, phase)
        self.phase = phase

    async def _consult(self, board: Board, snapshot: AnalysisSnapshot, difficulty: Difficulty) -> Optional[Decision]:
        try:
            suggestion = await asyncio.wait_for(
                self.advisor.suggest(board.snapshot_text(), snapshot.summary(), difficulty),
                timeout=self.timeout,
            )
            column = validate_suggestion(suggestion, snapshot)
        except asyncio.TimeoutError:
            logger.warning("Advisory timed out after %.1fs, using fallback", self.timeout)
            return None
        except AdvisoryError as e:
            logger.warning("Advisory rejected (%s): %s", type(e).__name__, e)
            return None
        except Exception as e:
            logger.warning("Advisory %s raised %s: %s, using fallback", type(self.advisor).__name__, type(e).__name__, e)
            return None

        return Decision(column=column, source=DecisionSource.ADVISORY, thoughts=list(suggestion.rationale_lines))

    async def decide(self, board: Board, mover: Cell, difficulty: Difficulty = Difficulty.STANDARD) -> Decision:
        self._enter(PolicyPhase.GATHERING)
        snapshot = analyze(board, mover)

        decision = None
        if self.advisor is not None:
            self._enter(PolicyPhase.DECIDING)
            decision = await self._consult(board, snapshot, difficulty)

        if decision is None:
            decision = resolve_fallback(snapshot)

        self._enter(PolicyPhase.RESOLVED)
        logger.info("Policy chose column %s (%s)", decision.column, decision.source)
        return decision
