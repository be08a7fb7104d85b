import logging
import time
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from joindots.core.errors import GameAlreadyOver, NotYourTurn
from joindots.engine.board import Board
from joindots.engine.policy import MovePolicy
from joindots.engine.rules import IN_PROGRESS, GameOutcome, evaluate_outcome
from joindots.models.enums import AUTOMATED_SIDE, HUMAN_SIDE, Cell, DecisionSource, Difficulty

# Logger setup
logger = logging.getLogger(__name__)


class Thought(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    round: int


class MoveRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    side: Cell
    column: int
    row: int
    source: DecisionSource
    duration: float = 0.0


class TurnResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    outcome: GameOutcome
    row: int
    column: int
    side: Cell
    source: DecisionSource
    thoughts: List[Thought] = []


class GameSession:
    """
    One human (RED) against the automated side (YELLOW).

    Turn ownership is the only mutual exclusion: while the automated side is
    awaiting its decision, every other move request is rejected, not queued.
    """

    def __init__(self, policy: Optional[MovePolicy] = None, difficulty: Difficulty = Difficulty.STANDARD):
        self.policy = policy or MovePolicy()
        self._generation = 0
        self.new_game(difficulty)

    def new_game(self, difficulty: Difficulty = Difficulty.STANDARD):
        # A fresh Board object: a decision still in flight keeps reading the old one
        self.board = Board()
        self.difficulty = Difficulty(difficulty)
        self.side_to_move: Cell = HUMAN_SIDE
        self.outcome: GameOutcome = IN_PROGRESS
        self.thoughts: List[Thought] = []
        self.history: List[MoveRecord] = []
        self.last_move: Optional[MoveRecord] = None
        self.decision_pending = False
        self._generation += 1
        logger.info("New game (%s)", self.difficulty)

    @property
    def round(self) -> int:
        return self.board.piece_count() + 1

    def _ensure_in_progress(self):
        if self.outcome.is_terminal:
            raise GameAlreadyOver(f"Game is over ({self.outcome.status})")

    def _apply(self, column: int, side: Cell, source: DecisionSource, duration: float = 0.0) -> MoveRecord:
        row, column = self.board.drop_piece(column, side)

        record = MoveRecord(side=side, column=column, row=row, source=source, duration=duration)
        self.history.append(record)
        self.last_move = record

        self.outcome = evaluate_outcome(self.board, row, column)
        if not self.outcome.is_terminal:
            self.side_to_move = side.opponent
        else:
            logger.info("Game over: %s (winner=%s)", self.outcome.status,
                        self.outcome.winner.name if self.outcome.winner else None)
        return record

    def submit_human_move(self, column: int) -> TurnResult:
        self._ensure_in_progress()
        if self.decision_pending or self.side_to_move != HUMAN_SIDE:
            raise NotYourTurn("It is not the human's turn")

        record = self._apply(column, HUMAN_SIDE, DecisionSource.HUMAN)
        return TurnResult(outcome=self.outcome, row=record.row, column=record.column,
                          side=HUMAN_SIDE, source=record.source)

    async def request_automated_move(self) -> TurnResult:
        self._ensure_in_progress()
        if self.decision_pending or self.side_to_move != AUTOMATED_SIDE:
            raise NotYourTurn("It is not the automated side's turn")

        generation = self._generation
        board = self.board
        round_no = self.round
        start_time = time.time()

        self.decision_pending = True
        try:
            decision = await self.policy.decide(board, AUTOMATED_SIDE, self.difficulty)
        finally:
            if generation == self._generation:
                self.decision_pending = False

        if generation != self._generation:
            # new_game() ran while we were thinking; nothing was applied
            raise NotYourTurn("Turn ownership changed while the automated side was deciding")

        duration = round(time.time() - start_time, 3)
        record = self._apply(decision.column, AUTOMATED_SIDE, decision.source, duration)

        thoughts = [Thought(text=line, round=round_no) for line in decision.thoughts]
        self.thoughts.extend(thoughts)
        return TurnResult(outcome=self.outcome, row=record.row, column=record.column,
                          side=AUTOMATED_SIDE, source=decision.source, thoughts=thoughts)
