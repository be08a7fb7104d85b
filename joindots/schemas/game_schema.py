from pydantic import BaseModel, ConfigDict
from typing import List, Optional, Tuple

from joindots.engine.game import GameSession, TurnResult
from joindots.models.enums import DecisionSource, Difficulty, OutcomeStatus


class GameCreate(BaseModel):
    difficulty: Optional[Difficulty] = None

class MoveRequest(BaseModel):
    # Range checked by the board
    column: int

class LastMove(BaseModel):
    side: str
    row: int
    column: int
    source: DecisionSource

class OutcomeResponse(BaseModel):
    status: OutcomeStatus
    winner: Optional[str] = None
    winning_cells: List[Tuple[int, int]] = []

class ThoughtResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    text: str
    round: int

class GameResponse(BaseModel):
    id: int
    difficulty: Difficulty
    board: List[List[int]]
    current_turn: str
    decision_pending: bool
    outcome: OutcomeResponse
    last_move: Optional[LastMove] = None
    thoughts: List[ThoughtResponse] = []

class TurnResponse(BaseModel):
    game: GameResponse
    row: int
    column: int
    side: str
    source: DecisionSource
    thoughts: List[ThoughtResponse] = []


def _outcome(session: GameSession) -> OutcomeResponse:
    outcome = session.outcome
    return OutcomeResponse(
        status=outcome.status,
        winner=outcome.winner.name.lower() if outcome.winner else None,
        winning_cells=list(outcome.winning_cells),
    )


def game_response(game_id: int, session: GameSession) -> GameResponse:
    last = session.last_move
    return GameResponse(
        id=game_id,
        difficulty=session.difficulty,
        board=[[int(cell) for cell in row] for row in session.board.grid],
        current_turn=session.side_to_move.name.lower(),
        decision_pending=session.decision_pending,
        outcome=_outcome(session),
        last_move=LastMove(side=last.side.name.lower(), row=last.row, column=last.column, source=last.source) if last else None,
        thoughts=[ThoughtResponse.model_validate(t) for t in session.thoughts],
    )


def turn_response(game_id: int, session: GameSession, result: TurnResult) -> TurnResponse:
    return TurnResponse(
        game=game_response(game_id, session),
        row=result.row,
        column=result.column,
        side=result.side.name.lower(),
        source=result.source,
        thoughts=[ThoughtResponse.model_validate(t) for t in result.thoughts],
    )
