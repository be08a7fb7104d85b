from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from joindots.engine.board import Board
from joindots.models.enums import Cell, OutcomeStatus

# Each line is a pair of opposite rays: horizontal, vertical, diagonal, anti-diagonal
DIRECTIONS = [
    ((0, 1), (0, -1)),
    ((1, 0), (-1, 0)),
    ((1, 1), (-1, -1)),
    ((1, -1), (-1, 1)),
]

WIN_LENGTH = 4


class WinLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    side: Cell
    cells: Tuple[Tuple[int, int], ...]


class GameOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: OutcomeStatus = OutcomeStatus.IN_PROGRESS
    winner: Optional[Cell] = None
    winning_cells: Tuple[Tuple[int, int], ...] = ()

    @property
    def is_terminal(self) -> bool:
        return self.status != OutcomeStatus.IN_PROGRESS


IN_PROGRESS = GameOutcome()


def detect_win(board: Board, row: int, col: int) -> Optional[WinLine]:
    """
    Checks for 4-in-a-row through the piece at (row, col).
    Returns every contiguous cell of the first winning line found, origin first.
    """
    player = board[row, col]
    if player == Cell.EMPTY:
        return None

    for ray_a, ray_b in DIRECTIONS:
        cells: List[Tuple[int, int]] = [(row, col)]
        for dr, dc in (ray_a, ray_b):
            r, c = row + dr, col + dc
            while Board.in_bounds(r, c) and board[r, c] == player:
                cells.append((r, c))
                r += dr
                c += dc

        if len(cells) >= WIN_LENGTH:
            return WinLine(side=player, cells=tuple(cells))
    return None


def is_winning_move(board: Board, col: int, side: Cell) -> bool:
    """Would dropping `side` into `col` win? Checked on a scratch copy."""
    row = board.drop_row(col)
    if row is None:
        return False
    test_board = board.copy()
    test_board[row, col] = side
    line = detect_win(test_board, row, col)
    return line is not None and line.side == side


def evaluate_outcome(board: Board, row: int, col: int) -> GameOutcome:
    line = detect_win(board, row, col)
    if line:
        return GameOutcome(status=OutcomeStatus.WIN, winner=line.side, winning_cells=line.cells)
    if board.is_full():
        return GameOutcome(status=OutcomeStatus.DRAW)
    return IN_PROGRESS
