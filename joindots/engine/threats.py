"""
Threat Analyzer

Scans a board for the patterns one side could exploit:

- immediate: three of the side plus one playable empty cell in a 4-window
- potential: two of the side plus two empties in a 4-window (first playable empty)
- critical:  row-local shapes that become unblockable if left alone,
             `_XX_` (open-ended two) and `X_X` (split two that fills to an open three)

The critical scan only looks at rows. Vertical and diagonal open-ended shapes
are a known gap of this heuristic.
"""

from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict

from joindots.engine.board import COLS, ROWS, Board
from joindots.models.enums import Cell, ThreatKind

Window = Sequence[Tuple[int, int]]


class Threat(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: ThreatKind
    column: int
    row: int
    side: Cell
    rationale: str


def iter_windows():
    """Every straight line of 4 cells inside the board."""
    for row in range(ROWS):
        for col in range(COLS):
            if col <= COLS - 4:
                yield [(row, col + i) for i in range(4)]
            if row <= ROWS - 4:
                yield [(row + i, col) for i in range(4)]
            if row <= ROWS - 4 and col <= COLS - 4:
                yield [(row + i, col + i) for i in range(4)]
            if row >= 3 and col <= COLS - 4:
                yield [(row - i, col + i) for i in range(4)]


def analyze_window(board: Board, window: Window, side: Cell) -> Optional[Threat]:
    player_count = 0
    empty_positions = []
    for r, c in window:
        if board[r, c] == side:
            player_count += 1
        elif board[r, c] == Cell.EMPTY:
            empty_positions.append((r, c))

    if player_count == 3 and len(empty_positions) == 1:
        r, c = empty_positions[0]
        if board.is_playable(r, c):
            return Threat(kind=ThreatKind.IMMEDIATE, column=c, row=r, side=side, rationale="three-in-line")

    if player_count == 2 and len(empty_positions) == 2:
        for r, c in empty_positions:
            if board.is_playable(r, c):
                return Threat(kind=ThreatKind.POTENTIAL, column=c, row=r, side=side, rationale="two-in-line")

    return None


def _is_open(board: Board, row: int, col: int) -> bool:
    # Off-board counts as open for the split-two check
    return not Board.in_bounds(row, col) or board[row, col] == Cell.EMPTY


def find_pattern_threats(board: Board, side: Cell) -> List[Threat]:
    threats = []
    for row in range(ROWS):
        for col in range(COLS - 2):
            # _XX_
            if (col + 3 < COLS
                    and board[row, col] == Cell.EMPTY
                    and board[row, col + 1] == side
                    and board[row, col + 2] == side
                    and board[row, col + 3] == Cell.EMPTY):
                left_playable = board.is_playable(row, col)
                right_playable = board.is_playable(row, col + 3)
                if left_playable or right_playable:
                    threats.append(Threat(
                        kind=ThreatKind.CRITICAL,
                        column=col if left_playable else col + 3,
                        row=row,
                        side=side,
                        rationale="open-ended-2",
                    ))

            # X_X
            if (col <= COLS - 4
                    and board[row, col] == side
                    and board[row, col + 1] == Cell.EMPTY
                    and board[row, col + 2] == side
                    and board.is_playable(row, col + 1)
                    and _is_open(board, row, col - 1)
                    and _is_open(board, row, col + 3)):
                threats.append(Threat(
                    kind=ThreatKind.CRITICAL,
                    column=col + 1,
                    row=row,
                    side=side,
                    rationale="prevents-open-3",
                ))
    return threats


def find_threats(board: Board, side: Cell) -> List[Threat]:
    threats = []
    for window in iter_windows():
        threat = analyze_window(board, window, side)
        if threat:
            threats.append(threat)
    threats.extend(find_pattern_threats(board, side))
    return threats


def threat_columns(threats: Sequence[Threat], kind: ThreatKind, valid_columns: Optional[Sequence[int]] = None) -> List[int]:
    """Columns carrying threats of `kind`, in scan order, without duplicates."""
    columns = []
    for threat in threats:
        if threat.kind != kind or threat.column in columns:
            continue
        if valid_columns is not None and threat.column not in valid_columns:
            continue
        columns.append(threat.column)
    return columns
