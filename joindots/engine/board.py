from typing import List, Optional, Sequence, Tuple

from joindots.core.errors import ColumnFull, InvalidColumn
from joindots.models.enums import Cell

ROWS = 6
COLS = 7
BOTTOM_ROW = ROWS - 1

class Board:
    def __init__(self):
        """
        Board uses (row, col) indexing.
        Row 0 is the TOP of the board.
        Row 5 is the BOTTOM of the board.
        """
        self.grid: List[List[Cell]] = [[Cell.EMPTY for _ in range(COLS)] for _ in range(ROWS)]

    @classmethod
    def from_rows(cls, rows: Sequence[str]) -> "Board":
        """
        Builds a board from six strings of symbols, top row first.
        Whitespace is ignored, so both 'RR.....' and 'R R . . . . .' work.
        """
        if len(rows) != ROWS:
            raise ValueError(f"Expected {ROWS} rows, got {len(rows)}")
        board = cls()
        for r, line in enumerate(rows):
            symbols = line.replace(" ", "")
            if len(symbols) != COLS:
                raise ValueError(f"Row {r} must have {COLS} cells: {line!r}")
            for c, sym in enumerate(symbols):
                board.grid[r][c] = Cell.from_symbol(sym)
        return board

    def copy(self) -> "Board":
        clone = Board()
        clone.grid = [list(row) for row in self.grid]
        return clone

    def __getitem__(self, pos: Tuple[int, int]) -> Cell:
        r, c = pos
        return self.grid[r][c]

    def __setitem__(self, pos: Tuple[int, int], value: Cell):
        r, c = pos
        self.grid[r][c] = Cell(value)

    def __eq__(self, other):
        if not isinstance(other, Board):
            return NotImplemented
        return self.grid == other.grid

    @staticmethod
    def in_bounds(r: int, c: int) -> bool:
        return 0 <= r < ROWS and 0 <= c < COLS

    def _check_column(self, col: int):
        if isinstance(col, bool) or not isinstance(col, int) or not 0 <= col < COLS:
            raise InvalidColumn(col)

    # --- Geometry ---

    def drop_row(self, col: int) -> Optional[int]:
        """Lowest empty row in `col`, or None if the column is full."""
        self._check_column(col)
        # Gravity: scan from the bottom up
        for r in range(BOTTOM_ROW, -1, -1):
            if self.grid[r][col] == Cell.EMPTY:
                return r
        return None

    def place(self, col: int, side: Cell) -> Tuple[int, int]:
        """
        Resolves where a piece of `side` would land in `col`.
        Does NOT write the cell; see drop_piece for that.
        """
        if side == Cell.EMPTY:
            raise ValueError("Cannot place an EMPTY piece")
        row = self.drop_row(col)
        if row is None:
            raise ColumnFull(col)
        return row, col

    def drop_piece(self, col: int, side: Cell) -> Tuple[int, int]:
        row, col = self.place(col, side)
        self.grid[row][col] = side
        return row, col

    def is_full(self) -> bool:
        # Gravity guarantees the top row fills last
        return all(cell != Cell.EMPTY for cell in self.grid[0])

    def valid_columns(self) -> List[int]:
        """Returns a list of column indices (0-6) that are not full."""
        return [c for c in range(COLS) if self.grid[0][c] == Cell.EMPTY]

    def is_playable(self, r: int, c: int) -> bool:
        """An empty cell that a piece dropped now would land on."""
        if self.grid[r][c] != Cell.EMPTY:
            return False
        return r == BOTTOM_ROW or self.grid[r + 1][c] != Cell.EMPTY

    def piece_count(self) -> int:
        return sum(1 for row in self.grid for cell in row if cell != Cell.EMPTY)

    # --- Formatting ---

    def snapshot_text(self) -> str:
        """Row-major snapshot, one symbol per cell, top row first."""
        return "\n".join(" ".join(cell.symbol for cell in row) for row in self.grid)

    def get_visual_board(self) -> str:
        """Generates an ASCII grid representation."""
        header = " " + " ".join([str(i) for i in range(COLS)])
        rows_str = []
        for r in range(ROWS):
            row_cells = [self.grid[r][c].symbol for c in range(COLS)]
            rows_str.append("|" + "|".join(row_cells) + "|")
        return header + "\n" + "\n".join(rows_str)

    def __str__(self):
        return self.get_visual_board()
