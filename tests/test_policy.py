import asyncio
import unittest

from joindots.core.errors import AdvisoryMalformed, AdvisoryUnavailable, InvalidAdvisorySuggestion
from joindots.engine.board import Board
from joindots.engine.policy import MovePolicy, analyze, resolve_fallback, validate_suggestion
from joindots.models.enums import Cell, DecisionSource, Difficulty, PolicyPhase
from joindots.schemas.analysis_schema import Suggestion

AI = Cell.YELLOW

# Yellow can win in column 4, Red threatens to win in column 0
WIN_AND_BLOCK = [
    ".......",
    ".......",
    ".......",
    "R......",
    "R......",
    "RYYY...",
]

# Red threatens to win in column 3 only
MUST_BLOCK = [
    ".......",
    ".......",
    ".......",
    ".......",
    "YY.....",
    "RRR....",
]


class FakeAdvisor:
    def __init__(self, column=None, error=None, delay=0.0, lines=("Looks good",)):
        self.column = column
        self.error = error
        self.delay = delay
        self.lines = list(lines)
        self.calls = []

    async def suggest(self, board_snapshot, analysis, difficulty):
        self.calls.append((board_snapshot, analysis, difficulty))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return Suggestion(column=self.column, rationale_lines=self.lines)


class TestFallback(unittest.TestCase):
    def test_empty_board_prefers_center(self):
        decision = resolve_fallback(analyze(Board(), AI))
        self.assertEqual(decision.column, 3)
        self.assertEqual(decision.source, DecisionSource.FALLBACK)

    def test_win_beats_block(self):
        snapshot = analyze(Board.from_rows(WIN_AND_BLOCK), AI)
        self.assertEqual(snapshot.winning_columns, [4])
        self.assertEqual(snapshot.blocking_columns, [0])
        decision = resolve_fallback(snapshot)
        self.assertEqual(decision.column, 4)
        self.assertIn("Found winning move!", decision.thoughts)

    def test_must_block(self):
        snapshot = analyze(Board.from_rows(MUST_BLOCK), AI)
        self.assertEqual(snapshot.winning_columns, [])
        self.assertEqual(snapshot.blocking_columns, [3])
        self.assertEqual(resolve_fallback(snapshot).column, 3)

    def test_prevent_critical(self):
        board = Board.from_rows([
            ". . . . . . .",
            ". . . . . . .",
            ". . . . . . .",
            ". . . . . . .",
            ". . . . . . .",
            "Y . R R . . .",
        ])
        snapshot = analyze(board, AI)
        self.assertEqual(snapshot.blocking_columns, [])
        decision = resolve_fallback(snapshot)
        self.assertEqual(decision.column, 1)
        self.assertIn("Preventing critical threat!", decision.thoughts)

    def test_center_order_skips_full_columns(self):
        board = Board.from_rows([
            "...Y...",
            "...R...",
            "...Y...",
            "...R...",
            "...Y...",
            "...R...",
        ])
        snapshot = analyze(board, AI)
        self.assertNotIn(3, snapshot.valid_columns)
        self.assertEqual(resolve_fallback(snapshot).column, 2)

    def test_no_valid_columns(self):
        board = Board()
        for c in range(7):
            for r in range(6):
                board.drop_piece(c, Cell.RED if (c // 2 + r) % 2 else Cell.YELLOW)
        with self.assertRaises(ValueError):
            resolve_fallback(analyze(board, AI))

    def test_summary_lists_columns(self):
        summary = analyze(Board.from_rows(WIN_AND_BLOCK), AI).summary()
        self.assertEqual(summary.valid_columns, list(range(7)))
        self.assertEqual(summary.winning_columns, [4])
        self.assertEqual(summary.blocking_columns, [0])
        self.assertIn(0, summary.opponent_immediate)
        self.assertIn(4, summary.own_immediate)


class TestValidateSuggestion(unittest.TestCase):
    def setUp(self):
        self.block_snapshot = analyze(Board.from_rows(MUST_BLOCK), AI)

    def test_out_of_range(self):
        with self.assertRaises(InvalidAdvisorySuggestion):
            validate_suggestion(Suggestion(column=7), analyze(Board(), AI))
        with self.assertRaises(InvalidAdvisorySuggestion):
            validate_suggestion(Suggestion(column=-1), analyze(Board(), AI))

    def test_full_column(self):
        board = Board()
        for _ in range(6):
            board.drop_piece(5, Cell.RED)
        with self.assertRaises(InvalidAdvisorySuggestion):
            validate_suggestion(Suggestion(column=5), analyze(board, AI))

    def test_ignoring_block(self):
        with self.assertRaises(InvalidAdvisorySuggestion) as ctx:
            validate_suggestion(Suggestion(column=4), self.block_snapshot)
        self.assertIn("must-block", ctx.exception.reason)
        self.assertEqual(validate_suggestion(Suggestion(column=3), self.block_snapshot), 3)

    def test_ignoring_win(self):
        snapshot = analyze(Board.from_rows(WIN_AND_BLOCK), AI)
        with self.assertRaises(InvalidAdvisorySuggestion):
            validate_suggestion(Suggestion(column=3), snapshot)
        with self.assertRaises(InvalidAdvisorySuggestion) as ctx:
            validate_suggestion(Suggestion(column=0), snapshot)
        self.assertIn("winning", ctx.exception.reason)

    def test_win_outside_block_set(self):
        snapshot = analyze(Board.from_rows(WIN_AND_BLOCK), AI)
        with self.assertRaises(InvalidAdvisorySuggestion) as ctx:
            validate_suggestion(Suggestion(column=4), snapshot)
        self.assertIn("must-block", ctx.exception.reason)

    def test_win_that_also_blocks(self):
        board = Board.from_rows([
            ".......",
            ".......",
            ".......",
            ".......",
            ".......",
            "RRR.YYY",
        ])
        snapshot = analyze(board, AI)
        self.assertEqual(snapshot.winning_columns, [3])
        self.assertEqual(snapshot.blocking_columns, [3])
        self.assertEqual(validate_suggestion(Suggestion(column=3), snapshot), 3)

    def test_free_choice(self):
        self.assertEqual(validate_suggestion(Suggestion(column=6), analyze(Board(), AI)), 6)


class TestMovePolicy(unittest.IsolatedAsyncioTestCase):
    async def test_without_advisor(self):
        policy = MovePolicy()
        decision = await policy.decide(Board(), AI)
        self.assertEqual(decision.column, 3)
        self.assertEqual(decision.source, DecisionSource.FALLBACK)
        self.assertEqual(policy.phase, PolicyPhase.RESOLVED)

    async def test_accepts_valid_advice(self):
        advisor = FakeAdvisor(column=5, lines=["Center is crowded", "Build on the right"])
        decision = await MovePolicy(advisor).decide(Board(), AI, Difficulty.RELAXED)
        self.assertEqual(decision.column, 5)
        self.assertEqual(decision.source, DecisionSource.ADVISORY)
        self.assertEqual(decision.thoughts, ["Center is crowded", "Build on the right"])

        board_text, summary, difficulty = advisor.calls[0]
        self.assertEqual(board_text, Board().snapshot_text())
        self.assertEqual(summary.valid_columns, list(range(7)))
        self.assertEqual(difficulty, Difficulty.RELAXED)

    async def test_rejects_advice_that_ignores_block(self):
        """Whatever the advisory says, a forced block is played."""
        board = Board.from_rows(MUST_BLOCK)
        for column in (0, 1, 2, 4, 5, 6):
            decision = await MovePolicy(FakeAdvisor(column=column)).decide(board, AI)
            self.assertEqual(decision.column, 3)
            self.assertEqual(decision.source, DecisionSource.FALLBACK)

    async def test_advisory_errors_fall_back(self):
        for error in (AdvisoryUnavailable("down"), AdvisoryMalformed("garbage")):
            decision = await MovePolicy(FakeAdvisor(error=error)).decide(Board(), AI)
            self.assertEqual(decision.column, 3)
            self.assertEqual(decision.source, DecisionSource.FALLBACK)

    async def test_unexpected_advisor_error_falls_back(self):
        advisor = FakeAdvisor(error=RuntimeError("advisor bug"))
        with self.assertLogs("joindots.engine.policy", level="WARNING"):
            decision = await MovePolicy(advisor).decide(Board(), AI)
        self.assertEqual(decision.column, 3)
        self.assertEqual(decision.source, DecisionSource.FALLBACK)

    async def test_conflicting_win_and_block_takes_the_win(self):
        board = Board.from_rows(WIN_AND_BLOCK)
        for column in (0, 4):
            decision = await MovePolicy(FakeAdvisor(column=column)).decide(board, AI)
            self.assertEqual(decision.column, 4)
            self.assertEqual(decision.source, DecisionSource.FALLBACK)
            self.assertIn("Found winning move!", decision.thoughts)

    async def test_advisory_timeout_falls_back(self):
        advisor = FakeAdvisor(column=6, delay=5)
        decision = await MovePolicy(advisor, timeout=0.05).decide(Board(), AI)
        self.assertEqual(decision.column, 3)
        self.assertEqual(decision.source, DecisionSource.FALLBACK)
        self.assertEqual(len(advisor.calls), 1)  # no retry

    async def test_does_not_mutate_board(self):
        board = Board.from_rows(WIN_AND_BLOCK)
        before = board.copy()
        await MovePolicy(FakeAdvisor(column=4)).decide(board, AI)
        self.assertEqual(board, before)


if __name__ == '__main__':
    unittest.main()
