import unittest
from types import SimpleNamespace

from joindots.core.errors import AdvisoryMalformed, AdvisoryUnavailable
from joindots.engine.advisor import LangChainAdvisor, parse_advice, render_analysis, textual_description
from joindots.engine.board import Board
from joindots.engine.policy import analyze
from joindots.models.enums import Cell, Difficulty
from joindots.schemas.analysis_schema import AdvisoryRequest, AnalysisSummary, MoveDecision, Suggestion


class FakeChain:
    """Stands in for `prompt | llm.with_structured_output(...)`."""

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.inputs = []

    async def ainvoke(self, inputs):
        self.inputs.append(inputs)
        if self.error:
            raise self.error
        return self.result


EMPTY_SUMMARY = AnalysisSummary(valid_columns=list(range(7)), winning_columns=[], blocking_columns=[])


class TestParseAdvice(unittest.TestCase):
    def test_json_string(self):
        suggestion = parse_advice('{"column": 3, "thoughts": ["a", "b"]}')
        self.assertEqual(suggestion, Suggestion(column=3, rationale_lines=["a", "b"]))

    def test_fenced_json(self):
        reply = '```json\n{"column": 2, "thoughts": ["block"]}\n```'
        self.assertEqual(parse_advice(reply).column, 2)

    def test_dict_and_model(self):
        self.assertEqual(parse_advice({"column": 1, "thoughts": []}).column, 1)
        self.assertEqual(parse_advice(MoveDecision(column=6, thoughts=["x"])).rationale_lines, ["x"])

    def test_no_coercion(self):
        for bad in (
            '{"column": "3", "thoughts": []}',
            {"column": True, "thoughts": []},
            {"column": 3, "thoughts": "one line"},
            {"column": 3},
            "not json at all",
            "",
            None,
            42,
        ):
            with self.assertRaises(AdvisoryMalformed, msg=repr(bad)):
                parse_advice(bad)

    def test_out_of_range_column_parses(self):
        """Range is a policy rule, not a shape rule."""
        self.assertEqual(parse_advice('{"column": 9, "thoughts": []}').column, 9)


class TestPromptInputs(unittest.TestCase):
    def test_render_analysis(self):
        board = Board.from_rows([
            ".......",
            ".......",
            ".......",
            ".......",
            "YY.....",
            "RRR....",
        ])
        text = render_analysis(analyze(board, Cell.YELLOW).summary())
        self.assertIn("- MUST BLOCK opponent wins: [3]", text)
        self.assertIn("- WINNING moves for AI: [none]", text)
        self.assertIn("- Valid moves: [0, 1, 2, 3, 4, 5, 6]", text)

    def test_textual_description(self):
        board = Board()
        board.drop_piece(4, Cell.RED)
        board.drop_piece(4, Cell.YELLOW)
        lines = textual_description(board.snapshot_text()).splitlines()
        self.assertEqual(len(lines), 7)
        self.assertEqual(lines[0], "Column 0: Empty")
        self.assertEqual(lines[4], "Column 4: R, Y")

    def test_guidance_follows_difficulty(self):
        advisor = LangChainAdvisor(chain=FakeChain())
        relaxed = advisor.build_inputs(AdvisoryRequest(board=Board().snapshot_text(), analysis=EMPTY_SUMMARY,
                                                       difficulty=Difficulty.RELAXED))
        strict = advisor.build_inputs(AdvisoryRequest(board=Board().snapshot_text(), analysis=EMPTY_SUMMARY,
                                                      difficulty=Difficulty.STRICT))
        self.assertIn("RELAXED MODE", relaxed["guidance"])
        self.assertIn("STRICT MODE", strict["guidance"])
        self.assertEqual(relaxed["analysis"], strict["analysis"])


class TestLangChainAdvisor(unittest.IsolatedAsyncioTestCase):
    async def test_structured_reply(self):
        raw = SimpleNamespace(usage_metadata={"input_tokens": 120, "output_tokens": 30})
        chain = FakeChain({"parsed": MoveDecision(column=4, thoughts=["Block", "Center"]), "raw": raw,
                           "parsing_error": None})
        advisor = LangChainAdvisor("gpt-4o", chain=chain)

        suggestion = await advisor.suggest(Board().snapshot_text(), EMPTY_SUMMARY, Difficulty.STANDARD)
        self.assertEqual(suggestion.column, 4)
        self.assertEqual(suggestion.rationale_lines, ["Block", "Center"])
        self.assertIn("STANDARD MODE", chain.inputs[0]["guidance"])
        self.assertEqual(chain.inputs[0]["board"], Board().snapshot_text())

    async def test_plain_message_reply(self):
        chain = FakeChain(SimpleNamespace(content='{"column": 0, "thoughts": []}'))
        suggestion = await LangChainAdvisor(chain=chain).suggest(Board().snapshot_text(), EMPTY_SUMMARY,
                                                                  Difficulty.STRICT)
        self.assertEqual(suggestion.column, 0)

    async def test_model_failure_is_unavailable(self):
        advisor = LangChainAdvisor(chain=FakeChain(error=RuntimeError("connection refused")))
        with self.assertRaises(AdvisoryUnavailable):
            await advisor.suggest(Board().snapshot_text(), EMPTY_SUMMARY, Difficulty.STANDARD)

    async def test_parsing_error_is_malformed(self):
        chain = FakeChain({"parsed": None, "raw": None, "parsing_error": ValueError("bad json")})
        with self.assertRaises(AdvisoryMalformed):
            await LangChainAdvisor(chain=chain).suggest(Board().snapshot_text(), EMPTY_SUMMARY,
                                                        Difficulty.STANDARD)

    async def test_empty_parse_is_malformed(self):
        chain = FakeChain({"parsed": None, "raw": None, "parsing_error": None})
        with self.assertRaises(AdvisoryMalformed):
            await LangChainAdvisor(chain=chain).suggest(Board().snapshot_text(), EMPTY_SUMMARY,
                                                        Difficulty.STANDARD)


if __name__ == '__main__':
    unittest.main()
