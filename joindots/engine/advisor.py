import logging
import re
from typing import Any, Dict, Optional, Protocol

from langchain_core.prompts import ChatPromptTemplate
from pydantic import ValidationError

from joindots.core.errors import AdvisoryMalformed, AdvisoryUnavailable
from joindots.engine.ai_factory import get_structured_llm
from joindots.models.enums import Difficulty
from joindots.schemas.analysis_schema import AdvisoryRequest, AnalysisSummary, MoveDecision, Suggestion

logger = logging.getLogger(__name__)


class Advisor(Protocol):
    async def suggest(self, board_snapshot: str, analysis: AnalysisSummary, difficulty: Difficulty) -> Suggestion:
        ...


# --- Parsing ---

_FENCE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL)

def parse_advice(payload: Any) -> Suggestion:
    """
    Turns a model reply into a Suggestion.
    Accepts a MoveDecision, a dict, or a JSON string (optionally fenced).
    Raises AdvisoryMalformed on any shape mismatch.
    """
    if isinstance(payload, Suggestion):
        return payload
    if payload is None:
        raise AdvisoryMalformed("Model returned empty decision")

    try:
        if isinstance(payload, MoveDecision):
            decision = payload
        elif isinstance(payload, dict):
            decision = MoveDecision.model_validate(payload)
        elif isinstance(payload, str):
            match = _FENCE.match(payload)
            text = match.group(1) if match else payload.strip()
            decision = MoveDecision.model_validate_json(text)
        else:
            raise AdvisoryMalformed(f"Unexpected reply type: {type(payload).__name__}")
    except ValidationError as e:
        raise AdvisoryMalformed(f"Reply does not match schema: {e.error_count()} error(s)") from e

    return Suggestion(column=decision.column, rationale_lines=decision.thoughts)


# --- Prompt Template ---
SYSTEM_PROMPT = """
You are playing Connect Four as Yellow (Y) against Red (R).
Board: 6 Rows x 7 Columns, row 0 is the top.
Goal: Connect 4 pieces in a row (Horizontal, Vertical, Diagonal).
Gravity: Pieces fall to the lowest empty slot.
"""

USER_TEMPLATE = """
Current board:
{board}

Board (Textual):
{textual_board}

{analysis}

CRITICAL RULES:
1. If "MUST BLOCK opponent wins" shows ANY columns, you MUST play one of those columns or you lose immediately!
2. If "WINNING moves for AI" shows ANY columns, play one to win immediately!
3. If "CRITICAL: Prevent unblockable threats" shows ANY columns, you MUST block these NOW or opponent will have unstoppable win next turn!
4. Pieces fall to the lowest empty position in a column.

{guidance}

Based on the analysis provided, choose the BEST move.
Give the column and 2-4 short thoughts:
what immediate wins/blocks/critical threats exist, a strategic evaluation, why this move.

REMEMBER: Priority is WIN > BLOCK WIN > PREVENT CRITICAL THREATS > STRATEGY
"""

DIFFICULTY_GUIDANCE: Dict[Difficulty, str] = {
    Difficulty.RELAXED: """RELAXED MODE Instructions:
1. If opponent can win next turn, YOU MUST BLOCK (no exceptions!)
2. If you can win, take it
3. Block critical threats that lead to unblockable positions
4. Try to control center columns (3,2,4)
5. Sometimes play a less optimal move after handling critical threats""",
    Difficulty.STANDARD: """STANDARD MODE Instructions:
1. ALWAYS block immediate wins (check the analysis above!)
2. ALWAYS take your winning moves
3. ALWAYS block critical threats (open-ended patterns)
4. Block opponent threats early
5. Create multiple threats when possible
6. Control center (3,2,4,1,5)
7. Think 2-3 moves ahead""",
    Difficulty.STRICT: """STRICT MODE - PERFECT PLAY:
1. PRIORITY ORDER (follow EXACTLY):
   a) WIN if possible (check "WINNING moves for AI")
   b) BLOCK if opponent can win (check "MUST BLOCK")
   c) PREVENT CRITICAL THREATS (check "Prevent unblockable threats")
   d) Create winning threats/forks
   e) Block opponent's developing threats early
   f) Control center columns (3,2,4)
   g) Never allow opponent to get 2-in-a-row with open ends
2. Key patterns to prevent:
   - _XX_ (2 pieces with spaces on both sides)
   - X_X becoming XXX with open ends
3. Analyze EVERY possible opponent response""",
}

prompt = ChatPromptTemplate.from_messages([
    ("system", SYSTEM_PROMPT),
    ("user", USER_TEMPLATE)
])


def _columns(columns) -> str:
    return ", ".join(str(c) for c in columns) or "none"


def render_analysis(summary: AnalysisSummary) -> str:
    return "\n".join([
        "Critical Analysis:",
        f"- Valid moves: [{_columns(summary.valid_columns)}]",
        f"- WINNING moves for AI: [{_columns(summary.winning_columns)}]",
        f"- MUST BLOCK opponent wins: [{_columns(summary.blocking_columns)}]",
        f"- CRITICAL: Prevent unblockable threats: [{_columns(summary.opponent_critical)}]",
        f"- Opponent immediate threats: [{_columns(summary.opponent_immediate)}]",
        f"- Opponent building threats: [{_columns(summary.opponent_potential)}]",
        f"- AI can create threats at: [{_columns(summary.own_immediate)}]",
        f"- AI open-ended patterns at: [{_columns(summary.own_critical)}]",
    ])


def textual_description(board_snapshot: str) -> str:
    """Column-by-column, bottom to top, from a row-major snapshot."""
    rows = [line.split() for line in board_snapshot.splitlines()]
    lines = []
    for c in range(len(rows[0]) if rows else 0):
        pieces = []
        for row in reversed(rows):
            if row[c] == ".":
                break
            pieces.append(row[c])
        lines.append(f"Column {c}: {', '.join(pieces) if pieces else 'Empty'}")
    return "\n".join(lines)


class LangChainAdvisor:
    """
    Asks a chat model for a column. One attempt per turn, no retries:
    the caller bounds the wait and falls back on any AdvisoryError.
    """

    def __init__(self, model_name: str = "gpt-4o", temperature: float = 0.2, chain=None):
        self.model_name = model_name
        if chain is not None:
            self.chain = chain
            return

        self.chain = prompt | get_structured_llm(model_name, MoveDecision, temperature)

    def build_inputs(self, request: AdvisoryRequest) -> Dict[str, str]:
        return {
            "board": request.board,
            "textual_board": textual_description(request.board),
            "analysis": render_analysis(request.analysis),
            "guidance": DIFFICULTY_GUIDANCE[request.difficulty],
        }

    async def suggest(self, board_snapshot: str, analysis: AnalysisSummary, difficulty: Difficulty) -> Suggestion:
        request = AdvisoryRequest(board=board_snapshot, analysis=analysis, difficulty=difficulty)
        try:
            result = await self.chain.ainvoke(self.build_inputs(request))
        except Exception as e:
            # Capture specific exception message and truncate if too long
            error_msg = str(e)
            clean_error = (error_msg[:100] + '..') if len(error_msg) > 100 else error_msg
            raise AdvisoryUnavailable(f"Model {self.model_name} failed: {clean_error}") from e

        parsed: Optional[Any] = result
        if isinstance(result, dict) and "parsed" in result:
            if result.get("parsing_error"):
                raise AdvisoryMalformed(f"Model {self.model_name} reply unparseable: {result['parsing_error']}")
            parsed = result["parsed"]
            usage = getattr(result.get("raw"), "usage_metadata", None) or {}
            if usage:
                logger.debug("Advisory usage (%s): in=%s out=%s", self.model_name,
                             usage.get("input_tokens", 0), usage.get("output_tokens", 0))
        elif hasattr(result, "content"):
            # Plain chat message
            parsed = result.content

        suggestion = parse_advice(parsed)
        logger.info("Advisory %s suggests column %s", self.model_name, suggestion.column)
        return suggestion
