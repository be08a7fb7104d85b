from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr
from typing import List

from joindots.models.enums import Difficulty


class AnalysisSummary(BaseModel):
    """What the advisory is told about the position, as column lists."""
    model_config = ConfigDict(frozen=True)

    valid_columns: List[int]
    winning_columns: List[int]
    blocking_columns: List[int]
    opponent_critical: List[int] = []
    opponent_immediate: List[int] = []
    opponent_potential: List[int] = []
    own_critical: List[int] = []
    own_immediate: List[int] = []
    own_potential: List[int] = []


# --- Structured Output ---
class MoveDecision(BaseModel):
    """Schema handed to the chat model."""
    column: StrictInt = Field(description="Column index (0-6) to drop the piece in.")
    thoughts: List[StrictStr] = Field(
        description="Short lines: immediate wins/blocks/critical threats, strategic evaluation, why this move."
    )


class Suggestion(BaseModel):
    """A parsed advisory reply. Strict: no coercion of the column."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    column: StrictInt
    rationale_lines: List[StrictStr] = Field(default_factory=list)


class AdvisoryRequest(BaseModel):
    board: str
    analysis: AnalysisSummary
    difficulty: Difficulty
