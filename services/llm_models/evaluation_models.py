"""
Evaluation Pydantic Models

Request and verdict models for semantic (LLM) answer evaluation.
The verdict mirrors the JSON object the model is asked to return.
"""

from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictBool, field_validator

DEFAULT_CONFIDENCE = 0.5


class SemanticEvaluationRequest(BaseModel):
    """Everything the semantic evaluator needs to judge one answer"""
    question: str = Field(default="", description="Question text")
    user_answer: str = Field(description="Answer submitted by the user")
    expected_answers: List[str] = Field(description="Acceptable answers, numbered in the prompt")
    explanation: Optional[str] = Field(default=None, description="Supporting explanation")
    context: Optional[str] = Field(default=None, description="Supporting study material")


class SemanticVerdict(BaseModel):
    """
    Answer verdict from the LLM.

    Expected response body:
    {
        "isCorrect": true,
        "confidence": 0.85,
        "reasoning": "Captures the main idea of photosynthesis"
    }

    error is never set by the model. The evaluator sets it when the call
    itself failed (provider error, timeout, open circuit), which lets the
    orchestrator tell a failed call from a negative judgement.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra='ignore')

    is_correct: StrictBool = Field(
        validation_alias=AliasChoices('isCorrect', 'is_correct'),
        description="Whether the user's answer is correct"
    )
    confidence: float = Field(
        default=DEFAULT_CONFIDENCE,
        description="Confidence score, clamped to 0.0-1.0"
    )
    reasoning: str = Field(
        default="",
        description="Brief explanation of the verdict"
    )
    error: Optional[str] = Field(default=None, exclude=True)

    @field_validator('confidence', mode='before')
    @classmethod
    def _clamp_confidence(cls, value: Any) -> float:
        # Missing, non-numeric or NaN confidence falls back to the default
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value != value:
            return DEFAULT_CONFIDENCE
        return max(0.0, min(1.0, float(value)))

    @field_validator('reasoning', mode='before')
    @classmethod
    def _coerce_reasoning(cls, value: Any) -> str:
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)

    @property
    def failed(self) -> bool:
        return self.error is not None
