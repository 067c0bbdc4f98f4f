"""
Evaluation Result Model

The single verdict produced for every (question, answer) evaluation.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class EvaluationMethod(str, Enum):
    """Strategy that produced the final verdict"""
    CHOICE = "choice"
    NUMERIC = "numeric"
    FUZZY_TEXT = "fuzzy_text"
    SEMANTIC = "semantic"
    NONE = "none"


class EvaluationResult(BaseModel):
    """
    Immutable evaluation verdict.

    confidence is a signal for the caller, not a gate: deterministic matches
    report 0.9, unescalated misses report a low configured value (0.3 by
    default), and semantic verdicts carry the model's clamped confidence.

    Example (to_dict):
    {
        "isCorrect": true,
        "usedSemanticEvaluator": false,
        "confidence": 0.9,
        "reasoning": null,
        "method": "fuzzy_text"
    }
    """
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True
    )

    is_correct: bool
    used_semantic_evaluator: bool = False
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: Optional[str] = None
    method: EvaluationMethod = EvaluationMethod.NONE

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the camelCase keys used by the quiz clients"""
        return self.model_dump(by_alias=True)
