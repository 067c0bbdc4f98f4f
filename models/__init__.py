"""
Domain models for answer evaluation:
- Question variants and the boundary validator (build_question)
- EvaluationResult
"""

from .question import (
    QuestionPayload,
    Question,
    ChoiceQuestion,
    NumericQuestion,
    OpenEndedQuestion,
    UnknownQuestion,
    build_question
)
from .evaluation_result import EvaluationMethod, EvaluationResult

__all__ = [
    'QuestionPayload',
    'Question',
    'ChoiceQuestion',
    'NumericQuestion',
    'OpenEndedQuestion',
    'UnknownQuestion',
    'build_question',
    'EvaluationMethod',
    'EvaluationResult'
]
