"""
LLM Pydantic Models

Structured request/response models for LLM answer evaluation
(SemanticEvaluationRequest, SemanticVerdict).
"""

from .evaluation_models import SemanticEvaluationRequest, SemanticVerdict

__all__ = [
    'SemanticEvaluationRequest',
    'SemanticVerdict'
]
