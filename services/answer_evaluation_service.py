"""
Answer Evaluation Service - Decides whether a quiz answer is correct.

This service is the single entry point used by quiz scoring. It routes a
question to the deterministic matcher for its shape and, when that
matcher says no, may escalate open-ended answers to the semantic (LLM)
evaluator.

Decision policy:
1. Deterministic match by question variant (numeric format overrides kind)
2. Match -> accept with confidence 0.9, never double-checked by the LLM
3. Miss -> escalate only for open-ended questions with expected answers
   and a text answer longer than 5 characters
4. Not escalated, or the LLM call failed -> reject with a low confidence
5. LLM verdict -> returned as-is with its confidence

evaluate() never raises for a well-typed (question, answer) pair.
"""

import logging
from typing import Optional, Tuple, Union

from models.evaluation_result import EvaluationMethod, EvaluationResult
from models.question import (
    ChoiceQuestion,
    NumericQuestion,
    OpenEndedQuestion,
    Question,
)
from services.choice_matcher import is_choice_correct
from services.fuzzy_text_matcher import DEFAULT_MATCH_THRESHOLD, is_fuzzy_text_correct
from services.llm_models.evaluation_models import SemanticEvaluationRequest
from services.numeric_matcher import DEFAULT_TOLERANCE_RATIO, is_numeric_correct
from services.semantic_evaluator import SemanticEvaluator

# Configure logging
logger = logging.getLogger(__name__)

Answer = Union[int, str]

# Key of the shared service instance in Flask app.extensions
EVALUATION_SERVICE_KEY = "answer_evaluation_service"


class AnswerEvaluationService:
    """Service to evaluate quiz answers with deterministic and semantic strategies"""

    MATCH_CONFIDENCE = 0.9
    DEFAULT_UNESCALATED_CONFIDENCE = 0.3
    MIN_SEMANTIC_ANSWER_LENGTH = 5

    def __init__(
        self,
        semantic_evaluator: Optional[SemanticEvaluator] = None,
        numeric_tolerance_ratio: float = DEFAULT_TOLERANCE_RATIO,
        fuzzy_match_threshold: float = DEFAULT_MATCH_THRESHOLD,
        unescalated_confidence: float = DEFAULT_UNESCALATED_CONFIDENCE
    ):
        """
        Args:
            semantic_evaluator: LLM evaluator; None disables escalation
            numeric_tolerance_ratio: Relative tolerance for numeric answers
            fuzzy_match_threshold: Minimum token overlap for fuzzy text matches
            unescalated_confidence: Confidence reported for rejected answers
                that were not judged by the LLM
        """
        self.semantic_evaluator = semantic_evaluator
        self.numeric_tolerance_ratio = numeric_tolerance_ratio
        self.fuzzy_match_threshold = fuzzy_match_threshold
        self.unescalated_confidence = unescalated_confidence

    def evaluate(self, question: Question, answer: Answer) -> EvaluationResult:
        """
        Evaluate a user's answer to a quiz question.

        Args:
            question: Tagged question variant (see models.question.build_question)
            answer: Option index (int) or free text (str)

        Returns:
            EvaluationResult with the final verdict

        Raises:
            TypeError: If answer is neither int nor str (contract violation)

        Examples:
            >>> service = AnswerEvaluationService()
            >>> question = build_question({"type": "multiple_choice", "options": ["A", "B"], "correct": 1})
            >>> service.evaluate(question, 1).is_correct
            True
        """
        if isinstance(answer, bool) or not isinstance(answer, (int, str)):
            raise TypeError(f"Answer must be an int or str, got: {type(answer).__name__}")

        # Deterministic matching
        is_correct, method = self._match_deterministic(question, answer)

        if is_correct:
            logger.info(f"Answer matched deterministically via {method.value}")
            return EvaluationResult(
                is_correct=True,
                used_semantic_evaluator=False,
                confidence=self.MATCH_CONFIDENCE,
                method=method
            )

        # Escalation check
        if not self._should_escalate(question, answer):
            return self._rejected(method)

        try:
            verdict = self.semantic_evaluator.evaluate(SemanticEvaluationRequest(
                question=question.text,
                user_answer=answer,
                expected_answers=list(question.expected_answers),
                explanation=question.explanation,
                context=question.context
            ))
        except Exception as e:
            logger.error(f"Semantic evaluation raised, keeping deterministic result: {str(e)}", exc_info=True)
            return self._rejected(method)

        if verdict.failed:
            logger.warning(f"Semantic evaluation unavailable, keeping deterministic result: {verdict.error}")
            return self._rejected(method)

        return EvaluationResult(
            is_correct=verdict.is_correct,
            used_semantic_evaluator=True,
            confidence=verdict.confidence,
            reasoning=verdict.reasoning or None,
            method=EvaluationMethod.SEMANTIC
        )

    def _match_deterministic(self, question: Question, answer: Answer) -> Tuple[bool, EvaluationMethod]:
        if isinstance(question, NumericQuestion):
            return (
                is_numeric_correct(question, answer, self.numeric_tolerance_ratio),
                EvaluationMethod.NUMERIC
            )
        if isinstance(question, ChoiceQuestion):
            return is_choice_correct(question, answer), EvaluationMethod.CHOICE
        if isinstance(question, OpenEndedQuestion):
            return (
                is_fuzzy_text_correct(question, answer, self.fuzzy_match_threshold),
                EvaluationMethod.FUZZY_TEXT
            )

        # Default conservative
        logger.info(f"Unsupported question kind, rejecting answer: {getattr(question, 'kind', None)!r}")
        return False, EvaluationMethod.NONE

    def _should_escalate(self, question: Question, answer: Answer) -> bool:
        if self.semantic_evaluator is None:
            return False
        if not isinstance(question, OpenEndedQuestion) or not question.expected_answers:
            return False
        if not isinstance(answer, str):
            return False
        return len(answer.strip()) > self.MIN_SEMANTIC_ANSWER_LENGTH

    def _rejected(self, method: EvaluationMethod) -> EvaluationResult:
        return EvaluationResult(
            is_correct=False,
            used_semantic_evaluator=False,
            confidence=self.unescalated_confidence,
            method=method
        )
