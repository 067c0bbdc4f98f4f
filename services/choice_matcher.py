"""
Choice Matcher - Evaluates multiple choice answers.

Answers are accepted either as an option index or as option text.
Malformed questions fail closed: they never raise, they evaluate as
incorrect.
"""

import logging
from typing import Optional, Union

from models.question import ChoiceQuestion
from services.text_normalizer import normalize

logger = logging.getLogger(__name__)


def resolve_correct_text(question: ChoiceQuestion) -> Optional[str]:
    """
    Resolve the text of the correct option.

    Uses options[correct_index] when the index is set and in bounds,
    otherwise fallback_correct_text, otherwise the first option.
    Returns None when nothing is resolvable.
    """
    options = question.options
    index = question.correct_index

    if index is not None and 0 <= index < len(options) and options[index]:
        return options[index]
    if question.fallback_correct_text:
        return question.fallback_correct_text
    if options and options[0]:
        return options[0]
    return None


def is_choice_correct(question: ChoiceQuestion, answer: Union[int, str]) -> bool:
    """
    Evaluate a multiple choice answer.

    Matching rules:
    - Index answer with correct_index set: exact index equality
    - Index answer without correct_index: the chosen option's text must
      equal the correct text after normalization (out of bounds -> False)
    - Text answer: normalized answer must equal the normalized correct text

    Args:
        question: ChoiceQuestion to grade against
        answer: Option index or option text submitted by the user

    Returns:
        bool: True if the answer selects the correct option
    """
    if not isinstance(question, ChoiceQuestion):
        raise TypeError(f"Choice matcher requires a ChoiceQuestion, got {type(question).__name__}")

    if isinstance(answer, int) and not isinstance(answer, bool):
        if question.correct_index is not None:
            return answer == question.correct_index

        correct_text = resolve_correct_text(question)
        if not correct_text:
            logger.warning("Multiple choice question has no resolvable correct text")
            return False
        if answer < 0 or answer >= len(question.options):
            logger.info(f"Choice index {answer} out of bounds for {len(question.options)} options")
            return False
        return normalize(question.options[answer]) == normalize(correct_text)

    correct_text = resolve_correct_text(question)
    if not correct_text:
        logger.warning("Multiple choice question has no resolvable correct text")
        return False
    return normalize(str(answer)) == normalize(correct_text)
