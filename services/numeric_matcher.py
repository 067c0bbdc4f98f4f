"""
Numeric Matcher - Evaluates numeric answers within a relative tolerance.

The tolerance ratio is a tunable grading policy, not a derived value.
The default keeps the historical 5% band: an expected value of 100
accepts anything in [95, 105].
"""

import logging
import math
from typing import Union

from models.question import NumericQuestion
from services.text_normalizer import extract_first_number

logger = logging.getLogger(__name__)

# Tunable policy constant, overridable via NUMERIC_TOLERANCE_RATIO
DEFAULT_TOLERANCE_RATIO = 0.05


def is_numeric_correct(
    question: NumericQuestion,
    answer: Union[int, str],
    tolerance_ratio: float = DEFAULT_TOLERANCE_RATIO
) -> bool:
    """
    Evaluate a numeric answer against every expected value.

    The first number in the answer text is compared with the first number
    of each expected answer. The answer is correct when it lies within
    abs(expected) * tolerance_ratio of ANY expected value. An expected value
    of 0 therefore only accepts an exact 0. Expected answers without a
    number are skipped. The boundary is inclusive, compared with
    math.isclose so decimal edges such as 0.315 for 0.3 still match.

    Args:
        question: NumericQuestion with expected answers
        answer: Submitted answer; converted to text before extraction
        tolerance_ratio: Relative tolerance (0.05 = 5%)

    Returns:
        bool: True if any expected value matches within tolerance
    """
    if not isinstance(question, NumericQuestion):
        raise TypeError(f"Numeric matcher requires a NumericQuestion, got {type(question).__name__}")

    if not question.expected_answers:
        return False

    answer_number = extract_first_number(str(answer))
    if answer_number is None:
        return False

    for expected_raw in question.expected_answers:
        expected_number = extract_first_number(expected_raw)
        if expected_number is None:
            logger.debug(f"Skipping non-numeric expected answer: {expected_raw!r}")
            continue

        tolerance = abs(expected_number) * tolerance_ratio
        difference = abs(answer_number - expected_number)
        # Inclusive; isclose absorbs float error at decimal edges (0.3 +/- 0.015)
        if difference <= tolerance or math.isclose(difference, tolerance):
            return True

    return False
