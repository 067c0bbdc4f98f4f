"""
Fuzzy Text Matcher - Evaluates free-text answers against expected answers.

Evaluation tiers (in order):
1. Normalized exact match against any expected answer
2. Token overlap: enough of an expected answer's significant words
   appear in the user's answer

Significant words are tokens longer than two characters that are not
English function words. Expected answers with two or fewer significant
words only accept an exact match, so a single-word expectation never
gets partial credit.

Filtering function words departs from a plain "longer than two characters"
rule on purpose. Under that rule "the", "over" and "and" count toward the
overlap, so "quick fox jumps lazy dog" misses the full pangram. The cost is
that answers like "the cat and the hat" keep only two significant words and
fall back to exact matching.

Word matching is bidirectional substring containment ("fox" matches
"foxes" and vice versa). This tolerates plurals and light stemming at
the cost of some precision.
"""

import logging
from typing import List, Optional, Sequence, Union

from models.question import OpenEndedQuestion
from services.text_normalizer import normalize

logger = logging.getLogger(__name__)

# Tunable policy constant, overridable via FUZZY_MATCH_THRESHOLD
DEFAULT_MATCH_THRESHOLD = 0.7

MIN_SIGNIFICANT_WORD_LENGTH = 3
MIN_SIGNIFICANT_WORDS_FOR_FUZZY = 3

STOP_WORDS = frozenset({
    'the', 'and', 'for', 'are', 'but', 'not', 'you', 'all', 'any', 'can',
    'had', 'her', 'was', 'one', 'our', 'out', 'has', 'his', 'how', 'its',
    'who', 'did', 'yes', 'she', 'him', 'they', 'them', 'their', 'there',
    'then', 'than', 'that', 'this', 'these', 'those', 'with', 'from', 'into',
    'onto', 'over', 'under', 'about', 'above', 'below', 'after', 'before',
    'been', 'being', 'have', 'having', 'were', 'what', 'when', 'where',
    'which', 'while', 'whom', 'why', 'will', 'would', 'should', 'could',
    'does', 'doing', 'each', 'few', 'more', 'most', 'other', 'some', 'such',
    'only', 'own', 'same', 'too', 'very', 'just', 'also', 'because', 'until',
    'against', 'between', 'through', 'during', 'off', 'again', 'further',
    'once', 'here', 'both', 'nor', 'your', 'yours', 'ours', 'hers', 'itself',
})


def significant_words(normalized_text: str) -> List[str]:
    """Return the tokens of already normalized text that carry meaning"""
    return [
        word for word in normalized_text.split()
        if len(word) >= MIN_SIGNIFICANT_WORD_LENGTH and word not in STOP_WORDS
    ]


def token_overlap_ratio(expected_words: Sequence[str], answer_words: Sequence[str]) -> float:
    """
    Fraction of expected words found in the answer tokens.

    A word counts as found when it is a substring of some answer token or
    some answer token is a substring of it.
    """
    if not expected_words:
        return 0.0

    matching = [
        word for word in expected_words
        if any(word in answer_word or answer_word in word for answer_word in answer_words)
    ]
    return len(matching) / len(expected_words)


def is_text_match(
    answer: str,
    expected_answers: Sequence[str],
    threshold: float = DEFAULT_MATCH_THRESHOLD
) -> bool:
    """
    Check a free-text answer against a list of expected answers.

    Args:
        answer: User's submitted answer
        expected_answers: Acceptable answers, any of which may match
        threshold: Minimum token overlap ratio for a fuzzy match

    Returns:
        bool: True on the first expected answer that matches exactly or fuzzily
    """
    answer_normalized = normalize(answer)
    if not answer_normalized:
        return False

    normalized_expected = [normalize(expected) for expected in expected_answers]

    # Tier 1: Exact match (fast path)
    if answer_normalized in normalized_expected:
        return True

    # Tier 2: Token overlap
    answer_words = answer_normalized.split()
    for expected_normalized in normalized_expected:
        expected_words = significant_words(expected_normalized)
        if len(expected_words) < MIN_SIGNIFICANT_WORDS_FOR_FUZZY:
            continue

        ratio = token_overlap_ratio(expected_words, answer_words)
        if ratio >= threshold:
            logger.info(f"Fuzzy match: ratio={ratio:.2f} against '{expected_normalized}'")
            return True

    return False


def is_fuzzy_text_correct(
    question: OpenEndedQuestion,
    answer: Union[int, str],
    threshold: Optional[float] = None
) -> bool:
    """
    Evaluate an open-ended answer.

    When the question has no expected answers, falls back to a normalized
    exact comparison with fallback_correct_text (if any).
    """
    if not isinstance(question, OpenEndedQuestion):
        raise TypeError(f"Fuzzy text matcher requires an OpenEndedQuestion, got {type(question).__name__}")

    answer_text = str(answer)

    if not question.expected_answers:
        if question.fallback_correct_text:
            return bool(normalize(answer_text)) and normalize(answer_text) == normalize(question.fallback_correct_text)
        return False

    if threshold is None:
        threshold = DEFAULT_MATCH_THRESHOLD
    return is_text_match(answer_text, question.expected_answers, threshold)
