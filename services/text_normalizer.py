"""
Text Normalizer - Canonical text forms shared by the answer matchers.

Both helpers are pure functions with no dependencies so every matcher
compares answers the same way.
"""

import re
from typing import Optional

_NON_WORD_PATTERN = re.compile(r'[^\w\s]')
_WHITESPACE_PATTERN = re.compile(r'\s+')

# Optional sign, digits, optional decimal point, optional fraction digits
_NUMBER_PATTERN = re.compile(r'-?\d+\.?\d*')


def normalize(text: str) -> str:
    """
    Canonicalize text for comparison.

    Lower-cases, strips every character that is neither a word character nor
    whitespace, collapses whitespace runs to a single space and trims.
    The result is idempotent: normalize(normalize(x)) == normalize(x).

    Examples:
        >>> normalize("  The Quick,  Brown FOX! ")
        'the quick brown fox'
    """
    if not text:
        return ""

    text = _NON_WORD_PATTERN.sub('', text.lower())
    return _WHITESPACE_PATTERN.sub(' ', text).strip()


def extract_first_number(text: str) -> Optional[float]:
    """
    Return the first numeric literal found in text, or None.

    Only the first occurrence is used: "between 10 and 20" yields 10.0.

    Examples:
        >>> extract_first_number("about -3.5 degrees")
        -3.5
        >>> extract_first_number("no digits here") is None
        True
    """
    if not text:
        return None

    match = _NUMBER_PATTERN.search(text)
    if not match:
        return None
    return float(match.group(0))
