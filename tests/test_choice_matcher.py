"""
Unit tests for the multiple choice matcher.

Tests:
- Index answers with an explicit correct index
- Index and text answers resolved through the correct option text
- Fail-closed behaviour for malformed questions
"""

import sys
import os
import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from models.question import ChoiceQuestion, OpenEndedQuestion
from services.choice_matcher import is_choice_correct, resolve_correct_text


@pytest.fixture
def indexed_question():
    return ChoiceQuestion(options=["A", "B", "C"], correct_index=1)


@pytest.fixture
def text_question():
    return ChoiceQuestion(options=["Alpha", "Beta", "Gamma"], fallback_correct_text="Beta")


# ============================================================================
# CORRECT INDEX SET
# ============================================================================

def test_correct_index_matches(indexed_question):
    assert is_choice_correct(indexed_question, 1) is True


@pytest.mark.parametrize("wrong_index", [0, 2])
def test_other_indexes_do_not_match(indexed_question, wrong_index):
    assert is_choice_correct(indexed_question, wrong_index) is False


def test_text_answer_matches_option_at_correct_index(indexed_question):
    assert is_choice_correct(indexed_question, "b") is True
    assert is_choice_correct(indexed_question, "A") is False


# ============================================================================
# RESOLVE BY TEXT
# ============================================================================

def test_index_resolved_by_fallback_text(text_question):
    assert is_choice_correct(text_question, 1) is True
    assert is_choice_correct(text_question, 2) is False


def test_text_answer_case_insensitive(text_question):
    assert is_choice_correct(text_question, "Beta") is True
    assert is_choice_correct(text_question, "beta") is True
    assert is_choice_correct(text_question, "  BETA! ") is True
    assert is_choice_correct(text_question, "Gamma") is False


def test_first_option_used_without_fallback_text():
    question = ChoiceQuestion(options=["Paris", "Rome"])
    assert resolve_correct_text(question) == "Paris"
    assert is_choice_correct(question, 0) is True
    assert is_choice_correct(question, "rome") is False


@pytest.mark.parametrize("index", [-1, 3, 99])
def test_out_of_bounds_index_is_incorrect(text_question, index):
    assert is_choice_correct(text_question, index) is False


# ============================================================================
# FAIL CLOSED
# ============================================================================

def test_no_resolvable_correct_text():
    question = ChoiceQuestion(options=[])
    assert resolve_correct_text(question) is None
    assert is_choice_correct(question, 0) is False
    assert is_choice_correct(question, "anything") is False


def test_wrong_variant_is_contract_violation():
    with pytest.raises(TypeError):
        is_choice_correct(OpenEndedQuestion(expected_answers=["x"]), "x")
