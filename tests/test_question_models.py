"""
Unit tests for question payload validation (build_question).

Tests:
- Variant selection (choice, numeric, open-ended, unknown)
- Numeric answer_format overriding kind
- Legacy and camelCase field names
- Rejection of malformed payloads
"""

import sys
import os
import pytest
from pydantic import ValidationError

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from models.question import (
    ChoiceQuestion,
    NumericQuestion,
    OpenEndedQuestion,
    UnknownQuestion,
    build_question,
)


def test_multiple_choice_legacy_fields():
    question = build_question({
        "type": "multiple_choice",
        "q": "Pick the second letter",
        "options": ["A", "B", "C"],
        "correct": 1,
    })

    assert isinstance(question, ChoiceQuestion)
    assert question.correct_index == 1
    assert question.options == ["A", "B", "C"]
    assert question.text == "Pick the second letter"


def test_multiple_choice_camel_case_fields():
    question = build_question({
        "kind": "multiple_choice",
        "options": ["Alpha", "Beta", "Gamma"],
        "fallbackCorrectText": "Beta",
    })

    assert isinstance(question, ChoiceQuestion)
    assert question.correct_index is None
    assert question.fallback_correct_text == "Beta"


def test_mcq_alias_is_multiple_choice():
    question = build_question({"type": "mcq", "options": ["x", "y"], "correct": 0})
    assert isinstance(question, ChoiceQuestion)


def test_open_ended_question():
    question = build_question({
        "type": "open_ended",
        "question": "Why is the sky blue?",
        "expected_answers": ["Rayleigh scattering"],
        "explanation": "Shorter wavelengths scatter more",
        "context": "Chapter 4: Light",
    })

    assert isinstance(question, OpenEndedQuestion)
    assert question.expected_answers == ["Rayleigh scattering"]
    assert question.explanation == "Shorter wavelengths scatter more"
    assert question.context == "Chapter 4: Light"


@pytest.mark.parametrize("answer_format", ["number", "numeric", "NUMBER"])
def test_numeric_format_overrides_kind(answer_format):
    for kind in ("open_ended", "multiple_choice", None):
        question = build_question({
            "type": kind,
            "answer_format": answer_format,
            "expected_answers": ["100"],
        })
        assert isinstance(question, NumericQuestion)


def test_free_text_format_does_not_force_numeric():
    question = build_question({
        "type": "open_ended",
        "answerFormat": "free-text",
        "expectedAnswers": ["42"],
    })
    assert isinstance(question, OpenEndedQuestion)


def test_numeric_expected_answers_are_stringified():
    question = build_question({
        "type": "open_ended",
        "answer_format": "number",
        "expected_answers": [100, 2.5],
    })
    assert question.expected_answers == ["100", "2.5"]


def test_unknown_kind():
    question = build_question({"type": "essay"})
    assert isinstance(question, UnknownQuestion)
    assert question.kind == "essay"


def test_null_lists_become_empty():
    question = build_question({"type": "open_ended", "expected_answers": None})
    assert question.expected_answers == []


def test_variants_are_immutable():
    question = build_question({"type": "multiple_choice", "options": ["a"], "correct": 0})
    with pytest.raises(ValidationError):
        question.correct_index = 3


def test_rejects_non_list_options():
    with pytest.raises(ValidationError):
        build_question({"type": "multiple_choice", "options": "A,B,C"})


def test_rejects_boolean_correct_index():
    with pytest.raises(ValidationError):
        build_question({"type": "multiple_choice", "options": ["a", "b"], "correct": True})
