"""
Question Models

Quiz questions arrive from callers as loosely shaped JSON objects whose
meaning depends on which optional fields are present. build_question()
validates such a payload once, at the boundary, and turns it into exactly
one tagged variant:

- NumericQuestion: answer_format is "number"/"numeric" (overrides kind)
- ChoiceQuestion: multiple choice, matched by option index or option text
- OpenEndedQuestion: free text, matched against expected answers
- UnknownQuestion: any other kind, never evaluated as correct

The evaluation service dispatches on the variant type instead of
re-deriving the shape from field presence.
"""

from typing import Any, List, Literal, Mapping, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

MULTIPLE_CHOICE_KINDS = {'multiple_choice', 'mcq'}
OPEN_ENDED_KINDS = {'open_ended'}
NUMERIC_FORMATS = {'number', 'numeric'}


class QuestionPayload(BaseModel):
    """
    Raw question as sent by the quiz client.

    Accepts both the camelCase field names and the legacy short names
    used by stored quizzes ("type", "correct", "a", "q", ...).
    """
    model_config = ConfigDict(extra='ignore')

    kind: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices('kind', 'type'),
        description="multiple_choice, open_ended, or anything else (unknown)"
    )
    text: str = Field(
        default="",
        validation_alias=AliasChoices('text', 'question', 'q'),
        description="Question text, forwarded to the semantic evaluator"
    )
    options: List[str] = Field(default_factory=list)
    correct_index: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices('correctIndex', 'correct_index', 'correct')
    )
    fallback_correct_text: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices('fallbackCorrectText', 'fallback_correct_text', 'a')
    )
    answer_format: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices('answerFormat', 'answer_format')
    )
    expected_answers: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices('expectedAnswers', 'expected_answers')
    )
    explanation: Optional[str] = None
    context: Optional[str] = None

    @field_validator('text', mode='before')
    @classmethod
    def _none_text_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator('options', 'expected_answers', mode='before')
    @classmethod
    def _none_list_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator('correct_index', mode='before')
    @classmethod
    def _reject_bool_index(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("correct index must be an integer, not a boolean")
        return value

    @field_validator('expected_answers', mode='before')
    @classmethod
    def _stringify_expected(cls, value: Any) -> Any:
        # Stored numeric quizzes often carry bare numbers as expected answers
        if isinstance(value, list):
            return [
                str(item) if isinstance(item, (int, float)) and not isinstance(item, bool) else item
                for item in value
            ]
        return value


class _QuestionBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str = ""
    explanation: Optional[str] = None
    context: Optional[str] = None


class ChoiceQuestion(_QuestionBase):
    """Multiple choice question."""
    tag: Literal['choice'] = 'choice'
    options: List[str] = Field(default_factory=list)
    correct_index: Optional[int] = None
    fallback_correct_text: Optional[str] = None


class NumericQuestion(_QuestionBase):
    """Question whose answer is a number accepted within a tolerance band."""
    tag: Literal['numeric'] = 'numeric'
    expected_answers: List[str] = Field(default_factory=list)


class OpenEndedQuestion(_QuestionBase):
    """Free-text question graded against a list of acceptable answers."""
    tag: Literal['open_ended'] = 'open_ended'
    expected_answers: List[str] = Field(default_factory=list)
    fallback_correct_text: Optional[str] = None


class UnknownQuestion(_QuestionBase):
    """Question of an unrecognised kind."""
    tag: Literal['unknown'] = 'unknown'
    kind: Optional[str] = None


Question = Union[ChoiceQuestion, NumericQuestion, OpenEndedQuestion, UnknownQuestion]


def build_question(payload: Union[Mapping[str, Any], QuestionPayload]) -> Question:
    """
    Validate a raw question payload and return its tagged variant.

    An explicit numeric answer_format takes precedence over kind, so an
    open-ended (or even multiple choice) question with answer_format
    "number" is graded numerically.

    Args:
        payload: Question JSON object or an already validated QuestionPayload

    Returns:
        ChoiceQuestion, NumericQuestion, OpenEndedQuestion or UnknownQuestion

    Raises:
        pydantic.ValidationError: If a field has the wrong type
    """
    if not isinstance(payload, QuestionPayload):
        payload = QuestionPayload.model_validate(dict(payload))

    kind = (payload.kind or '').strip().lower()
    answer_format = (payload.answer_format or '').strip().lower()
    shared = {
        'text': payload.text,
        'explanation': payload.explanation,
        'context': payload.context,
    }

    if answer_format in NUMERIC_FORMATS:
        return NumericQuestion(expected_answers=payload.expected_answers, **shared)

    if kind in MULTIPLE_CHOICE_KINDS:
        return ChoiceQuestion(
            options=payload.options,
            correct_index=payload.correct_index,
            fallback_correct_text=payload.fallback_correct_text,
            **shared
        )

    if kind in OPEN_ENDED_KINDS:
        return OpenEndedQuestion(
            expected_answers=payload.expected_answers,
            fallback_correct_text=payload.fallback_correct_text,
            **shared
        )

    return UnknownQuestion(kind=payload.kind, **shared)
