"""
Integration tests for the evaluation routes (POST /api/evaluate-answer, GET /health).

Tests the complete request flow including:
- Answer coercion for multiple choice questions
- Validation errors for missing or malformed fields
- Semantic escalation through a mocked LLM provider
"""

import sys
import os
import pytest
from unittest.mock import Mock

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app import create_app, build_evaluation_service
from services.answer_evaluation_service import EVALUATION_SERVICE_KEY
from services.answer_evaluation_service import AnswerEvaluationService
from services.resilience import RetryPolicy
from services.semantic_evaluator import SemanticEvaluator


@pytest.fixture(scope='function')
def client():
    """Create a test client with semantic evaluation disabled"""
    app = create_app('testing')

    with app.test_client() as client:
        yield client


@pytest.fixture
def llm_provider():
    provider = Mock()
    provider.create_chat_completion.return_value = {
        "content": '{"isCorrect": true, "confidence": 0.77, "reasoning": "Equivalent meaning"}',
        "model": "test-model",
        "usage": {},
    }
    return provider


@pytest.fixture
def semantic_client(llm_provider):
    """Create a test client whose semantic evaluator uses a mocked provider"""
    evaluator = SemanticEvaluator(
        provider=llm_provider,
        model="test-model",
        retry_policy=RetryPolicy(max_attempts=1),
        sleep=Mock()
    )
    app = create_app('testing', evaluation_service=AnswerEvaluationService(semantic_evaluator=evaluator))

    with app.test_client() as client:
        yield client


def post_answer(client, question, user_answer):
    return client.post('/api/evaluate-answer', json={'question': question, 'userAnswer': user_answer})


# ============================================================================
# HAPPY PATH
# ============================================================================

def test_multiple_choice_by_index(client):
    question = {"type": "multiple_choice", "options": ["A", "B", "C"], "correct": 1}

    response = post_answer(client, question, 1)

    assert response.status_code == 200
    assert response.get_json() == {
        "isCorrect": True,
        "usedSemanticEvaluator": False,
        "confidence": 0.9,
        "reasoning": None,
        "method": "choice",
    }


def test_multiple_choice_digit_string_is_index(client):
    question = {"type": "multiple_choice", "options": ["A", "B", "C"], "correct": 2}

    assert post_answer(client, question, "2").get_json()['isCorrect'] is True
    assert post_answer(client, question, "0").get_json()['isCorrect'] is False


def test_multiple_choice_by_text(client):
    question = {"type": "multiple_choice", "options": ["Alpha", "Beta", "Gamma"], "a": "Beta"}

    assert post_answer(client, question, "beta").get_json()['isCorrect'] is True


def test_numeric_answer_sent_as_number(client):
    question = {"type": "open_ended", "answer_format": "number", "expected_answers": ["100"]}

    response = post_answer(client, question, 104)

    assert response.status_code == 200
    assert response.get_json()['isCorrect'] is True
    assert response.get_json()['method'] == "numeric"


def test_open_ended_miss_without_semantic_evaluation(client):
    question = {"type": "open_ended", "expected_answers": ["Rayleigh scattering of sunlight"]}

    data = post_answer(client, question, "because of the ocean reflection").get_json()

    assert data['isCorrect'] is False
    assert data['usedSemanticEvaluator'] is False
    assert data['confidence'] == 0.3


def test_open_ended_escalates_to_semantic_evaluator(semantic_client, llm_provider):
    question = {
        "type": "open_ended",
        "question": "Why is the sky blue?",
        "expected_answers": ["Rayleigh scattering of sunlight"],
    }

    data = post_answer(semantic_client, question, "short wavelengths scatter more in air").get_json()

    assert data == {
        "isCorrect": True,
        "usedSemanticEvaluator": True,
        "confidence": 0.77,
        "reasoning": "Equivalent meaning",
        "method": "semantic",
    }
    llm_provider.create_chat_completion.assert_called_once()


def test_provider_failure_still_returns_verdict(semantic_client, llm_provider):
    llm_provider.create_chat_completion.side_effect = ConnectionError("unreachable")
    question = {"type": "open_ended", "expected_answers": ["Rayleigh scattering of sunlight"]}

    response = post_answer(semantic_client, question, "short wavelengths scatter more in air")

    assert response.status_code == 200
    assert response.get_json()['isCorrect'] is False
    assert response.get_json()['usedSemanticEvaluator'] is False


# ============================================================================
# VALIDATION ERRORS
# ============================================================================

@pytest.mark.parametrize("body", [
    {},
    {"question": {"type": "multiple_choice"}},
    {"userAnswer": "x"},
    {"question": "not an object", "userAnswer": "x"},
])
def test_missing_fields(client, body):
    response = client.post('/api/evaluate-answer', json=body)

    assert response.status_code == 400
    assert response.get_json()['error'] == 'Question and userAnswer are required'


def test_non_json_body(client):
    response = client.post('/api/evaluate-answer', data='plain text', content_type='text/plain')
    assert response.status_code == 400


@pytest.mark.parametrize("user_answer", [True, 1.5, ["a"], {"a": 1}])
def test_invalid_answer_type(client, user_answer):
    question = {"type": "multiple_choice", "options": ["A", "B"], "correct": 0}

    response = post_answer(client, question, user_answer)

    assert response.status_code == 400


def test_invalid_question_fields(client):
    question = {"type": "multiple_choice", "options": "A,B", "correct": 0}

    response = post_answer(client, question, 0)

    assert response.status_code == 400
    assert 'Invalid question' in response.get_json()['error']


def test_unexpected_service_error_returns_500():
    service = Mock()
    service.evaluate.side_effect = RuntimeError("boom")
    app = create_app('testing', evaluation_service=service)

    with app.test_client() as client:
        response = post_answer(client, {"type": "open_ended", "expected_answers": ["x"]}, "x")

    assert response.status_code == 500
    assert response.get_json() == {'error': 'Failed to evaluate answer'}


# ============================================================================
# HEALTH AND WIRING
# ============================================================================

def test_health_without_semantic_evaluation(client):
    response = client.get('/health')

    assert response.status_code == 200
    assert response.get_json() == {
        "status": "healthy",
        "semantic_evaluation": False,
        "semantic_circuit": None,
    }


def test_health_reports_circuit_state(semantic_client):
    data = semantic_client.get('/health').get_json()

    assert data['semantic_evaluation'] is True
    assert data['semantic_circuit'] == "closed"


def test_build_evaluation_service_from_config():
    service = build_evaluation_service({
        "SEMANTIC_EVALUATION_ENABLED": True,
        "LLM_PROVIDER": "openai",
        "LLM_MODEL": "gpt-4o-mini",
        "SEMANTIC_REQUEST_TIMEOUT": 5.0,
        "RETRY_MAX_ATTEMPTS": 4,
        "CIRCUIT_BREAKER_THRESHOLD": 7,
        "CIRCUIT_BREAKER_RESET_TIMEOUT": 12.0,
        "NUMERIC_TOLERANCE_RATIO": 0.02,
        "FUZZY_MATCH_THRESHOLD": 0.8,
        "UNESCALATED_CONFIDENCE": 0.2,
    })

    evaluator = service.semantic_evaluator
    assert evaluator.provider_name == "openai"
    assert evaluator.model == "gpt-4o-mini"
    assert evaluator.request_timeout == 5.0
    assert evaluator.retry_policy.max_attempts == 4
    assert evaluator.circuit_breaker.threshold == 7
    assert evaluator.circuit_breaker.reset_timeout == 12.0
    assert service.numeric_tolerance_ratio == 0.02
    assert service.fuzzy_match_threshold == 0.8
    assert service.unescalated_confidence == 0.2


def test_route_uses_service_registered_on_app():
    service = AnswerEvaluationService()
    app = create_app('testing', evaluation_service=service)
    assert app.extensions[EVALUATION_SERVICE_KEY] is service

    replacement = Mock()
    replacement.evaluate.side_effect = RuntimeError("replacement called")
    app.extensions[EVALUATION_SERVICE_KEY] = replacement

    with app.test_client() as client:
        response = post_answer(client, {"type": "open_ended", "expected_answers": ["x"]}, "x")

    assert response.status_code == 500
    replacement.evaluate.assert_called_once()
