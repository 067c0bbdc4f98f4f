"""
Semantic Evaluator - LLM judgement of free-text answers.

Used when deterministic matching cannot confirm an open-ended answer.
The model is asked for a strict JSON verdict which is interpreted by two
ordered strategies:

1. parse_structured(): JSON object with a boolean isCorrect
2. scan_heuristic(): look for an affirmative isCorrect marker in the raw
   text, with a fixed 0.5 confidence

Provider calls go through a circuit breaker wrapping a retry-with-backoff
loop. Any failure of the call itself (missing API key, provider error,
timeout, open circuit) becomes a conservative verdict (incorrect,
confidence 0) flagged with the error; evaluate() never raises.
"""

import json
import logging
import re
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from services.llm_models.evaluation_models import SemanticEvaluationRequest, SemanticVerdict
from services.llm_provider_factory import LLMProvider, LLMProviderFactory, get_llm_client
from services.resilience import CircuitBreaker, RetryPolicy, is_transient_error, retry_with_backoff

logger = logging.getLogger(__name__)

SYSTEM_MESSAGE = (
    "You are an expert educational evaluator. "
    "Always respond with valid JSON only."
)

FALLBACK_CONFIDENCE = 0.5
FALLBACK_REASONING = "parsing error, used fallback evaluation"

# Affirmative verdict marker in a response that is not valid JSON,
# e.g. '{"isCorrect": true, "reasoning": "unterminated...'
_AFFIRMATIVE_MARKER = re.compile(r'"?is_?correct"?\s*:\s*"?true\b', re.IGNORECASE)


def build_evaluation_prompt(request: SemanticEvaluationRequest) -> str:
    """Build the grading prompt sent as the user message"""
    expected_lines = "\n".join(
        f"{index}. {answer}" for index, answer in enumerate(request.expected_answers, start=1)
    )

    prompt = f"""You are an expert educational evaluator. Evaluate whether a student's answer is correct based on the expected answers.

Question: {request.question}

Expected Answer(s):
{expected_lines}
"""

    if request.explanation:
        prompt += f"\nExplanation: {request.explanation}\n"
    if request.context:
        prompt += f"\nContext: {request.context}\n"

    prompt += f"""
Student's Answer: {request.user_answer}

Evaluate if the student's answer demonstrates understanding of the concept, even if the wording differs. Consider:
- Semantic similarity to expected answers
- Key concepts and facts mentioned
- Partial correctness (if the answer captures the main idea)
- Common variations in phrasing

Respond with JSON only:
{{
  "isCorrect": true/false,
  "confidence": 0.0-1.0,
  "reasoning": "brief explanation"
}}"""
    return prompt


def parse_structured(content: str) -> Optional[SemanticVerdict]:
    """
    Parse a JSON verdict.

    Returns None when the content is not a JSON object or isCorrect is
    missing or not a boolean. Confidence is clamped to [0, 1] and defaults
    to 0.5 when absent or invalid.
    """
    try:
        data = json.loads(content)
    except (json.JSONDecodeError, TypeError):
        return None

    if not isinstance(data, dict):
        return None

    try:
        return SemanticVerdict.model_validate({
            'isCorrect': data.get('isCorrect', data.get('is_correct')),
            'confidence': data.get('confidence'),
            'reasoning': data.get('reasoning'),
        })
    except ValidationError:
        return None


def scan_heuristic(content: str) -> SemanticVerdict:
    """
    Salvage a verdict from a malformed response.

    Correct only if the raw text carries an affirmative isCorrect marker.
    """
    is_correct = bool(_AFFIRMATIVE_MARKER.search(content or ""))
    return SemanticVerdict(
        is_correct=is_correct,
        confidence=FALLBACK_CONFIDENCE,
        reasoning=FALLBACK_REASONING
    )


class SemanticEvaluator:
    """
    Judges semantic equivalence of an answer with an LLM.

    The evaluator owns its circuit breaker; share one instance across
    requests so that a failing provider trips protection for all of them.
    """

    TEMPERATURE = 0.2
    MAX_TOKENS = 200

    def __init__(
        self,
        provider: Optional[LLMProvider] = None,
        provider_name: Optional[str] = None,
        model: Optional[str] = None,
        request_timeout: float = 10.0,
        retry_policy: Optional[RetryPolicy] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
        sleep: Optional[Callable[[float], None]] = None
    ):
        """
        Args:
            provider: LLM provider; created lazily from provider_name when None
            provider_name: "moonshot", "openai" or "mistral" (default: LLM_PROVIDER env var)
            model: Model name (default: the provider's default model)
            request_timeout: Per-request timeout in seconds
            retry_policy: Retry parameters for transient provider errors
            circuit_breaker: Breaker guarding the provider
            sleep: Sleep function used between retries (injectable for tests)
        """
        self._provider = provider
        self.provider_name = provider_name
        self.model = model or LLMProviderFactory.get_default_model(provider_name)
        self.request_timeout = request_timeout
        self.retry_policy = retry_policy or RetryPolicy(is_retryable=is_transient_error)
        self.circuit_breaker = circuit_breaker or CircuitBreaker()
        self._sleep_kwargs = {'sleep': sleep} if sleep is not None else {}

    def _get_provider(self) -> LLMProvider:
        if self._provider is None:
            self._provider = get_llm_client(self.provider_name)
        return self._provider

    def build_messages(self, request: SemanticEvaluationRequest) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": SYSTEM_MESSAGE},
            {"role": "user", "content": build_evaluation_prompt(request)},
        ]

    def _request_completion(self, messages: List[Dict[str, str]]) -> str:
        provider = self._get_provider()

        def send() -> str:
            response = provider.create_chat_completion(
                messages=messages,
                model=self.model,
                temperature=self.TEMPERATURE,
                max_tokens=self.MAX_TOKENS,
                response_format={"type": "json_object"},
                timeout=self.request_timeout
            )
            content = response.get("content")
            if not content:
                raise ValueError("No content in LLM response")
            return content

        return self.circuit_breaker.call(
            retry_with_backoff, send, self.retry_policy, **self._sleep_kwargs
        )

    def interpret(self, content: str) -> SemanticVerdict:
        """Apply parse_structured, then scan_heuristic if parsing failed"""
        verdict = parse_structured(content)
        if verdict is not None:
            return verdict

        logger.warning(f"LLM returned a malformed verdict, using fallback scan. Raw response: {content!r}")
        return scan_heuristic(content)

    def evaluate(self, request: SemanticEvaluationRequest) -> SemanticVerdict:
        """
        Judge one answer.

        Args:
            request: Question, answer, expected answers and optional support text

        Returns:
            SemanticVerdict. Failed calls yield is_correct=False,
            confidence=0.0 and error set; this method never raises.
        """
        if not request.user_answer or not request.user_answer.strip():
            return SemanticVerdict(is_correct=False, confidence=0.0, reasoning="No answer provided")

        if not request.expected_answers:
            return SemanticVerdict(
                is_correct=False,
                confidence=0.0,
                reasoning="No expected answers provided",
                error="No expected answers provided"
            )

        try:
            content = self._request_completion(self.build_messages(request))
        except Exception as e:
            logger.error(f"LLM evaluation failed: {str(e)}")
            return SemanticVerdict(
                is_correct=False,
                confidence=0.0,
                reasoning=f"Evaluation error: {str(e)}",
                error=str(e) or type(e).__name__
            )

        verdict = self.interpret(content)
        logger.info(
            f"LLM evaluation: user_answer='{request.user_answer}', "
            f"is_correct={verdict.is_correct}, confidence={verdict.confidence}"
        )
        return verdict

    def get_circuit_state(self) -> str:
        return self.circuit_breaker.get_state().value
