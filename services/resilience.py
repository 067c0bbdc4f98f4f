"""
Resilience Wrapper - Retry with exponential backoff and a circuit breaker.

Both primitives are generic and composable; the semantic evaluator uses
them to guard calls to the LLM provider:

    breaker.call(retry_with_backoff, request_fn, policy)

The circuit breaker is an explicit object (one per evaluator instance)
with an injectable clock and lock-guarded counters, so a failing provider
trips protection for every concurrent evaluation sharing that evaluator.
"""

import logging
import socket
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, TypeVar

import openai

logger = logging.getLogger(__name__)

T = TypeVar('T')

# HTTP statuses worth retrying: timeouts, conflicts, rate limits, server errors
RETRYABLE_STATUS_CODES = {408, 409, 429, 500, 502, 503, 504}


class CircuitOpenError(RuntimeError):
    """Raised when a call is rejected because the circuit is open"""


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half-open"


@dataclass
class RetryPolicy:
    """
    Retry parameters.

    The wait after failed attempt k is
    min(initial_delay * backoff_multiplier ** (k - 1), max_delay) seconds.
    """
    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 10.0
    backoff_multiplier: float = 2.0
    is_retryable: Callable[[BaseException], bool] = field(default=lambda error: True)

    def delay_after(self, attempt: int) -> float:
        """Seconds to wait after the given (1-indexed) failed attempt"""
        return min(self.initial_delay * self.backoff_multiplier ** (attempt - 1), self.max_delay)


def retry_with_backoff(
    func: Callable[[], T],
    policy: Optional[RetryPolicy] = None,
    sleep: Callable[[float], None] = time.sleep
) -> T:
    """
    Call func until it succeeds, retrying retryable errors with backoff.

    Args:
        func: Zero-argument callable to invoke
        policy: Retry parameters (defaults: 3 attempts, 1s initial, 10s cap, x2)
        sleep: Sleep function, injectable for tests

    Returns:
        Whatever func returns on the first successful attempt

    Raises:
        The last error raised by func, immediately if it is not retryable
    """
    policy = policy or RetryPolicy()
    last_error: Optional[BaseException] = None

    for attempt in range(1, policy.max_attempts + 1):
        try:
            return func()
        except Exception as e:
            last_error = e

            if not policy.is_retryable(e):
                raise

            if attempt == policy.max_attempts:
                break

            delay = policy.delay_after(attempt)
            logger.warning(
                f"Attempt {attempt}/{policy.max_attempts} failed: {e}. "
                f"Retrying in {delay:.2f}s"
            )
            sleep(delay)

    raise last_error


class CircuitBreaker:
    """
    Circuit breaker with closed, open and half-open states.

    - closed: calls pass through; a success decays the failure counter by one
    - open: calls are rejected with CircuitOpenError without being attempted
    - half-open: entered on the first call after reset_timeout has elapsed
      since the last failure; that call is the single probe. Success closes
      the circuit and zeroes the counter, failure reopens it.

    Each failure increments the counter and records the time; reaching
    threshold failures opens the circuit.
    """

    def __init__(
        self,
        threshold: int = 5,
        reset_timeout: float = 30.0,
        clock: Callable[[], float] = time.monotonic
    ):
        if threshold < 1:
            raise ValueError(f"threshold must be at least 1, got: {threshold}")

        self.threshold = threshold
        self.reset_timeout = reset_timeout
        self._clock = clock
        self._lock = threading.Lock()
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._last_failure_time = 0.0
        self._probe_in_flight = False

    @property
    def failures(self) -> int:
        with self._lock:
            return self._failures

    def get_state(self) -> CircuitState:
        with self._lock:
            return self._state

    def reset(self) -> None:
        with self._lock:
            self._state = CircuitState.CLOSED
            self._failures = 0
            self._last_failure_time = 0.0
            self._probe_in_flight = False

    def call(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """
        Invoke func through the breaker.

        Only the call admitted as the half-open probe decides whether the
        circuit closes or reopens. Calls admitted earlier that settle while
        the probe is in flight only adjust the failure counter.

        Raises:
            CircuitOpenError: If the circuit is open (or a half-open probe
                is already in flight)
            Whatever func raises, after recording the failure
        """
        is_probe = self._before_call()

        try:
            result = func(*args, **kwargs)
        except Exception:
            self._record_failure(is_probe)
            raise
        except BaseException:
            # Interrupted, not failed: let the next call probe again
            self._release_probe(is_probe)
            raise

        self._record_success(is_probe)
        return result

    def _before_call(self) -> bool:
        """Admit or reject a call; return True if it is the half-open probe"""
        with self._lock:
            now = self._clock()

            if (self._state == CircuitState.OPEN
                    and now - self._last_failure_time > self.reset_timeout):
                logger.info("Circuit breaker half-open, allowing probe call")
                self._state = CircuitState.HALF_OPEN
                self._probe_in_flight = True
                return True

            if self._state == CircuitState.OPEN:
                raise CircuitOpenError("Circuit breaker is open")

            if self._state == CircuitState.HALF_OPEN:
                if self._probe_in_flight:
                    raise CircuitOpenError("Circuit breaker is half-open, probe in progress")
                self._probe_in_flight = True
                return True

            return False

    def _record_success(self, is_probe: bool) -> None:
        with self._lock:
            if is_probe:
                logger.info("Circuit breaker probe succeeded, closing circuit")
                self._state = CircuitState.CLOSED
                self._failures = 0
                self._probe_in_flight = False
            elif self._failures > 0:
                self._failures -= 1

    def _record_failure(self, is_probe: bool) -> None:
        with self._lock:
            self._failures += 1
            self._last_failure_time = self._clock()

            if is_probe:
                logger.warning("Circuit breaker probe failed, reopening circuit")
                self._state = CircuitState.OPEN
                self._probe_in_flight = False
            elif self._state == CircuitState.CLOSED and self._failures >= self.threshold:
                logger.warning(
                    f"Circuit breaker opened after {self._failures} failures"
                )
                self._state = CircuitState.OPEN

    def _release_probe(self, is_probe: bool) -> None:
        if is_probe:
            with self._lock:
                self._probe_in_flight = False


def is_transient_error(error: BaseException) -> bool:
    """
    Default retry predicate for LLM provider calls.

    Retries connection problems, timeouts, rate limits and server errors.
    Never retries CircuitOpenError, authentication or validation errors.
    """
    if isinstance(error, CircuitOpenError):
        return False

    if isinstance(error, (openai.APIConnectionError, openai.RateLimitError, openai.InternalServerError)):
        return True
    if isinstance(error, openai.APIStatusError):
        return error.status_code in RETRYABLE_STATUS_CODES

    if isinstance(error, (TimeoutError, ConnectionError, socket.timeout)):
        return True

    # Other SDKs (mistralai) expose the HTTP status on the exception
    status_code = getattr(error, 'status_code', None)
    if isinstance(status_code, int):
        return status_code in RETRYABLE_STATUS_CODES

    return False
