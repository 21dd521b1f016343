"""Retry logic for bulk calls using tenacity, with structured logging.

Each attempt is reduced to a tagged :class:`CallOutcome` and tenacity only
retries the ``transient`` tag, so the retry decision never depends on which
exception types propagate out of the call.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Generic, TypeVar

from tenacity import RetryCallState, Retrying, retry_if_result, stop_after_attempt

from bulkrecords.core.backoff import DEFAULT_MAX_DELAY_MS, jittered_delay_ms, retry_delay_ms
from bulkrecords.core.transient import is_transient
from bulkrecords.models.errors import OperationCancelledError, RetryExhaustedError
from bulkrecords.utils.logger import get_logger

if TYPE_CHECKING:
    import threading
    from collections.abc import Callable

T = TypeVar("T")

logger = get_logger(__name__)


class CallStatus(StrEnum):
    """Result tag of one attempt."""

    SUCCESS = "success"
    TRANSIENT = "transient"
    TERMINAL = "terminal"


@dataclass(frozen=True)
class CallOutcome(Generic[T]):
    """Outcome of a single attempt: a value, or an error tagged by retryability."""

    status: CallStatus
    value: T | None = None
    error: BaseException | None = None


def attempt_call(
    call: Callable[[], T],
    classifier: Callable[[BaseException], bool] = is_transient,
) -> CallOutcome[T]:
    """Run ``call`` once and tag the result."""
    try:
        return CallOutcome(CallStatus.SUCCESS, value=call())
    except OperationCancelledError:
        raise
    except Exception as exc:
        status = CallStatus.TRANSIENT if classifier(exc) else CallStatus.TERMINAL
        return CallOutcome(status, error=exc)


class RetryingInvoker:
    """Runs a zero-argument remote call, retrying transient failures with backoff.

    ``sleep`` replaces the interruptible wait between attempts; tests inject
    it to avoid real delays.
    """

    def __init__(
        self,
        max_delay_ms: int = DEFAULT_MAX_DELAY_MS,
        jitter_ratio: float = 0.0,
        classifier: Callable[[BaseException], bool] = is_transient,
        sleep: Callable[[float], None] | None = None,
        context: str = "Bulk request",
    ) -> None:
        self.max_delay_ms = max_delay_ms
        self.jitter_ratio = jitter_ratio
        self.classifier = classifier
        self.context = context
        self._sleep = sleep

    def delay_ms(self, attempt: int, base_delay_ms: int) -> int:
        """Delay before retry number ``attempt``."""
        delay = retry_delay_ms(attempt, base_delay_ms, self.max_delay_ms)
        return jittered_delay_ms(delay, self.jitter_ratio, self.max_delay_ms)

    def execute(
        self,
        call: Callable[[], T],
        max_retries: int,
        base_delay_ms: int,
        cancel_event: threading.Event | None = None,
    ) -> T:
        """Return the result of ``call``, making at most ``max_retries + 1`` attempts.

        Raises the underlying error at once when it is not transient,
        :class:`RetryExhaustedError` when every attempt failed transiently and
        :class:`OperationCancelledError` when ``cancel_event`` is set.
        """
        max_attempts = max(max_retries, 0) + 1

        def wait(retry_state: RetryCallState) -> float:
            return self.delay_ms(retry_state.attempt_number, base_delay_ms) / 1000.0

        def pause(seconds: float) -> None:
            if self._sleep is not None:
                self._sleep(seconds)
                interrupted = cancel_event is not None and cancel_event.is_set()
            elif cancel_event is not None:
                interrupted = cancel_event.wait(seconds)
            else:
                time.sleep(seconds)
                interrupted = False
            if interrupted:
                raise OperationCancelledError(f"{self.context} cancelled while waiting to retry")

        def log_retry(retry_state: RetryCallState) -> None:
            outcome: CallOutcome[T] = retry_state.outcome.result()  # type: ignore[union-attr]
            sleep_seconds = retry_state.next_action.sleep if retry_state.next_action else 0.0
            logger.warning(
                "retrying_bulk_request",
                context=self.context,
                attempt=retry_state.attempt_number,
                max_attempts=max_attempts,
                delay_ms=round(sleep_seconds * 1000),
                error=str(outcome.error),
            )

        def run_once() -> CallOutcome[T]:
            if cancel_event is not None and cancel_event.is_set():
                raise OperationCancelledError(f"{self.context} cancelled")
            return attempt_call(call, self.classifier)

        retrying = Retrying(
            stop=stop_after_attempt(max_attempts),
            wait=wait,
            retry=retry_if_result(lambda outcome: outcome.status is CallStatus.TRANSIENT),
            before_sleep=log_retry,
            sleep=pause,
            retry_error_callback=lambda retry_state: retry_state.outcome.result(),  # type: ignore[union-attr]
        )
        outcome = retrying(run_once)

        if outcome.status is CallStatus.SUCCESS:
            return outcome.value  # type: ignore[return-value]

        if outcome.status is CallStatus.TERMINAL:
            logger.error(
                "bulk_request_failed_non_transient",
                context=self.context,
                max_attempts=max_attempts,
                error=str(outcome.error),
                error_type=type(outcome.error).__name__,
            )
            raise outcome.error  # type: ignore[misc]

        logger.error(
            "bulk_request_retries_exhausted",
            context=self.context,
            attempts=max_attempts,
            max_attempts=max_attempts,
            error=str(outcome.error),
        )
        raise RetryExhaustedError(max_attempts, outcome.error) from outcome.error
