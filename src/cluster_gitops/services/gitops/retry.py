"""Fixed-interval retry policy with cooperative cancellation."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

import structlog
from tenacity import RetryCallState, Retrying, stop_after_attempt, wait_fixed

from cluster_gitops.core.config.models import RetryConfig
from cluster_gitops.services.gitops.exceptions import OperationCancelledError

logger = structlog.get_logger()

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_DELAY_SECONDS = 5.0


class CancellationToken:
    """Cancellation signal threaded from the command invocation.

    ``wait`` blocks for up to ``seconds`` and returns early when cancelled,
    so it doubles as the retry loop's sleep function.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        """Raise ``OperationCancelledError`` if the token has been cancelled."""
        if self._event.is_set():
            raise OperationCancelledError()

    def wait(self, seconds: float) -> None:
        """Sleep for ``seconds``, aborting as soon as the token is cancelled."""
        if self._event.wait(seconds):
            raise OperationCancelledError()


def _log_retry(retry_state: RetryCallState) -> None:
    outcome = retry_state.outcome
    logger.warning(
        "retrying_operation",
        attempt=retry_state.attempt_number,
        error=str(outcome.exception()) if outcome is not None else None,
    )


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded attempts with a fixed delay between them.

    Example:
        ```python
        policy = RetryPolicy(max_attempts=5, delay=5.0)
        policy.run(session.push, token=token)
        ```
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    delay: float = DEFAULT_DELAY_SECONDS

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.delay < 0:
            raise ValueError("delay must be non-negative")

    @classmethod
    def from_config(cls, config: RetryConfig) -> RetryPolicy:
        return cls(max_attempts=config.max_attempts, delay=config.backoff_seconds)

    def run(self, operation: Callable[[], T], *, token: CancellationToken | None = None) -> T:
        """Call ``operation`` until it succeeds or attempts run out.

        Returns:
            The first successful result.

        Raises:
            OperationCancelledError: If ``token`` is cancelled before an
                attempt or during a delay.
            Exception: The last failure once every attempt has failed.
        """
        token = token or CancellationToken()
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.delay),
            sleep=token.wait,
            retry=_retry_unless_cancelled,
            before_sleep=_log_retry,
            reraise=True,
        )

        def attempt() -> T:
            token.raise_if_cancelled()
            return operation()

        return retrying(attempt)


def _retry_unless_cancelled(retry_state: RetryCallState) -> bool:
    outcome = retry_state.outcome
    if outcome is None or not outcome.failed:
        return False
    return not isinstance(outcome.exception(), OperationCancelledError)
