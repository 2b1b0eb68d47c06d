"""Retry wrapper for storage mutations, built on tenacity.

Transient ``StorageError`` failures are retried with exponential backoff
and jitter.  ``EntityNotFoundError`` is permanent and fails immediately.
After the final attempt the original exception is re-raised so the bulk
coordinator records it against the target id.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

import structlog
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from triage.domain.errors import EntityNotFoundError, StorageError

logger = structlog.get_logger()

R = TypeVar("R")


def is_transient(exc: BaseException) -> bool:
    """Return True if *exc* is a storage failure worth retrying."""
    return isinstance(exc, StorageError) and not isinstance(exc, EntityNotFoundError)


def _before_sleep_log(retry_state: RetryCallState) -> None:
    """Log a warning before each retry attempt.

    Args:
        retry_state: Tenacity retry state with attempt info.
    """
    exception = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Retrying storage mutation",
        target_id=retry_state.args[0] if retry_state.args else None,
        attempt=retry_state.attempt_number,
        wait=retry_state.next_action.sleep if retry_state.next_action else 0,
        exception=str(exception),
    )


def with_retry(
    apply: Callable[..., R],
    attempts: int = 3,
    initial_wait: float = 0.5,
    max_wait: float = 10.0,
    jitter: float = 1.0,
) -> Callable[..., R]:
    """Wrap an ``apply`` callable with retry on transient storage errors.

    Args:
        apply: The callable executing one mutation.
        attempts: Maximum number of attempts (including the first).
        initial_wait: Initial backoff in seconds.
        max_wait: Backoff ceiling in seconds.
        jitter: Maximum random jitter added to each wait, in seconds.

    Returns:
        A callable with the same signature that retries transient failures
        and re-raises the last exception after exhaustion.
    """

    def wrapped(*args: Any, **kwargs: Any) -> R:
        retrying = Retrying(
            stop=stop_after_attempt(attempts),
            wait=wait_exponential_jitter(initial=initial_wait, max=max_wait, jitter=jitter),
            retry=retry_if_exception(is_transient),
            before_sleep=_before_sleep_log,
            reraise=True,
        )
        return retrying(apply, *args, **kwargs)

    return wrapped
