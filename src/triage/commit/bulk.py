"""Bulk commit coordinator: apply one decision across many messages.

Failures are isolated per item.  The coordinator never aborts on an
individual failure, and every target id ends up in exactly one bucket:

    succeeded + len(failed) + len(skipped) == len(target_ids)

``skipped`` is only populated when the caller cancels the batch; ids that
had not started when cancellation was observed are reported there, neither
succeeded nor failed.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field

from triage.commit.mutations import ApplyOutcome, Mutation, describe_mutation
from triage.domain.errors import InvalidInputError

logger = structlog.get_logger()

_SUCCEEDED = "succeeded"
_FAILED = "failed"
_SKIPPED = "skipped"


class ItemFailure(BaseModel):
    """A target id whose mutation failed, with the reason."""

    model_config = ConfigDict(frozen=True)

    id: str
    error: str


class BatchResult(BaseModel):
    """Aggregate outcome of a bulk commit.

    Attributes:
        succeeded: Number of targets the mutation was applied to.
        succeeded_ids: Those targets, in input order.
        failed: Failed targets with their errors, in input order.
        skipped: Targets never attempted because the batch was cancelled.
    """

    model_config = ConfigDict(frozen=True)

    succeeded: int = 0
    succeeded_ids: list[str] = Field(default_factory=list)
    failed: list[ItemFailure] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)

    @property
    def processed(self) -> int:
        """Number of targets attempted (succeeded plus failed)."""
        return self.succeeded + len(self.failed)

    @property
    def total(self) -> int:
        """Number of targets accounted for across all buckets."""
        return self.processed + len(self.skipped)

    @property
    def all_succeeded(self) -> bool:
        """Return True if nothing failed or was skipped."""
        return not self.failed and not self.skipped

    @property
    def failed_ids(self) -> list[str]:
        """Ids to retry after a partial failure."""
        return [f.id for f in self.failed]


class _Accumulator:
    """Lock-guarded per-position outcome store."""

    def __init__(self, size: int) -> None:
        self._lock = threading.Lock()
        self._outcomes: list[tuple[str, str | None] | None] = [None] * size

    def record(self, position: int, bucket: str, error: str | None = None) -> None:
        with self._lock:
            self._outcomes[position] = (bucket, error)

    def build(self, target_ids: Sequence[str]) -> BatchResult:
        succeeded_ids: list[str] = []
        failed: list[ItemFailure] = []
        skipped: list[str] = []
        with self._lock:
            outcomes = list(self._outcomes)
        for target_id, outcome in zip(target_ids, outcomes, strict=True):
            bucket, error = outcome if outcome is not None else (_SKIPPED, None)
            if bucket == _SUCCEEDED:
                succeeded_ids.append(target_id)
            elif bucket == _FAILED:
                failed.append(ItemFailure(id=target_id, error=error or "unknown error"))
            else:
                skipped.append(target_id)
        return BatchResult(
            succeeded=len(succeeded_ids),
            succeeded_ids=succeeded_ids,
            failed=failed,
            skipped=skipped,
        )


def _run_one(
    apply: Callable[[str, Mutation], Any],
    target_id: str,
    mutation: Mutation,
) -> str | None:
    """Apply *mutation* to one target and return an error string on failure."""
    try:
        outcome = apply(target_id, mutation)
    except Exception as exc:
        logger.warning(
            "bulk_item_failed",
            target_id=target_id,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return str(exc) or type(exc).__name__

    if isinstance(outcome, ApplyOutcome) and not outcome.ok:
        error = outcome.error or "apply reported failure"
        logger.warning("bulk_item_failed", target_id=target_id, error=error)
        return error
    return None


def _log_batch(result: BatchResult, mutation: Mutation, mode: str) -> None:
    logger.info(
        "bulk_commit_complete",
        mode=mode,
        mutation=describe_mutation(mutation),
        succeeded=result.succeeded,
        failed=len(result.failed),
        skipped=len(result.skipped),
    )


def apply_to_all(
    target_ids: Sequence[str],
    mutation: Mutation,
    apply: Callable[[str, Mutation], Any],
    cancel: threading.Event | None = None,
) -> BatchResult:
    """Apply *mutation* to every target sequentially, in input order.

    Args:
        target_ids: Ids to apply the mutation to.  The primary message is
            an ordinary entry here.
        mutation: The decision to apply.
        apply: Callable executing the mutation for one id.  It signals
            failure by raising or by returning an ``ApplyOutcome`` with
            ``ok=False``.
        cancel: Optional event; once set, remaining ids are skipped.

    Returns:
        A ``BatchResult``.  An empty *target_ids* yields an empty result
        without calling *apply*.

    Raises:
        InvalidInputError: If *target_ids* is None.
    """
    if target_ids is None:
        raise InvalidInputError("target_ids must not be None")

    accumulator = _Accumulator(len(target_ids))

    for position, target_id in enumerate(target_ids):
        if cancel is not None and cancel.is_set():
            logger.info("bulk_commit_cancelled", remaining=len(target_ids) - position)
            break
        error = _run_one(apply, target_id, mutation)
        if error is None:
            accumulator.record(position, _SUCCEEDED)
        else:
            accumulator.record(position, _FAILED, error)

    result = accumulator.build(target_ids)
    if target_ids:
        _log_batch(result, mutation, "sequential")
    return result


def apply_to_all_concurrent(
    target_ids: Sequence[str],
    mutation: Mutation,
    apply: Callable[[str, Mutation], Any],
    max_workers: int = 4,
    cancel: threading.Event | None = None,
) -> BatchResult:
    """Bounded-parallel variant of ``apply_to_all``.

    Execution order across workers is not defined, but the result lists
    follow input order and the count guarantees of the sequential variant
    hold.  The *apply* callable must be thread-safe.

    Args:
        target_ids: Ids to apply the mutation to.
        mutation: The decision to apply.
        apply: Callable executing the mutation for one id.
        max_workers: Maximum number of concurrent ``apply`` calls.
        cancel: Optional event; ids not yet started once it is set are
            skipped.

    Returns:
        A ``BatchResult``.

    Raises:
        InvalidInputError: If *target_ids* is None.
        ValueError: If *max_workers* is less than 1.
    """
    if target_ids is None:
        raise InvalidInputError("target_ids must not be None")
    if max_workers < 1:
        raise ValueError(f"max_workers must be at least 1, got {max_workers}")

    accumulator = _Accumulator(len(target_ids))
    if not target_ids:
        return accumulator.build(target_ids)

    def work(position: int, target_id: str) -> None:
        if cancel is not None and cancel.is_set():
            return
        error = _run_one(apply, target_id, mutation)
        if error is None:
            accumulator.record(position, _SUCCEEDED)
        else:
            accumulator.record(position, _FAILED, error)

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [executor.submit(work, pos, tid) for pos, tid in enumerate(target_ids)]
        for future in futures:
            future.result()

    result = accumulator.build(target_ids)
    _log_batch(result, mutation, "concurrent")
    return result
