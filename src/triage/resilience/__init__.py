"""Resilience infrastructure for storage mutations."""

from triage.resilience.retry import is_transient, with_retry

__all__ = [
    "is_transient",
    "with_retry",
]
