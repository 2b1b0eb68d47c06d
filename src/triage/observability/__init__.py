"""Logging configuration for the triage engine."""

from triage.observability.logging_setup import configure_logging

__all__ = ["configure_logging"]
