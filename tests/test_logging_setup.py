"""Tests for structlog configuration."""

from collections.abc import Iterator

import pytest
import structlog

from triage.observability import configure_logging


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


class TestConfigureLogging:
    """Verify renderer selection and bound context."""

    def test_production_uses_json_renderer(self) -> None:
        configure_logging(production=True)

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_development_uses_console_renderer(self) -> None:
        configure_logging(production=False)

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)

    def test_service_name_bound(self) -> None:
        configure_logging()
        assert structlog.contextvars.get_contextvars()["service"] == "triage-engine"

    def test_json_lines_on_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(production=True)

        structlog.get_logger().info("bulk_commit_complete", succeeded=3)

        captured = capsys.readouterr()
        assert captured.out == ""
        assert '"event": "bulk_commit_complete"' in captured.err
        assert '"service": "triage-engine"' in captured.err
