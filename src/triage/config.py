"""Centralized, typed configuration using pydantic-settings.

Provides a single ``Settings`` class backed by ``.env`` file and environment
variables, a cached ``get_settings()`` accessor, and ``load_triage_rules()``
which reads the keyword lists used by the heuristics from a YAML file.

IMPORTANT: This module has ZERO imports from the ``triage`` package to
prevent circular imports.  Only stdlib, pydantic, pydantic_settings, yaml,
and structlog are used.
"""

from __future__ import annotations

import sys
from functools import lru_cache
from pathlib import Path

import structlog
import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger()

DEFAULT_RULES_PATH = Path("config/triage_rules.yaml")


class Settings(BaseSettings):
    """Engine settings loaded from environment variables and ``.env`` file.

    Every threshold the resolvers use is configurable here so an office can
    tune how eagerly suggestions are offered without a code change.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TRIAGE_",
        case_sensitive=False,
    )

    # -- General ---------------------------------------------------------------
    production: bool = False
    rules_path: Path = DEFAULT_RULES_PATH

    # -- Constituent resolution -----------------------------------------------
    fuzzy_min_score: float = Field(default=0.3, ge=0.0, le=1.0)
    fuzzy_name_weight: float = Field(default=0.7, ge=0.0, le=1.0)
    fuzzy_address_weight: float = Field(default=0.3, ge=0.0, le=1.0)
    constituent_max_alternatives: int = Field(default=5, ge=0)

    # -- Case link suggestion --------------------------------------------------
    case_min_confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    case_alternative_floor: float = Field(default=0.3, ge=0.0, le=1.0)
    case_max_alternatives: int = Field(default=5, ge=0)
    case_status_weight: float = Field(default=0.4, ge=0.0)
    case_recency_weight: float = Field(default=0.2, ge=0.0)
    case_keyword_weight: float = Field(default=0.4, ge=0.0)
    recency_window_days: int = Field(default=90, gt=0)

    # -- Campaign matching -----------------------------------------------------
    campaign_min_confidence: float = Field(default=0.3, ge=0.0, le=1.0)
    campaign_match_limit: int = Field(default=5, ge=1)
    campaign_low_priority_confidence: float = Field(default=0.8, ge=0.0, le=1.0)

    # -- Bulk commit -----------------------------------------------------------
    bulk_max_workers: int = Field(default=4, ge=1)
    retry_attempts: int = Field(default=3, ge=1)

    @model_validator(mode="after")
    def floor_must_not_exceed_threshold(self) -> Settings:
        """Ensure the alternatives floor sits at or below the primary threshold."""
        if self.case_alternative_floor > self.case_min_confidence:
            raise ValueError(
                f"case_alternative_floor ({self.case_alternative_floor}) must not exceed "
                f"case_min_confidence ({self.case_min_confidence})"
            )
        return self


class TriageRules(BaseModel):
    """Keyword lists driving the rule-based heuristics.

    Loaded from YAML and validated by Pydantic.  Defaults mirror the
    shipped ``config/triage_rules.yaml`` so the engine works without it.
    """

    urgency_keywords: list[str] = Field(
        default_factory=lambda: ["urgent", "emergency", "asap", "immediately", "critical"]
    )
    stopwords: list[str] = Field(
        default_factory=lambda: [
            "about",
            "dear",
            "from",
            "have",
            "please",
            "regards",
            "that",
            "this",
            "with",
            "would",
            "your",
        ]
    )
    sign_off_phrases: list[str] = Field(
        default_factory=lambda: [
            "best wishes",
            "kind regards",
            "many thanks",
            "regards",
            "sincerely",
            "thanks",
            "yours faithfully",
            "yours sincerely",
        ]
    )


@lru_cache
def get_settings() -> Settings:
    """Return a cached ``Settings`` instance.

    The ``@lru_cache`` decorator ensures environment variables are parsed
    exactly once.  Call ``get_settings.cache_clear()`` in tests to reset.

    Returns:
        The engine ``Settings``.
    """
    try:
        return Settings()
    except ValidationError as exc:
        logger.error("settings_validation_failed", errors=exc.errors())
        sys.exit(1)


def load_triage_rules(config_path: Path | None = None) -> TriageRules:
    """Load heuristic keyword lists from YAML.

    A missing file is not an error: the built-in defaults are returned and
    a warning is logged.

    Args:
        config_path: Path to the YAML rules file. Defaults to
            ``config/triage_rules.yaml``.

    Returns:
        A validated ``TriageRules`` instance.
    """
    path = config_path or DEFAULT_RULES_PATH
    if not path.exists():
        logger.warning("triage_rules_missing", path=str(path))
        return TriageRules()

    with path.open() as f:
        raw = yaml.safe_load(f) or {}

    return TriageRules.model_validate(raw)
