"""Case link suggestion for a triaged message.

Candidate cases are scored on three signals, combined as a weighted mean:

- status: open-like cases score 1.0, closed or archived cases 0.2
- recency: last activity decays linearly to 0 across the recency window
- keywords: share of the case's title/description words found in the
  message subject and body

The top candidate becomes ``primary`` only at or above the minimum
confidence.  Without a confident primary the caller offers new-case
creation as the default.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime

import structlog
from pydantic import BaseModel, ConfigDict, Field

from triage.config import Settings, TriageRules, get_settings
from triage.domain.errors import InvalidInputError
from triage.domain.models import Case, CaseParty, Constituent, Message
from triage.domain.types import is_case_active
from triage.matching.text import html_to_text, tokenize

logger = structlog.get_logger()

ACTIVE_STATUS_SCORE = 1.0
INACTIVE_STATUS_SCORE = 0.2

_KEYWORD_MIN_LENGTH = 4


class CaseCandidate(BaseModel):
    """A case proposed as the link target for a message.

    Attributes:
        case: The candidate case.
        confidence: Combined score in ``[0, 1]``.
        status_score: Status signal in ``[0, 1]``.
        recency_score: Recency signal in ``[0, 1]``.
        keyword_score: Keyword-overlap signal in ``[0, 1]``.
    """

    model_config = ConfigDict(frozen=True)

    case: Case
    confidence: float = Field(ge=0.0, le=1.0)
    status_score: float = Field(ge=0.0, le=1.0)
    recency_score: float = Field(ge=0.0, le=1.0)
    keyword_score: float = Field(ge=0.0, le=1.0)


class CaseSuggestion(BaseModel):
    """Ranked case suggestions for a message."""

    model_config = ConfigDict(frozen=True)

    primary: CaseCandidate | None = None
    alternatives: list[CaseCandidate] = Field(default_factory=list)

    @property
    def offer_new_case(self) -> bool:
        """Return True when new-case creation should be the default option."""
        return self.primary is None


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def _recency(case: Case, now: datetime, window_days: int) -> float:
    age_days = (_as_utc(now) - _as_utc(case.last_activity_at)).total_seconds() / 86400
    if age_days <= 0:
        return 1.0
    return max(0.0, 1.0 - age_days / window_days)


def message_keywords(message: Message, rules: TriageRules) -> set[str]:
    """Return the comparison keywords of a message's subject and body."""
    text = f"{message.subject or ''}\n{html_to_text(message.body)}"
    return tokenize(text, min_length=_KEYWORD_MIN_LENGTH, stopwords=rules.stopwords)


def score_case(
    case: Case,
    keywords: set[str],
    now: datetime,
    settings: Settings,
    rules: TriageRules,
) -> CaseCandidate:
    """Score a single case against a message's keywords.

    Args:
        case: The case to score.
        keywords: Keywords extracted from the message.
        now: Reference time for recency.
        settings: Weights and recency window.
        rules: Stopword list.

    Returns:
        A ``CaseCandidate`` carrying the combined and per-signal scores.
    """
    status = ACTIVE_STATUS_SCORE if is_case_active(case.status) else INACTIVE_STATUS_SCORE
    recency = _recency(case, now, settings.recency_window_days)

    case_words = tokenize(
        f"{case.title} {case.description or ''}",
        min_length=_KEYWORD_MIN_LENGTH,
        stopwords=rules.stopwords,
    )
    keyword = len(case_words & keywords) / len(case_words) if case_words else 0.0

    total_weight = settings.case_status_weight + settings.case_recency_weight
    total_weight += settings.case_keyword_weight
    if total_weight <= 0:
        confidence = 0.0
    else:
        confidence = (
            settings.case_status_weight * status
            + settings.case_recency_weight * recency
            + settings.case_keyword_weight * keyword
        ) / total_weight

    return CaseCandidate(
        case=case,
        confidence=round(min(confidence, 1.0), 6),
        status_score=status,
        recency_score=round(recency, 6),
        keyword_score=round(keyword, 6),
    )


def suggest_case_link(
    constituent: Constituent | None,
    message: Message,
    case_pool: Sequence[Case],
    case_parties: Sequence[CaseParty] = (),
    settings: Settings | None = None,
    rules: TriageRules | None = None,
    now: datetime | None = None,
) -> CaseSuggestion:
    """Rank existing cases a message could be linked to.

    With a known constituent, only cases linked to them through a case
    party are considered.  Without one, the whole pool is considered but a
    case must share at least one keyword with the message to be suggested.

    Args:
        constituent: The resolved constituent, if any.
        message: The message being triaged.
        case_pool: Candidate cases.
        case_parties: Case-party join rows.
        settings: Thresholds and weights; defaults apply when omitted.
        rules: Stopword list; defaults apply when omitted.
        now: Reference time for recency; defaults to the current UTC time.

    Returns:
        A ``CaseSuggestion``.  ``primary`` is absent when no candidate reaches
        ``case_min_confidence``.

    Raises:
        InvalidInputError: If *case_pool* or *case_parties* is None.
    """
    if case_pool is None or case_parties is None:
        raise InvalidInputError("case pool and case parties must not be None")

    settings = settings or get_settings()
    rules = rules or TriageRules()
    now = now or datetime.now(tz=UTC)

    if constituent is not None:
        linked = {p.case_id for p in case_parties if p.constituent_id == constituent.id}
        pool = [c for c in case_pool if c.id in linked]
    else:
        pool = list(case_pool)

    keywords = message_keywords(message, rules)

    seen: set[str] = set()
    scored: list[CaseCandidate] = []
    for case in pool:
        if case.id in seen:
            continue
        seen.add(case.id)
        candidate = score_case(case, keywords, now, settings, rules)
        if constituent is None and candidate.keyword_score == 0:
            continue
        if candidate.confidence >= settings.case_alternative_floor:
            scored.append(candidate)

    scored.sort(key=lambda c: (-c.confidence, c.case.id))

    primary: CaseCandidate | None = None
    if scored and scored[0].confidence >= settings.case_min_confidence:
        primary = scored[0]
        rest = scored[1:]
    else:
        rest = scored

    logger.debug(
        "case_link_suggested",
        message_id=message.id,
        pool_size=len(pool),
        primary_case_id=primary.case.id if primary else None,
        alternatives=min(len(rest), settings.case_max_alternatives),
    )

    return CaseSuggestion(primary=primary, alternatives=rest[: settings.case_max_alternatives])
