"""Constituent resolution, case link suggestion, and priority heuristics."""

from triage.resolution.cases import (
    CaseCandidate,
    CaseSuggestion,
    message_keywords,
    score_case,
    suggest_case_link,
)
from triage.resolution.constituent import (
    ConstituentCandidate,
    ResolutionResult,
    fuzzy_score,
    resolve_constituent,
)
from triage.resolution.extraction import ExtractedContact, extract_contact_fields, find_postcode
from triage.resolution.priority import suggest_priority

__all__ = [
    "CaseCandidate",
    "CaseSuggestion",
    "ConstituentCandidate",
    "ExtractedContact",
    "ResolutionResult",
    "extract_contact_fields",
    "find_postcode",
    "fuzzy_score",
    "message_keywords",
    "resolve_constituent",
    "score_case",
    "suggest_case_link",
    "suggest_priority",
]
