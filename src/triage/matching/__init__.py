"""Subject normalization, fingerprinting, sibling and campaign matching.

Re-exports key functions and types for convenient access:
    from triage.matching import normalize_subject, find_siblings, match_campaigns
"""

from triage.matching.campaigns import CampaignMatch, match_campaign, match_campaigns
from triage.matching.siblings import (
    SiblingMatch,
    find_campaign_siblings,
    find_fingerprint_siblings,
    find_siblings,
)
from triage.matching.subject import REPLY_PREFIX_RE, generate_fingerprint, normalize_subject
from triage.matching.text import html_to_text, tokenize

__all__ = [
    "REPLY_PREFIX_RE",
    "CampaignMatch",
    "SiblingMatch",
    "find_campaign_siblings",
    "find_fingerprint_siblings",
    "find_siblings",
    "generate_fingerprint",
    "html_to_text",
    "match_campaign",
    "match_campaigns",
    "normalize_subject",
    "tokenize",
]
