"""Rule-based priority suggestion for a new case."""

from __future__ import annotations

from collections.abc import Sequence

from triage.config import TriageRules
from triage.domain.models import Message
from triage.domain.types import CasePriority
from triage.matching.campaigns import CampaignMatch
from triage.matching.text import html_to_text


def suggest_priority(
    message: Message,
    campaign_matches: Sequence[CampaignMatch] = (),
    rules: TriageRules | None = None,
    campaign_confidence: float = 0.8,
) -> CasePriority:
    """Suggest a priority from urgency keywords and campaign membership.

    Urgency keywords win over everything else.  Mail that confidently
    belongs to a campaign is usually low priority.

    Args:
        message: The message being triaged.
        campaign_matches: Ranked campaign matches for the message.
        rules: Keyword lists; defaults apply when omitted.
        campaign_confidence: Minimum top campaign confidence for LOW.

    Returns:
        HIGH, LOW, or MEDIUM.
    """
    rules = rules or TriageRules()
    text = f"{message.subject or ''}\n{html_to_text(message.body)}".lower()

    if any(keyword.lower() in text for keyword in rules.urgency_keywords):
        return CasePriority.HIGH

    if campaign_matches and campaign_matches[0].confidence >= campaign_confidence:
        return CasePriority.LOW

    return CasePriority.MEDIUM
