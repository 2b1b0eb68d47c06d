"""Campaign matching for an incoming message.

Rules (evaluated in order for each campaign):
1. Fingerprint equality: confidence 1.0
2. ``subject_pattern`` regex search (case-insensitive): confidence 0.95
3. Campaign-name words (longer than 3 characters) found in the subject:
   confidence ``matched / total * 0.7``, accepted at 0.3 or above

Invalid regex patterns are skipped and fall through to fuzzy matching.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

import structlog
from pydantic import BaseModel, ConfigDict, Field

from triage.domain.errors import InvalidInputError
from triage.domain.models import Campaign, Message
from triage.domain.types import CampaignMatchType, CampaignStatus

logger = structlog.get_logger()

PATTERN_CONFIDENCE = 0.95
FUZZY_MAX_CONFIDENCE = 0.7
FUZZY_MIN_CONFIDENCE = 0.3


class CampaignMatch(BaseModel):
    """A campaign proposed for a message, with the rule that matched."""

    model_config = ConfigDict(frozen=True)

    campaign: Campaign
    confidence: float = Field(ge=0.0, le=1.0)
    match_type: CampaignMatchType


def match_campaign(campaign: Campaign, message: Message) -> CampaignMatch | None:
    """Match a single campaign against a message.

    Args:
        campaign: The campaign to test.
        message: The message being triaged.

    Returns:
        A ``CampaignMatch`` or None when no rule fires.
    """
    if campaign.fingerprint_hash and campaign.fingerprint_hash == message.fingerprint_hash:
        return CampaignMatch(
            campaign=campaign, confidence=1.0, match_type=CampaignMatchType.FINGERPRINT
        )

    subject = message.subject or ""
    if not subject:
        return None

    if campaign.subject_pattern:
        try:
            if re.search(campaign.subject_pattern, subject, re.IGNORECASE):
                return CampaignMatch(
                    campaign=campaign,
                    confidence=PATTERN_CONFIDENCE,
                    match_type=CampaignMatchType.PATTERN,
                )
        except re.error:
            logger.warning(
                "campaign_pattern_invalid",
                campaign_id=campaign.id,
                pattern=campaign.subject_pattern,
            )

    words = [w for w in campaign.name.lower().split() if len(w) > 3]
    if not words:
        return None

    subject_lower = subject.lower()
    matched = sum(1 for w in words if w in subject_lower)
    confidence = matched / len(words) * FUZZY_MAX_CONFIDENCE
    if matched and confidence >= FUZZY_MIN_CONFIDENCE:
        return CampaignMatch(
            campaign=campaign, confidence=confidence, match_type=CampaignMatchType.FUZZY
        )
    return None


def match_campaigns(
    message: Message,
    campaigns: Sequence[Campaign],
    min_confidence: float = FUZZY_MIN_CONFIDENCE,
    limit: int = 5,
) -> list[CampaignMatch]:
    """Rank active campaigns that plausibly contain *message*.

    Args:
        message: The message being triaged.
        campaigns: All known campaigns; inactive ones are ignored.
        min_confidence: Matches below this confidence are dropped.
        limit: Maximum number of matches returned.

    Returns:
        Matches ordered by confidence descending, then campaign id.

    Raises:
        InvalidInputError: If *campaigns* is None.
    """
    if campaigns is None:
        raise InvalidInputError("campaign pool must not be None")

    matches: list[CampaignMatch] = []
    for campaign in campaigns:
        if campaign.status is not CampaignStatus.ACTIVE:
            continue
        match = match_campaign(campaign, message)
        if match is not None and match.confidence >= min_confidence:
            matches.append(match)

    matches.sort(key=lambda m: (-m.confidence, m.campaign.id))
    return matches[:limit]
