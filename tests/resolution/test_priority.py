"""Tests for rule-based priority suggestion."""

from collections.abc import Callable

import pytest

from triage.config import TriageRules
from triage.domain.models import Campaign, Message
from triage.domain.types import CampaignMatchType, CasePriority
from triage.matching.campaigns import CampaignMatch
from triage.resolution.priority import suggest_priority


def _match(confidence: float) -> CampaignMatch:
    return CampaignMatch(
        campaign=Campaign(id="c1", name="Save Our Library"),
        confidence=confidence,
        match_type=CampaignMatchType.FUZZY,
    )


class TestSuggestPriority:
    """Tests for urgency keywords and campaign-driven priority."""

    @pytest.mark.parametrize(
        ("subject", "body"),
        [
            ("URGENT: housing", None),
            ("Housing", "Please reply ASAP"),
            ("Housing", "<p>This is an <b>emergency</b></p>"),
            ("Critical repairs needed", None),
        ],
        ids=["subject_urgent", "body_asap", "html_emergency", "critical"],
    )
    def test_urgency_keyword_is_high(
        self, make_message: Callable[..., Message], subject: str, body: str | None
    ) -> None:
        message = make_message(subject=subject, body=body)
        assert suggest_priority(message, [_match(0.95)]) is CasePriority.HIGH

    def test_confident_campaign_is_low(self, make_message: Callable[..., Message]) -> None:
        assert suggest_priority(make_message(), [_match(0.8)]) is CasePriority.LOW

    def test_weak_campaign_is_medium(self, make_message: Callable[..., Message]) -> None:
        assert suggest_priority(make_message(), [_match(0.7)]) is CasePriority.MEDIUM

    def test_no_campaign_is_medium(self, make_message: Callable[..., Message]) -> None:
        assert suggest_priority(make_message()) is CasePriority.MEDIUM

    def test_custom_keywords(self, make_message: Callable[..., Message]) -> None:
        rules = TriageRules(urgency_keywords=["eviction"])
        message = make_message(subject="Eviction notice received")

        assert suggest_priority(message, rules=rules) is CasePriority.HIGH
        assert suggest_priority(make_message(subject="urgent"), rules=rules) is CasePriority.MEDIUM
