"""Tests for the two-phase triage service."""

import threading
from datetime import datetime

import pytest

from triage.commit.mutations import TriageDecision
from triage.config import Settings, TriageRules
from triage.domain.errors import EntityNotFoundError, InvalidInputError
from triage.domain.types import (
    CasePriority,
    ConstituentPillStatus,
    EntityType,
    MatchStatus,
    SiblingMatchType,
    TagState,
)
from triage.matching.subject import generate_fingerprint
from triage.pipeline import TriageService
from triage.storage import SnapshotStorage


@pytest.fixture
def service(storage: SnapshotStorage, settings: Settings, rules: TriageRules) -> TriageService:
    return TriageService(storage, storage, settings=settings, rules=rules)


class TestPreview:
    """Tests for the read-only preview phase."""

    def test_full_preview(self, service: TriageService, now: datetime) -> None:
        preview = service.preview("msg_1", now=now)

        assert [(s.message.id, s.match_type) for s in preview.siblings] == [
            ("msg_2", SiblingMatchType.BOTH),
            ("msg_3", SiblingMatchType.SUBJECT),
            ("msg_4", SiblingMatchType.FINGERPRINT),
        ]
        assert [m.campaign.id for m in preview.campaign_matches] == ["camp_lib"]
        assert preview.resolution.status is MatchStatus.EXACT
        assert preview.resolved_constituent is not None
        assert preview.resolved_constituent.id == "con_jane"
        assert preview.case_suggestion.primary is not None
        assert preview.case_suggestion.primary.case.id == "case_lib"
        assert preview.priority is CasePriority.LOW
        assert preview.tags.states == {"tag_env": TagState.UNCHANGED}
        assert [t.id for t in preview.suggested_tags] == ["tag_lib"]

    def test_campaign_excludes_existing_members(
        self, service: TriageService, now: datetime
    ) -> None:
        preview = service.preview("msg_1", campaign_id="camp_lib", now=now)
        assert preview.sibling_ids == ["msg_2", "msg_4"]

    def test_selected_tags_reconciled_against_persisted(
        self, service: TriageService, now: datetime
    ) -> None:
        preview = service.preview("msg_1", selected_tag_ids=["tag_lib"], now=now)

        assert preview.tags.added == {"tag_lib"}
        assert preview.tags.removed == {"tag_env"}
        assert preview.suggested_tags == []

    def test_unknown_sender_offers_create_flow(
        self, service: TriageService, now: datetime
    ) -> None:
        preview = service.preview("msg_5", now=now)

        assert preview.resolution.status is MatchStatus.NONE
        assert preview.resolution.pill_status is ConstituentPillStatus.UNCERTAIN_WITH_ADDRESS
        assert preview.resolution.extracted.postcode == "LS6 2QT"
        assert preview.resolved_constituent is None
        assert preview.case_suggestion.offer_new_case
        assert preview.priority is CasePriority.HIGH
        assert {t.id for t in preview.suggested_tags} == {"tag_urgent", "tag_env"}

    def test_preview_does_not_write(self, service: TriageService, storage: SnapshotStorage) -> None:
        before = storage.to_snapshot()
        service.preview("msg_1", selected_tag_ids=["tag_lib"])
        assert storage.to_snapshot() == before

    def test_unknown_message(self, service: TriageService) -> None:
        with pytest.raises(EntityNotFoundError):
            service.preview("msg_missing")


class TestCommit:
    """Tests for the bulk commit phase."""

    def test_commit_applies_to_primary_and_siblings(
        self, service: TriageService, storage: SnapshotStorage
    ) -> None:
        decision = TriageDecision(
            primary_message_id="msg_1",
            sibling_ids=("msg_2", "msg_4"),
            campaign_id="camp_lib",
            tag_ids=frozenset({"tag_lib"}),
        )

        result = service.commit(decision)

        assert result.succeeded == 3
        assert result.failed == []
        for message_id in ("msg_1", "msg_2", "msg_4"):
            assert storage.get_message(message_id).campaign_id == "camp_lib"
            assert storage.tag_ids_for(EntityType.MESSAGE, message_id) == {"tag_lib"}

    def test_partial_failure_reported(self, service: TriageService) -> None:
        decision = TriageDecision(
            primary_message_id="msg_1",
            sibling_ids=("msg_missing", "msg_2"),
            case_id="case_lib",
        )

        result = service.commit(decision)

        assert result.succeeded == 2
        assert result.failed_ids == ["msg_missing"]

    def test_concurrent_commit(self, service: TriageService, storage: SnapshotStorage) -> None:
        decision = TriageDecision(
            primary_message_id="msg_1",
            sibling_ids=("msg_2", "msg_3", "msg_4"),
            case_id="case_lib",
        )

        result = service.commit(decision, concurrent=True)

        assert result.succeeded_ids == ["msg_1", "msg_2", "msg_3", "msg_4"]
        assert all(m.case_id == "case_lib" for m in storage.list_messages() if m.id != "msg_5")

    def test_cancelled_commit_skips(self, service: TriageService) -> None:
        cancel = threading.Event()
        cancel.set()
        decision = TriageDecision(
            primary_message_id="msg_1", sibling_ids=("msg_2",), case_id="case_lib"
        )

        result = service.commit(decision, cancel=cancel)

        assert result.skipped == ["msg_1", "msg_2"]

    def test_empty_decision_rejected(self, service: TriageService) -> None:
        with pytest.raises(InvalidInputError):
            service.commit(TriageDecision(primary_message_id="msg_1"))


class TestCreateCampaignFromMessage:
    def test_uses_stored_fingerprint(self, service: TriageService) -> None:
        campaign = service.create_campaign_from_message("msg_1", "Save Our Library 2026")
        assert campaign.fingerprint_hash == "fp_lib"

    def test_computes_fingerprint_when_missing(
        self, service: TriageService, storage: SnapshotStorage
    ) -> None:
        message = storage.get_message("msg_5")

        campaign = service.create_campaign_from_message("msg_5", "Potholes")

        assert campaign.fingerprint_hash == generate_fingerprint(message.subject, message.body)
        assert campaign in storage.list_campaigns()
