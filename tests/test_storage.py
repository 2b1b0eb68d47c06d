"""Tests for the in-memory snapshot storage."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from triage.domain.errors import EntityNotFoundError, StorageError
from triage.domain.types import CampaignStatus, EntityType
from triage.storage import Snapshot, SnapshotStorage


class TestFromJsonFile:
    """Tests for loading snapshots from disk."""

    def test_round_trip_through_file(self, snapshot: Snapshot, tmp_path: Path) -> None:
        path = tmp_path / "snapshot.json"
        path.write_text(snapshot.model_dump_json())

        storage = SnapshotStorage.from_json_file(path)

        assert [m.id for m in storage.list_messages()] == [m.id for m in snapshot.messages]
        assert storage.to_snapshot() == snapshot

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            SnapshotStorage.from_json_file(tmp_path / "missing.json")

    def test_malformed_file(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"messages": [{"id": "m1"}]}))

        with pytest.raises(ValidationError):
            SnapshotStorage.from_json_file(path)


class TestUpdateMessage:
    def test_assigns_campaign_and_case(self, storage: SnapshotStorage) -> None:
        updated = storage.update_message("msg_2", campaign_id="camp_lib", case_id="case_lib")

        assert updated.campaign_id == "camp_lib"
        assert updated.case_id == "case_lib"
        assert storage.get_message("msg_2") == updated

    def test_idempotent(self, storage: SnapshotStorage) -> None:
        first = storage.update_message("msg_2", campaign_id="camp_lib")
        second = storage.update_message("msg_2", campaign_id="camp_lib")
        assert first == second

    def test_unknown_message(self, storage: SnapshotStorage) -> None:
        with pytest.raises(EntityNotFoundError):
            storage.update_message("msg_missing", case_id="case_lib")

    def test_unknown_campaign(self, storage: SnapshotStorage) -> None:
        with pytest.raises(StorageError, match="unknown campaign") as exc_info:
            storage.update_message("msg_1", campaign_id="camp_missing")
        assert exc_info.value.entity_id == "msg_1"


class TestCreate:
    def test_create_campaign(self, storage: SnapshotStorage) -> None:
        campaign = storage.create_campaign("  Park Protest ", fingerprint_hash="abc12345")

        assert campaign.name == "Park Protest"
        assert campaign.status is CampaignStatus.ACTIVE
        assert campaign in storage.list_campaigns()

    def test_blank_campaign_name_rejected(self, storage: SnapshotStorage) -> None:
        with pytest.raises(StorageError):
            storage.create_campaign("   ")

    def test_create_tag_is_idempotent_by_name(self, storage: SnapshotStorage) -> None:
        first = storage.create_tag("Housing", "#000000")
        second = storage.create_tag("housing ", "#FFFFFF")
        existing = storage.create_tag("Libraries", "#123456")

        assert first == second
        assert existing.id == "tag_lib"


class TestSetTagMembership:
    def test_replaces_membership(self, storage: SnapshotStorage) -> None:
        storage.set_tag_membership(EntityType.MESSAGE, "msg_1", {"tag_lib"})
        assert storage.tag_ids_for(EntityType.MESSAGE, "msg_1") == {"tag_lib"}

    def test_empty_set_clears(self, storage: SnapshotStorage) -> None:
        storage.set_tag_membership(EntityType.MESSAGE, "msg_1", [])
        assert storage.tag_ids_for(EntityType.MESSAGE, "msg_1") == set()

    def test_other_entities_untouched(self, storage: SnapshotStorage) -> None:
        storage.set_tag_membership(EntityType.MESSAGE, "msg_2", {"tag_urgent"})
        assert storage.tag_ids_for(EntityType.MESSAGE, "msg_1") == {"tag_env"}

    def test_unknown_entity(self, storage: SnapshotStorage) -> None:
        with pytest.raises(EntityNotFoundError):
            storage.set_tag_membership(EntityType.CASE, "case_missing", {"tag_lib"})

    def test_unknown_tag(self, storage: SnapshotStorage) -> None:
        with pytest.raises(StorageError, match="unknown tags"):
            storage.set_tag_membership(EntityType.MESSAGE, "msg_1", {"tag_nope"})
