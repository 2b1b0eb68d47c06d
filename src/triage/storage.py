"""Storage collaborators for the triage engine.

The engine never talks to the hosted data client directly.  Callers hand it
a ``StorageReader`` for snapshots and a ``StorageWriter`` for committing
decisions.  ``SnapshotStorage`` implements both over an in-memory snapshot
(optionally loaded from a JSON file) and backs the CLI and the tests.
"""

from __future__ import annotations

import threading
import uuid
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

import structlog
from pydantic import BaseModel, Field

from triage.domain.errors import EntityNotFoundError, StorageError
from triage.domain.models import (
    Campaign,
    Case,
    CaseParty,
    Constituent,
    Contact,
    Message,
    Tag,
    TagAssignment,
)
from triage.domain.types import CampaignStatus, EntityType

logger = structlog.get_logger()


class StorageReader(Protocol):
    """Read side of the storage contract."""

    def list_messages(self) -> list[Message]: ...

    def list_campaigns(self) -> list[Campaign]: ...

    def list_constituents(self) -> list[Constituent]: ...

    def list_contacts(self) -> list[Contact]: ...

    def list_cases(self) -> list[Case]: ...

    def list_case_parties(self) -> list[CaseParty]: ...

    def list_tags(self) -> list[Tag]: ...

    def list_tag_assignments(self) -> list[TagAssignment]: ...


class StorageWriter(Protocol):
    """Write side of the storage contract.

    Every method must be idempotent and raise ``StorageError`` on failure.
    """

    def update_message(
        self,
        message_id: str,
        campaign_id: str | None = None,
        case_id: str | None = None,
    ) -> Message: ...

    def create_campaign(
        self,
        name: str,
        subject_pattern: str | None = None,
        fingerprint_hash: str | None = None,
        description: str | None = None,
    ) -> Campaign: ...

    def create_tag(self, name: str, color: str) -> Tag: ...

    def set_tag_membership(
        self, entity_type: EntityType, entity_id: str, tag_ids: Iterable[str]
    ) -> None: ...


class Snapshot(BaseModel):
    """Serializable snapshot of every entity the engine reads."""

    messages: list[Message] = Field(default_factory=list)
    campaigns: list[Campaign] = Field(default_factory=list)
    constituents: list[Constituent] = Field(default_factory=list)
    contacts: list[Contact] = Field(default_factory=list)
    cases: list[Case] = Field(default_factory=list)
    case_parties: list[CaseParty] = Field(default_factory=list)
    tags: list[Tag] = Field(default_factory=list)
    tag_assignments: list[TagAssignment] = Field(default_factory=list)


class SnapshotStorage:
    """In-memory reader and writer over a ``Snapshot``.

    Writes replace rows in place under a lock, so the storage is safe to use
    from the concurrent bulk coordinator.

    Args:
        snapshot: The initial data.
    """

    def __init__(self, snapshot: Snapshot | None = None) -> None:
        snapshot = snapshot or Snapshot()
        self._lock = threading.Lock()
        self._messages: dict[str, Message] = {m.id: m for m in snapshot.messages}
        self._campaigns: dict[str, Campaign] = {c.id: c for c in snapshot.campaigns}
        self._constituents = list(snapshot.constituents)
        self._contacts = list(snapshot.contacts)
        self._cases = list(snapshot.cases)
        self._case_parties = list(snapshot.case_parties)
        self._tags: dict[str, Tag] = {t.id: t for t in snapshot.tags}
        self._tag_assignments = list(snapshot.tag_assignments)

    @classmethod
    def from_json_file(cls, path: Path) -> SnapshotStorage:
        """Load a snapshot from a JSON file.

        Args:
            path: Path to a JSON document matching ``Snapshot``.

        Returns:
            A ``SnapshotStorage`` holding the file's data.

        Raises:
            FileNotFoundError: If *path* does not exist.
            pydantic.ValidationError: If the document is malformed.
        """
        if not path.exists():
            raise FileNotFoundError(f"Snapshot file not found: {path}")
        snapshot = Snapshot.model_validate_json(path.read_text(encoding="utf-8"))
        logger.info(
            "snapshot_loaded",
            path=str(path),
            messages=len(snapshot.messages),
            cases=len(snapshot.cases),
        )
        return cls(snapshot)

    def to_snapshot(self) -> Snapshot:
        """Return the current state as a ``Snapshot``."""
        with self._lock:
            return Snapshot(
                messages=list(self._messages.values()),
                campaigns=list(self._campaigns.values()),
                constituents=list(self._constituents),
                contacts=list(self._contacts),
                cases=list(self._cases),
                case_parties=list(self._case_parties),
                tags=list(self._tags.values()),
                tag_assignments=list(self._tag_assignments),
            )

    # -- Reader ---------------------------------------------------------------

    def list_messages(self) -> list[Message]:
        with self._lock:
            return list(self._messages.values())

    def list_campaigns(self) -> list[Campaign]:
        with self._lock:
            return list(self._campaigns.values())

    def list_constituents(self) -> list[Constituent]:
        return list(self._constituents)

    def list_contacts(self) -> list[Contact]:
        return list(self._contacts)

    def list_cases(self) -> list[Case]:
        return list(self._cases)

    def list_case_parties(self) -> list[CaseParty]:
        return list(self._case_parties)

    def list_tags(self) -> list[Tag]:
        with self._lock:
            return list(self._tags.values())

    def list_tag_assignments(self) -> list[TagAssignment]:
        with self._lock:
            return list(self._tag_assignments)

    def get_message(self, message_id: str) -> Message:
        """Return a message by id.

        Raises:
            EntityNotFoundError: If no message has *message_id*.
        """
        with self._lock:
            message = self._messages.get(message_id)
        if message is None:
            raise EntityNotFoundError("message", message_id)
        return message

    def tag_ids_for(self, entity_type: EntityType, entity_id: str) -> set[str]:
        """Return the persisted tag ids of an entity."""
        with self._lock:
            return {
                a.tag_id
                for a in self._tag_assignments
                if a.entity_type is entity_type and a.entity_id == entity_id
            }

    # -- Writer ---------------------------------------------------------------

    def update_message(
        self,
        message_id: str,
        campaign_id: str | None = None,
        case_id: str | None = None,
    ) -> Message:
        with self._lock:
            message = self._messages.get(message_id)
            if message is None:
                raise EntityNotFoundError("message", message_id)
            if campaign_id is not None and campaign_id not in self._campaigns:
                raise StorageError(message_id, f"unknown campaign: {campaign_id}")

            changes: dict[str, str] = {}
            if campaign_id is not None:
                changes["campaign_id"] = campaign_id
            if case_id is not None:
                changes["case_id"] = case_id
            updated = message.model_copy(update=changes)
            self._messages[message_id] = updated
            return updated

    def create_campaign(
        self,
        name: str,
        subject_pattern: str | None = None,
        fingerprint_hash: str | None = None,
        description: str | None = None,
    ) -> Campaign:
        if not name.strip():
            raise StorageError("", "campaign name must not be empty")
        campaign = Campaign(
            id=str(uuid.uuid4()),
            name=name.strip(),
            status=CampaignStatus.ACTIVE,
            subject_pattern=subject_pattern,
            fingerprint_hash=fingerprint_hash,
            description=description,
        )
        with self._lock:
            self._campaigns[campaign.id] = campaign
        logger.info("campaign_created", campaign_id=campaign.id, name=campaign.name)
        return campaign

    def create_tag(self, name: str, color: str) -> Tag:
        with self._lock:
            for tag in self._tags.values():
                if tag.name.lower() == name.strip().lower():
                    return tag
            tag = Tag(id=str(uuid.uuid4()), name=name.strip(), color=color)
            self._tags[tag.id] = tag
        logger.info("tag_created", tag_id=tag.id, name=tag.name)
        return tag

    def set_tag_membership(
        self, entity_type: EntityType, entity_id: str, tag_ids: Iterable[str]
    ) -> None:
        wanted = set(tag_ids)
        with self._lock:
            match entity_type:
                case EntityType.MESSAGE:
                    exists = entity_id in self._messages
                case EntityType.CASE:
                    exists = any(c.id == entity_id for c in self._cases)
            if not exists:
                raise EntityNotFoundError(entity_type.value, entity_id)
            unknown = wanted - self._tags.keys()
            if unknown:
                raise StorageError(entity_id, f"unknown tags: {', '.join(sorted(unknown))}")
            kept = [
                a
                for a in self._tag_assignments
                if not (a.entity_type is entity_type and a.entity_id == entity_id)
            ]
            kept.extend(
                TagAssignment(entity_type=entity_type, entity_id=entity_id, tag_id=tag_id)
                for tag_id in sorted(wanted)
            )
            self._tag_assignments = kept
