"""Shared pytest fixtures for the triage engine test suite."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from triage.config import Settings, TriageRules
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
from triage.domain.types import CampaignStatus, CaseStatus, ContactType, EntityType
from triage.storage import Snapshot, SnapshotStorage

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)

LIBRARY_BODY = (
    "Please save our local library. It matters.\n"
    "Yours sincerely,\n"
    "Jane Smith\n"
    "12 High Street\n"
    "Leeds LS1 4AB"
)


@pytest.fixture
def now() -> datetime:
    """Fixed reference time for recency calculations."""
    return NOW


@pytest.fixture
def settings() -> Settings:
    """Default settings, isolated from any ``.env`` file."""
    return Settings(_env_file=None)  # type: ignore[call-arg]


@pytest.fixture
def rules() -> TriageRules:
    """Built-in keyword lists."""
    return TriageRules()


@pytest.fixture
def make_message() -> Callable[..., Message]:
    """Factory for messages with sensible defaults."""

    def _make(message_id: str = "msg_x", **overrides: Any) -> Message:
        fields: dict[str, Any] = {
            "id": message_id,
            "subject": "Hello",
            "sender_email": "someone@example.com",
            "sender_name": "Some One",
            "received_at": NOW,
        }
        fields.update(overrides)
        return Message(**fields)

    return _make


@pytest.fixture
def messages() -> list[Message]:
    """A small inbox: one target, three siblings of different kinds, one stranger."""
    return [
        Message(
            id="msg_1",
            subject="Save the Library",
            sender_email="jane@example.com",
            sender_name="Jane Smith",
            received_at=NOW,
            body=LIBRARY_BODY,
            fingerprint_hash="fp_lib",
        ),
        Message(
            id="msg_2",
            subject="Re: save the library",
            sender_email="bob@example.com",
            sender_name="Bob Jones",
            received_at=NOW,
            fingerprint_hash="fp_lib",
        ),
        Message(
            id="msg_3",
            subject="SAVE THE LIBRARY  ",
            sender_email="carol@example.com",
            sender_name="Carol White",
            received_at=NOW,
            campaign_id="camp_lib",
        ),
        Message(
            id="msg_4",
            subject="Library petition",
            sender_email="dan@example.com",
            sender_name="Dan Green",
            received_at=NOW,
            fingerprint_hash="fp_lib",
        ),
        Message(
            id="msg_5",
            subject="Pothole on Elm Road",
            sender_email="unknown@nowhere.org",
            sender_name="",
            received_at=NOW,
            body="URGENT: a huge pothole outside\n4 Elm Road\nLeeds LS6 2QT",
        ),
    ]


@pytest.fixture
def campaigns() -> list[Campaign]:
    return [
        Campaign(
            id="camp_lib",
            name="Save Our Library",
            subject_pattern=r"save (the|our) library",
        ),
        Campaign(
            id="camp_old",
            name="Library Petition 2020",
            status=CampaignStatus.INACTIVE,
            fingerprint_hash="fp_lib",
        ),
    ]


@pytest.fixture
def constituents() -> list[Constituent]:
    return [
        Constituent(id="con_jane", full_name="Jane Smith"),
        Constituent(id="con_john", full_name="John Smith"),
        Constituent(id="con_alice", full_name="Alice Brown"),
    ]


@pytest.fixture
def contacts() -> list[Contact]:
    return [
        Contact(
            id="ct_1",
            constituent_id="con_jane",
            type=ContactType.EMAIL,
            value="Jane@Example.com",
            is_primary=True,
        ),
        Contact(
            id="ct_2",
            constituent_id="con_jane",
            type=ContactType.ADDRESS,
            value="12 High Street, Leeds LS1 4AB",
        ),
        Contact(
            id="ct_3",
            constituent_id="con_john",
            type=ContactType.EMAIL,
            value="john.smith@example.com",
        ),
        Contact(
            id="ct_4",
            constituent_id="con_alice",
            type=ContactType.ADDRESS,
            value="9 Park Lane, York YO1 7HH",
        ),
    ]


@pytest.fixture
def cases() -> list[Case]:
    return [
        Case(
            id="case_lib",
            title="Library closure",
            reference_number="CW-0001",
            description="Campaign against closure of the central library",
            status=CaseStatus.OPEN,
            created_at=NOW - timedelta(days=10),
            updated_at=NOW - timedelta(days=2),
        ),
        Case(
            id="case_old",
            title="Library funding",
            reference_number="CW-0002",
            status=CaseStatus.CLOSED,
            created_at=NOW - timedelta(days=200),
            closed_at=NOW - timedelta(days=150),
        ),
        Case(
            id="case_bins",
            title="Missed bin collections",
            reference_number="CW-0003",
            status=CaseStatus.IN_PROGRESS,
            created_at=NOW - timedelta(days=5),
        ),
    ]


@pytest.fixture
def case_parties() -> list[CaseParty]:
    return [
        CaseParty(case_id="case_lib", constituent_id="con_jane"),
        CaseParty(case_id="case_old", constituent_id="con_jane"),
        CaseParty(case_id="case_bins", constituent_id="con_john"),
    ]


@pytest.fixture
def tags() -> list[Tag]:
    return [
        Tag(id="tag_lib", name="Libraries", auto_assign_keywords=["library"]),
        Tag(id="tag_urgent", name="Urgent", color="#DC2626", auto_assign_keywords=["urgent"]),
        Tag(id="tag_env", name="Environment", auto_assign_keywords=["pothole", "recycling"]),
    ]


@pytest.fixture
def snapshot(
    messages: list[Message],
    campaigns: list[Campaign],
    constituents: list[Constituent],
    contacts: list[Contact],
    cases: list[Case],
    case_parties: list[CaseParty],
    tags: list[Tag],
) -> Snapshot:
    """Every fixture above bundled into one snapshot."""
    return Snapshot(
        messages=messages,
        campaigns=campaigns,
        constituents=constituents,
        contacts=contacts,
        cases=cases,
        case_parties=case_parties,
        tags=tags,
        tag_assignments=[
            TagAssignment(entity_type=EntityType.MESSAGE, entity_id="msg_1", tag_id="tag_env"),
        ],
    )


@pytest.fixture
def storage(snapshot: Snapshot) -> SnapshotStorage:
    """In-memory storage seeded with the snapshot."""
    return SnapshotStorage(snapshot)
