"""Pydantic v2 models for the entities the triage engine reads.

Every model is frozen: the engine never mutates the snapshot handed to it,
it only proposes mutations that a storage writer executes.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from triage.domain.types import (
    CampaignStatus,
    CasePriority,
    CaseStatus,
    ContactType,
    EntityType,
)


class Message(BaseModel):
    """An inbound message awaiting (or having received) triage."""

    model_config = ConfigDict(frozen=True)

    id: str
    subject: str | None = None
    sender_email: str = ""
    sender_name: str = ""
    received_at: datetime
    body: str | None = None
    campaign_id: str | None = None
    case_id: str | None = None
    fingerprint_hash: str | None = None

    @field_validator("id")
    @classmethod
    def id_must_not_be_empty(cls, v: str) -> str:
        """Ensure the message id is not empty or whitespace-only."""
        if not v.strip():
            raise ValueError("message id must not be empty")
        return v


class Sender(BaseModel):
    """Identity of a message's sender as presented in its headers."""

    model_config = ConfigDict(frozen=True)

    email: str = ""
    name: str = ""

    @classmethod
    def from_message(cls, message: Message) -> Sender:
        """Build a sender from a message's header fields."""
        return cls(email=message.sender_email, name=message.sender_name)


class Campaign(BaseModel):
    """A named grouping of messages representing a mass-mail action."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    status: CampaignStatus = CampaignStatus.ACTIVE
    subject_pattern: str | None = Field(default=None, description="Case-insensitive regex")
    fingerprint_hash: str | None = None
    description: str | None = None


class Constituent(BaseModel):
    """A person record a message sender may be linked to."""

    model_config = ConfigDict(frozen=True)

    id: str
    full_name: str


class Contact(BaseModel):
    """A typed contact record belonging to a constituent."""

    model_config = ConfigDict(frozen=True)

    id: str
    constituent_id: str
    type: ContactType
    value: str
    is_primary: bool = False

    @field_validator("value")
    @classmethod
    def value_must_not_be_empty(cls, v: str) -> str:
        """Reject blank contact values."""
        if not v.strip():
            raise ValueError("contact value must not be empty")
        return v


class Case(BaseModel):
    """A piece of casework that messages can be linked to."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    reference_number: str
    status: CaseStatus = CaseStatus.OPEN
    priority: CasePriority = CasePriority.MEDIUM
    assignee_id: str | None = None
    description: str | None = None
    created_at: datetime
    updated_at: datetime | None = None
    closed_at: datetime | None = None

    @property
    def last_activity_at(self) -> datetime:
        """Return the most recent activity timestamp known for the case."""
        return self.updated_at or self.created_at


class CaseParty(BaseModel):
    """Join row linking a constituent to a case."""

    model_config = ConfigDict(frozen=True)

    case_id: str
    constituent_id: str
    role: str = "primary"


class Tag(BaseModel):
    """A label that can be attached to messages and cases."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    color: str = "#6B7280"
    auto_assign_keywords: list[str] = Field(default_factory=list)


class TagAssignment(BaseModel):
    """Join row attaching a tag to a message or case."""

    model_config = ConfigDict(frozen=True)

    entity_type: EntityType
    entity_id: str
    tag_id: str
