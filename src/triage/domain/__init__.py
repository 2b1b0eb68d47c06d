"""Domain types, models, and errors for the triage engine."""

from triage.domain.errors import (
    EntityNotFoundError,
    InvalidInputError,
    StorageError,
    TriageError,
)
from triage.domain.models import (
    Campaign,
    Case,
    CaseParty,
    Constituent,
    Contact,
    Message,
    Sender,
    Tag,
    TagAssignment,
)
from triage.domain.types import (
    CampaignMatchType,
    CampaignStatus,
    CasePriority,
    CaseStatus,
    ConstituentPillStatus,
    ContactType,
    EntityType,
    MatchStatus,
    SiblingMatchType,
    TagState,
    is_case_active,
)

__all__ = [
    "Campaign",
    "CampaignMatchType",
    "CampaignStatus",
    "Case",
    "CaseParty",
    "CasePriority",
    "CaseStatus",
    "Constituent",
    "ConstituentPillStatus",
    "Contact",
    "ContactType",
    "EntityNotFoundError",
    "EntityType",
    "InvalidInputError",
    "MatchStatus",
    "Message",
    "Sender",
    "SiblingMatchType",
    "StorageError",
    "Tag",
    "TagAssignment",
    "TagState",
    "TriageError",
    "is_case_active",
]
