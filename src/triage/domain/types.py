"""Domain enumerations for the triage resolution engine."""

from enum import StrEnum


class ContactType(StrEnum):
    """Kinds of contact record attached to a constituent."""

    EMAIL = "email"
    PHONE = "phone"
    ADDRESS = "address"


class CampaignStatus(StrEnum):
    """Lifecycle status of a campaign."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    ARCHIVED = "archived"


class CaseStatus(StrEnum):
    """Lifecycle status of a case."""

    OPEN = "open"
    IN_PROGRESS = "in_progress"
    AWAITING_RESPONSE = "awaiting_response"
    PENDING = "pending"
    CLOSED = "closed"
    ARCHIVED = "archived"


class CasePriority(StrEnum):
    """Priority levels a case can carry."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class EntityType(StrEnum):
    """Entities that can carry tag assignments."""

    MESSAGE = "message"
    CASE = "case"


class MatchStatus(StrEnum):
    """Confidence tier of a constituent resolution, in precedence order."""

    EXACT = "exact"
    MULTIPLE = "multiple"
    FUZZY = "fuzzy"
    NONE = "none"


class ConstituentPillStatus(StrEnum):
    """Display status for the constituent pill in the triage view."""

    APPROVED = "approved"
    DETERMINED = "determined"
    UNCERTAIN_WITH_ADDRESS = "uncertain_with_address"
    UNCERTAIN_NO_ADDRESS = "uncertain_no_address"


class TagState(StrEnum):
    """Membership delta of a tag relative to its last persisted state."""

    UNCHANGED = "unchanged"
    NEW = "new"
    REMOVED = "removed"


class SiblingMatchType(StrEnum):
    """Which signal linked a sibling message to the target."""

    SUBJECT = "subject"
    FINGERPRINT = "fingerprint"
    BOTH = "both"


class CampaignMatchType(StrEnum):
    """Which rule matched a message to a campaign."""

    FINGERPRINT = "fingerprint"
    PATTERN = "pattern"
    FUZZY = "fuzzy"


def is_case_active(status: CaseStatus) -> bool:
    """Return True if a case in *status* should outrank closed cases.

    Args:
        status: The case status to classify.

    Returns:
        True for open-like statuses, False for closed or archived cases.
    """
    match status:
        case (
            CaseStatus.OPEN
            | CaseStatus.IN_PROGRESS
            | CaseStatus.AWAITING_RESPONSE
            | CaseStatus.PENDING
        ):
            return True
        case CaseStatus.CLOSED | CaseStatus.ARCHIVED:
            return False
