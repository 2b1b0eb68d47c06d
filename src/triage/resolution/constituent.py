"""Constituent resolution: link a message sender to a known constituent.

States are evaluated in strict precedence order and the first that applies
wins:

1. EXACT: exactly one constituent owns an email contact equal to the
   sender address (case-insensitive). Confidence 1.0.
2. MULTIPLE: several constituents own the sender address, or no exact
   match exists and several constituents pass the fuzzy predicate.
3. FUZZY: exactly one constituent passes the fuzzy predicate. Confidence
   is the fuzzy score, always below 1.0.
4. NONE: nothing matched. Extracted contact fields are returned so the
   create-constituent flow can be pre-filled.

Ambiguity is a normal outcome and is returned, never raised.  Candidates
are ordered by score descending with ties broken by constituent id, so a
fixed pool always yields the same ranking.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence

import structlog
from pydantic import BaseModel, ConfigDict, Field

from triage.config import Settings, TriageRules, get_settings
from triage.domain.errors import InvalidInputError
from triage.domain.models import Constituent, Contact, Sender
from triage.domain.types import ConstituentPillStatus, ContactType, MatchStatus
from triage.matching.text import tokenize
from triage.resolution.extraction import ExtractedContact, extract_contact_fields, find_postcode

logger = structlog.get_logger()

# Fuzzy confidence is capped below an exact match.
MAX_FUZZY_CONFIDENCE = 0.99

_NAME_TOKEN_MIN_LENGTH = 2
_ADDRESS_TOKEN_MIN_LENGTH = 2


class ConstituentCandidate(BaseModel):
    """A constituent proposed for a sender, with its confidence."""

    model_config = ConfigDict(frozen=True)

    constituent: Constituent
    confidence: float = Field(ge=0.0, le=1.0)
    matched_on: str


class ResolutionResult(BaseModel):
    """Outcome of resolving a sender against the constituent pool.

    Attributes:
        status: The confidence tier reached.
        candidates: Ranked matches (one for EXACT and FUZZY).
        alternatives: Lower-scoring constituents offered for manual
            override when the status is FUZZY.
        extracted: Contact fields read from the message, for the
            create-constituent flow.
    """

    model_config = ConfigDict(frozen=True)

    status: MatchStatus
    candidates: list[ConstituentCandidate] = Field(default_factory=list)
    alternatives: list[ConstituentCandidate] = Field(default_factory=list)
    extracted: ExtractedContact = Field(default_factory=ExtractedContact)

    @property
    def best(self) -> ConstituentCandidate | None:
        """Return the top-ranked candidate, if any."""
        return self.candidates[0] if self.candidates else None

    @property
    def requires_choice(self) -> bool:
        """Return True if a human must pick or create a constituent."""
        match self.status:
            case MatchStatus.EXACT | MatchStatus.FUZZY:
                return False
            case MatchStatus.MULTIPLE | MatchStatus.NONE:
                return True

    @property
    def pill_status(self) -> ConstituentPillStatus:
        """Return the constituent pill state for the triage view."""
        match self.status:
            case MatchStatus.EXACT | MatchStatus.FUZZY:
                return ConstituentPillStatus.DETERMINED
            case MatchStatus.MULTIPLE | MatchStatus.NONE:
                if self.extracted.has_address:
                    return ConstituentPillStatus.UNCERTAIN_WITH_ADDRESS
                return ConstituentPillStatus.UNCERTAIN_NO_ADDRESS


def _contacts_by_constituent(contacts: Sequence[Contact]) -> dict[str, list[Contact]]:
    grouped: dict[str, list[Contact]] = defaultdict(list)
    for contact in contacts:
        grouped[contact.constituent_id].append(contact)
    return grouped


def _name_overlap(sender_name: str, full_name: str) -> float:
    sender_tokens = tokenize(sender_name, min_length=_NAME_TOKEN_MIN_LENGTH)
    name_tokens = tokenize(full_name, min_length=_NAME_TOKEN_MIN_LENGTH)
    if not sender_tokens or not name_tokens:
        return 0.0
    return len(sender_tokens & name_tokens) / len(sender_tokens | name_tokens)


def _address_overlap(extracted: ExtractedContact, contacts: Sequence[Contact]) -> float:
    addresses = [c.value for c in contacts if c.type is ContactType.ADDRESS]
    if not addresses or not extracted.has_address:
        return 0.0

    best = 0.0
    wanted_tokens = tokenize(extracted.address, min_length=_ADDRESS_TOKEN_MIN_LENGTH)
    for value in addresses:
        if extracted.postcode and find_postcode(value) == extracted.postcode:
            return 1.0
        tokens = tokenize(value, min_length=_ADDRESS_TOKEN_MIN_LENGTH)
        if tokens and wanted_tokens:
            best = max(best, len(tokens & wanted_tokens) / len(tokens | wanted_tokens))
    return best


def fuzzy_score(
    sender_name: str,
    constituent: Constituent,
    contacts: Sequence[Contact],
    extracted: ExtractedContact,
    name_weight: float = 0.7,
    address_weight: float = 0.3,
) -> float:
    """Score how plausibly *constituent* is the sender, without an email match.

    The score is a weighted sum of name-token overlap (Jaccard over tokens of
    two or more characters) and address evidence (1.0 on postcode equality,
    otherwise address-token overlap).  It is monotonic in both signals and
    capped below 1.0.

    Args:
        sender_name: The sender's display name.
        constituent: The candidate constituent.
        contacts: The candidate's contact records.
        extracted: Contact fields extracted from the message.
        name_weight: Weight of the name signal.
        address_weight: Weight of the address signal.

    Returns:
        A score in ``[0, 0.99]``.
    """
    name = _name_overlap(sender_name or (extracted.name or ""), constituent.full_name)
    address = _address_overlap(extracted, contacts)
    score = name_weight * name + address_weight * address
    return min(round(score, 6), MAX_FUZZY_CONFIDENCE)


def _rank(candidates: list[ConstituentCandidate]) -> list[ConstituentCandidate]:
    return sorted(candidates, key=lambda c: (-c.confidence, c.constituent.id))


def resolve_constituent(
    sender: Sender,
    pool: Sequence[Constituent],
    contacts: Sequence[Contact],
    body: str | None = None,
    settings: Settings | None = None,
    rules: TriageRules | None = None,
) -> ResolutionResult:
    """Resolve a message sender to a constituent under graded confidence.

    Args:
        sender: The message sender's email and display name.
        pool: Known constituents.
        contacts: Contact records for the constituents in *pool*.
        body: The message body, used for address and sign-off extraction.
        settings: Thresholds and weights; defaults apply when omitted.
        rules: Keyword lists; defaults apply when omitted.

    Returns:
        A ``ResolutionResult``.

    Raises:
        InvalidInputError: If *pool* or *contacts* is None.
    """
    if pool is None or contacts is None:
        raise InvalidInputError("constituent pool and contacts must not be None")

    settings = settings or get_settings()
    rules = rules or TriageRules()

    by_id = {c.id: c for c in pool}
    grouped = _contacts_by_constituent(contacts)
    extracted = extract_contact_fields(sender, body, rules.sign_off_phrases)

    sender_email = sender.email.strip().lower()
    if sender_email:
        owners = sorted(
            {
                contact.constituent_id
                for contact in contacts
                if contact.type is ContactType.EMAIL
                and contact.value.strip().lower() == sender_email
                and contact.constituent_id in by_id
            }
        )
        if len(owners) == 1:
            logger.debug("constituent_exact_match", constituent_id=owners[0])
            return ResolutionResult(
                status=MatchStatus.EXACT,
                candidates=[
                    ConstituentCandidate(
                        constituent=by_id[owners[0]], confidence=1.0, matched_on="email"
                    )
                ],
                extracted=extracted,
            )
        if len(owners) > 1:
            logger.info("constituent_email_shared", owners=len(owners))
            return ResolutionResult(
                status=MatchStatus.MULTIPLE,
                candidates=[
                    ConstituentCandidate(
                        constituent=by_id[cid], confidence=1.0, matched_on="email"
                    )
                    for cid in owners
                ],
                extracted=extracted,
            )

    scored: list[ConstituentCandidate] = []
    for constituent in by_id.values():
        score = fuzzy_score(
            sender.name,
            constituent,
            grouped.get(constituent.id, []),
            extracted,
            name_weight=settings.fuzzy_name_weight,
            address_weight=settings.fuzzy_address_weight,
        )
        if score > 0:
            scored.append(
                ConstituentCandidate(constituent=constituent, confidence=score, matched_on="fuzzy")
            )

    ranked = _rank(scored)
    passing = [c for c in ranked if c.confidence >= settings.fuzzy_min_score]

    if len(passing) > 1:
        return ResolutionResult(
            status=MatchStatus.MULTIPLE, candidates=passing, extracted=extracted
        )

    if len(passing) == 1:
        alternatives = [c for c in ranked if c.constituent.id != passing[0].constituent.id]
        return ResolutionResult(
            status=MatchStatus.FUZZY,
            candidates=passing,
            alternatives=alternatives[: settings.constituent_max_alternatives],
            extracted=extracted,
        )

    return ResolutionResult(status=MatchStatus.NONE, extracted=extracted)
