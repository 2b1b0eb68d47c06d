"""Sibling detection: messages that belong to the same campaign as a target.

Matching never re-sorts the pool.  Callers that want recency order must
sort the pool before calling.
"""

from __future__ import annotations

from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict

from triage.domain.errors import InvalidInputError
from triage.domain.models import Message
from triage.domain.types import SiblingMatchType
from triage.matching.subject import normalize_subject


class SiblingMatch(BaseModel):
    """A sibling message and the signal that linked it to the target."""

    model_config = ConfigDict(frozen=True)

    message: Message
    match_type: SiblingMatchType


def _is_candidate(candidate: Message, target: Message, campaign_id: str | None) -> bool:
    if candidate.id == target.id:
        return False
    # Already grouped into the campaign being targeted.
    return campaign_id is None or candidate.campaign_id != campaign_id


def find_siblings(
    target: Message,
    pool: Sequence[Message],
    campaign_id: str | None = None,
) -> list[Message]:
    """Find messages whose normalized subject equals the target's.

    Args:
        target: The message the user is acting on.
        pool: Candidate messages, in the order results should be returned.
        campaign_id: The campaign about to be assigned; messages already in
            it are skipped.

    Returns:
        Matching messages in pool order.  Empty when the target's normalized
        subject is empty, so blank-subject mail never clusters.

    Raises:
        InvalidInputError: If *pool* is None.
    """
    if pool is None:
        raise InvalidInputError("message pool must not be None")

    wanted = normalize_subject(target.subject)
    if not wanted:
        return []

    return [
        m
        for m in pool
        if _is_candidate(m, target, campaign_id) and normalize_subject(m.subject) == wanted
    ]


def find_fingerprint_siblings(
    target: Message,
    pool: Sequence[Message],
    campaign_id: str | None = None,
) -> list[Message]:
    """Find messages sharing the target's content fingerprint.

    Args:
        target: The message the user is acting on.
        pool: Candidate messages.
        campaign_id: The campaign about to be assigned.

    Returns:
        Matching messages in pool order; empty when the target carries no
        fingerprint.

    Raises:
        InvalidInputError: If *pool* is None.
    """
    if pool is None:
        raise InvalidInputError("message pool must not be None")

    if not target.fingerprint_hash:
        return []

    return [
        m
        for m in pool
        if _is_candidate(m, target, campaign_id)
        and m.fingerprint_hash == target.fingerprint_hash
    ]


def find_campaign_siblings(
    target: Message,
    pool: Sequence[Message],
    campaign_id: str | None = None,
) -> list[SiblingMatch]:
    """Combine subject and fingerprint matching into one ordered list.

    Each sibling appears once, in pool order, labelled with whichever
    signal(s) matched it.

    Args:
        target: The message the user is acting on.
        pool: Candidate messages.
        campaign_id: The campaign about to be assigned.

    Returns:
        A list of ``SiblingMatch`` objects.
    """
    by_subject = {m.id for m in find_siblings(target, pool, campaign_id)}
    by_fingerprint = {m.id for m in find_fingerprint_siblings(target, pool, campaign_id)}

    matches: list[SiblingMatch] = []
    seen: set[str] = set()
    for m in pool:
        if m.id in seen:
            continue
        in_subject = m.id in by_subject
        in_fingerprint = m.id in by_fingerprint
        if in_subject and in_fingerprint:
            match_type = SiblingMatchType.BOTH
        elif in_subject:
            match_type = SiblingMatchType.SUBJECT
        elif in_fingerprint:
            match_type = SiblingMatchType.FINGERPRINT
        else:
            continue
        seen.add(m.id)
        matches.append(SiblingMatch(message=m, match_type=match_type))
    return matches
