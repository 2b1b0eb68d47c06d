"""Mutation commands emitted by the engine and executed by a storage writer.

A ``TriageDecision`` is what the user approved in the triage view.  It is
turned into a single ``Mutation`` that the bulk coordinator applies to the
primary message and every confirmed sibling.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Literal

import structlog
from pydantic import BaseModel, ConfigDict, field_validator

from triage.domain.errors import InvalidInputError
from triage.domain.types import EntityType
from triage.storage import StorageWriter

logger = structlog.get_logger()


class AssignCampaign(BaseModel):
    """Set a message's ``campaign_id``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["assign_campaign"] = "assign_campaign"
    campaign_id: str


class LinkCase(BaseModel):
    """Set a message's ``case_id``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["link_case"] = "link_case"
    case_id: str


class SetTags(BaseModel):
    """Replace an entity's tag membership with exactly ``tag_ids``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["set_tags"] = "set_tags"
    tag_ids: frozenset[str]
    entity_type: EntityType = EntityType.MESSAGE


MutationStep = AssignCampaign | LinkCase | SetTags


class CompositeMutation(BaseModel):
    """Several steps applied to the same target, in order."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["composite"] = "composite"
    steps: tuple[MutationStep, ...]


Mutation = AssignCampaign | LinkCase | SetTags | CompositeMutation


class ApplyOutcome(BaseModel):
    """Result of applying a mutation to one target.

    ``apply`` callables may return one of these instead of raising.
    """

    model_config = ConfigDict(frozen=True)

    ok: bool
    error: str | None = None

    @classmethod
    def success(cls) -> ApplyOutcome:
        return cls(ok=True)

    @classmethod
    def failure(cls, error: str) -> ApplyOutcome:
        return cls(ok=False, error=error)


class TriageDecision(BaseModel):
    """A user-approved triage decision for a message and its siblings.

    Attributes:
        primary_message_id: The message the user acted on directly.
        sibling_ids: Confirmed sibling messages receiving the same decision.
        campaign_id: Campaign to assign, if any.
        case_id: Case to link, if any.
        tag_ids: Exact tag membership to persist, if tags were edited.
    """

    model_config = ConfigDict(frozen=True)

    primary_message_id: str
    sibling_ids: tuple[str, ...] = ()
    campaign_id: str | None = None
    case_id: str | None = None
    tag_ids: frozenset[str] | None = None

    @field_validator("primary_message_id")
    @classmethod
    def primary_must_not_be_empty(cls, v: str) -> str:
        """Ensure the primary message id is not empty or whitespace-only."""
        if not v.strip():
            raise ValueError("primary_message_id must not be empty")
        return v

    @property
    def target_ids(self) -> list[str]:
        """Primary id first, then siblings in order, without duplicates."""
        ordered = [self.primary_message_id]
        seen = {self.primary_message_id}
        for sibling_id in self.sibling_ids:
            if sibling_id not in seen:
                seen.add(sibling_id)
                ordered.append(sibling_id)
        return ordered

    def to_mutation(self) -> Mutation:
        """Build the mutation every target receives.

        Returns:
            A single step, or a ``CompositeMutation`` when several fields
            are set.

        Raises:
            InvalidInputError: If the decision changes nothing.
        """
        steps: list[MutationStep] = []
        if self.campaign_id is not None:
            steps.append(AssignCampaign(campaign_id=self.campaign_id))
        if self.case_id is not None:
            steps.append(LinkCase(case_id=self.case_id))
        if self.tag_ids is not None:
            steps.append(SetTags(tag_ids=self.tag_ids))

        if not steps:
            raise InvalidInputError(
                f"decision for message {self.primary_message_id} has nothing to apply"
            )
        if len(steps) == 1:
            return steps[0]
        return CompositeMutation(steps=tuple(steps))


def _apply_step(writer: StorageWriter, target_id: str, step: MutationStep) -> None:
    match step:
        case AssignCampaign(campaign_id=campaign_id):
            writer.update_message(target_id, campaign_id=campaign_id)
        case LinkCase(case_id=case_id):
            writer.update_message(target_id, case_id=case_id)
        case SetTags(tag_ids=tag_ids, entity_type=entity_type):
            writer.set_tag_membership(entity_type, target_id, tag_ids)


def build_apply(writer: StorageWriter) -> Callable[[str, Mutation], None]:
    """Create the ``apply`` callable that executes mutations on *writer*.

    The returned callable raises whatever the writer raises; the bulk
    coordinator records those exceptions as per-item failures.

    Args:
        writer: The storage writer to execute against.

    Returns:
        A function ``apply(target_id, mutation)``.
    """

    def apply(target_id: str, mutation: Mutation) -> None:
        match mutation:
            case CompositeMutation(steps=steps):
                for step in steps:
                    _apply_step(writer, target_id, step)
            case AssignCampaign() | LinkCase() | SetTags():
                _apply_step(writer, target_id, mutation)
        logger.debug("mutation_applied", target_id=target_id, kind=mutation.kind)

    return apply


def describe_mutation(mutation: Mutation) -> str:
    """Return a short human-readable summary of a mutation."""
    match mutation:
        case AssignCampaign(campaign_id=campaign_id):
            return f"assign campaign {campaign_id}"
        case LinkCase(case_id=case_id):
            return f"link case {case_id}"
        case SetTags(tag_ids=tag_ids):
            return f"set tags [{', '.join(sorted(tag_ids))}]"
        case CompositeMutation(steps=steps):
            return "; ".join(describe_mutation(s) for s in steps)
