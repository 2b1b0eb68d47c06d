"""Mutation commands and the bulk commit coordinator."""

from triage.commit.bulk import (
    BatchResult,
    ItemFailure,
    apply_to_all,
    apply_to_all_concurrent,
)
from triage.commit.mutations import (
    ApplyOutcome,
    AssignCampaign,
    CompositeMutation,
    LinkCase,
    Mutation,
    SetTags,
    TriageDecision,
    build_apply,
    describe_mutation,
)

__all__ = [
    "ApplyOutcome",
    "AssignCampaign",
    "BatchResult",
    "CompositeMutation",
    "ItemFailure",
    "LinkCase",
    "Mutation",
    "SetTags",
    "TriageDecision",
    "apply_to_all",
    "apply_to_all_concurrent",
    "build_apply",
    "describe_mutation",
]
