"""Tag state reconciliation and keyword tag suggestions."""

from triage.tags.reconciler import TagReconciliation, reconcile_tags
from triage.tags.suggestions import suggest_tags

__all__ = [
    "TagReconciliation",
    "reconcile_tags",
    "suggest_tags",
]
