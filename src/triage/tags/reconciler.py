"""Tag state reconciliation for pending tag edits.

Tag state is derived, never stored: only the final membership is
persisted.  Removed tags stay in the display set (rendered struck through)
until the edit is committed or discarded.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from pydantic import BaseModel, ConfigDict

from triage.domain.errors import InvalidInputError
from triage.domain.models import Tag
from triage.domain.types import TagState


class TagReconciliation(BaseModel):
    """Per-tag delta between a working selection and the persisted set.

    Attributes:
        selected: The working selection.
        original: The last persisted set.
        states: State of every id in ``selected | original``.
    """

    model_config = ConfigDict(frozen=True)

    selected: frozenset[str]
    original: frozenset[str]
    states: dict[str, TagState]

    @property
    def display_set(self) -> frozenset[str]:
        """Ids to render: the selection plus removed originals."""
        return self.selected | self.original

    @property
    def added(self) -> frozenset[str]:
        """Ids to insert on commit."""
        return frozenset(t for t, s in self.states.items() if s is TagState.NEW)

    @property
    def removed(self) -> frozenset[str]:
        """Ids to delete on commit."""
        return frozenset(t for t, s in self.states.items() if s is TagState.REMOVED)

    @property
    def unchanged(self) -> frozenset[str]:
        """Ids present before and after the edit."""
        return frozenset(t for t, s in self.states.items() if s is TagState.UNCHANGED)

    @property
    def has_changes(self) -> bool:
        """Return True if committing would alter the persisted set."""
        return bool(self.added or self.removed)

    @property
    def commit_set(self) -> frozenset[str]:
        """The exact membership to persist on commit."""
        return self.selected

    def state_of(self, tag_id: str) -> TagState:
        """Return the state of *tag_id*; ids outside the display set are unchanged."""
        return self.states.get(tag_id, TagState.UNCHANGED)

    def display_tags(self, tags: Sequence[Tag]) -> list[Tag]:
        """Return the catalogue tags in the display set, in catalogue order."""
        shown = self.display_set
        return [t for t in tags if t.id in shown]


def reconcile_tags(selected: Iterable[str], original: Iterable[str]) -> TagReconciliation:
    """Diff a working tag selection against the previously persisted set.

    Args:
        selected: Tag ids currently selected in the editor.
        original: Tag ids persisted before the edit began.

    Returns:
        A ``TagReconciliation`` mapping every id in the union to
        UNCHANGED, NEW, or REMOVED.

    Raises:
        InvalidInputError: If either argument is None.
    """
    if selected is None or original is None:
        raise InvalidInputError("tag selections must not be None")

    selected_set = frozenset(selected)
    original_set = frozenset(original)

    states: dict[str, TagState] = {}
    for tag_id in sorted(selected_set | original_set):
        in_selected = tag_id in selected_set
        in_original = tag_id in original_set
        if in_selected and in_original:
            states[tag_id] = TagState.UNCHANGED
        elif in_selected:
            states[tag_id] = TagState.NEW
        else:
            states[tag_id] = TagState.REMOVED

    return TagReconciliation(selected=selected_set, original=original_set, states=states)
