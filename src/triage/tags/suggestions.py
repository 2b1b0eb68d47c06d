"""Keyword-based tag suggestions.

A tag is suggested when any of its ``auto_assign_keywords`` appears in the
message subject or body.  This is the plain keyword fallback; no semantic
search is performed.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from triage.domain.models import Message, Tag
from triage.matching.text import html_to_text


def suggest_tags(
    message: Message,
    tags: Sequence[Tag],
    exclude: Iterable[str] = (),
) -> list[Tag]:
    """Suggest catalogue tags whose keywords occur in a message.

    Args:
        message: The message being triaged.
        tags: The tag catalogue.
        exclude: Tag ids already selected, which are not suggested again.

    Returns:
        Matching tags in catalogue order.
    """
    skip = set(exclude)
    text = f"{message.subject or ''}\n{html_to_text(message.body)}".lower()
    if not text.strip():
        return []

    return [
        tag
        for tag in tags
        if tag.id not in skip
        and any(k.strip() and k.strip().lower() in text for k in tag.auto_assign_keywords)
    ]
