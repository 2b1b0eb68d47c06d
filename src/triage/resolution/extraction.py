"""Contact-field extraction used to pre-fill the "create constituent" flow.

When a sender cannot be resolved, the triage view offers to create a new
constituent, and shows "Create constituent" instead of "Request address"
when an address could be read from the message.  Extraction is heuristic
and deliberately narrow: display name or letter sign-off for the name, and
the line carrying a UK postcode for the address.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict

from triage.domain.models import Sender
from triage.matching.text import html_to_text

POSTCODE_RE = re.compile(r"\b([A-Z]{1,2}\d[A-Z\d]?)\s*(\d[A-Z]{2})\b", re.IGNORECASE)

_HOUSE_NUMBER_RE = re.compile(r"^\d+[a-z]?\b", re.IGNORECASE)
_MAX_NAME_WORDS = 5


class ExtractedContact(BaseModel):
    """Contact fields read from a message's headers and body."""

    model_config = ConfigDict(frozen=True)

    name: str | None = None
    email: str | None = None
    address: str | None = None
    postcode: str | None = None

    @property
    def has_address(self) -> bool:
        """Return True if an address or postcode was found."""
        return bool(self.address or self.postcode)


def find_postcode(text: str | None) -> str | None:
    """Return the first UK postcode in *text* as ``OUTWARD INWARD``, or None."""
    if not text:
        return None
    match = POSTCODE_RE.search(text)
    if match is None:
        return None
    return f"{match.group(1).upper()} {match.group(2).upper()}"


def _looks_like_name(line: str) -> bool:
    words = line.split()
    return 0 < len(words) <= _MAX_NAME_WORDS and any(c.isalpha() for c in line)


def _name_from_sign_off(lines: list[str], sign_off_phrases: Sequence[str]) -> str | None:
    phrases = [p.lower() for p in sign_off_phrases]
    for index, line in enumerate(lines):
        lowered = line.lower().rstrip(",.! ")
        if not any(lowered == p or lowered.startswith(p + ",") for p in phrases):
            continue
        # "Kind regards, Jane Smith" on one line
        remainder = line.split(",", 1)[1].strip() if "," in line else ""
        if remainder and _looks_like_name(remainder):
            return remainder
        if index + 1 < len(lines) and _looks_like_name(lines[index + 1]):
            return lines[index + 1]
    return None


def _address_from_lines(lines: list[str]) -> str | None:
    for index, line in enumerate(lines):
        if not POSTCODE_RE.search(line):
            continue
        if index > 0 and _HOUSE_NUMBER_RE.match(lines[index - 1]):
            return f"{lines[index - 1]}, {line}"
        return line
    return None


def extract_contact_fields(
    sender: Sender,
    body: str | None,
    sign_off_phrases: Sequence[str] = ("kind regards", "regards", "yours sincerely"),
) -> ExtractedContact:
    """Extract name, email, address and postcode for a new constituent.

    Args:
        sender: The message sender.
        body: The message body (raw text or sanitized HTML).
        sign_off_phrases: Phrases that introduce the writer's name at the
            end of a letter.

    Returns:
        An ``ExtractedContact``; fields that could not be found are None.
    """
    text = html_to_text(body)
    lines = text.splitlines()

    name = sender.name.strip() or _name_from_sign_off(lines, sign_off_phrases)
    address = _address_from_lines(lines)

    return ExtractedContact(
        name=name or None,
        email=sender.email.strip() or None,
        address=address,
        postcode=find_postcode(text),
    )
