"""Subject normalization and content fingerprinting for campaign detection.

Both functions are pure.  ``generate_fingerprint`` must produce the same
value as the ingestion service so stored ``fingerprint_hash`` values can be
compared directly.
"""

import re

# Single leading reply/forward marker.  Applied once, not in a loop:
# "Re: Re: Foo" normalizes to "re: foo".
REPLY_PREFIX_RE = re.compile(r"^(re|fwd|fw):\s*", re.IGNORECASE)

# ECMAScript whitespace set.  Python's Unicode \s also matches \x1c-\x1f and
# \x85, which the ingestion service deletes rather than collapses.
_WHITESPACE = r"\t\n\v\f\r \u00a0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000\ufeff"

_NON_ALNUM_RE = re.compile(rf"[^a-z0-9{_WHITESPACE}]")
_WHITESPACE_RE = re.compile(rf"[{_WHITESPACE}]+")

_INT32_MASK = 0xFFFFFFFF
_INT32_SIGN = 0x80000000


def normalize_subject(subject: str | None) -> str:
    """Canonicalize a subject line for equality comparison.

    Strips one leading ``Re:``/``Fwd:``/``Fw:`` marker, trims surrounding
    whitespace, and lower-cases the result.

    Args:
        subject: The raw subject line, or None.

    Returns:
        The normalized subject; empty string for None or blank input.
    """
    if not subject:
        return ""
    return REPLY_PREFIX_RE.sub("", subject, count=1).strip().lower()


def _to_int32(value: int) -> int:
    value &= _INT32_MASK
    return value - (1 << 32) if value & _INT32_SIGN else value


def generate_fingerprint(subject: str | None, body: str | None) -> str:
    """Derive a stable content fingerprint for a message.

    The subject and body are joined, lower-cased, stripped of everything
    except ASCII letters, digits and whitespace, and whitespace-collapsed.
    The result is folded with a 32-bit rolling hash (``h * 31 + c``).

    Args:
        subject: The message subject, or None.
        body: The message body, or None.

    Returns:
        The absolute hash value as lower-case hex, zero-padded to 8 digits.
    """
    content = f"{subject or ''} {body or ''}".lower()
    content = _NON_ALNUM_RE.sub("", content)
    content = _WHITESPACE_RE.sub(" ", content).strip()

    h = 0
    for char in content:
        h = _to_int32((h << 5) - h + ord(char))

    return format(abs(h), "x").zfill(8)
