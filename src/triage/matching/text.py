"""Plain-text helpers shared by the matchers and resolvers.

Bodies reach the engine either as raw text or as already-sanitized HTML.
These helpers only reduce markup to text for keyword comparison; they do
not sanitize anything.
"""

from __future__ import annotations

import html
import re
from collections.abc import Iterable

_STYLE_RE = re.compile(r"<style[^>]*>[\s\S]*?</style>", re.IGNORECASE)
_SCRIPT_RE = re.compile(r"<script[^>]*>[\s\S]*?</script>", re.IGNORECASE)
_BLOCK_BREAK_RE = re.compile(r"<\s*(br|/p|/div|/li|/h[1-6])\s*/?\s*>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_WORD_RE = re.compile(r"[a-z0-9]+")
_INLINE_WS_RE = re.compile(r"[ \t\f\v]+")


def html_to_text(body: str | None) -> str:
    """Reduce an HTML (or plain text) body to text, keeping line breaks.

    Style and script blocks are dropped, block-level closing tags and
    ``<br>`` become newlines, remaining tags become spaces, and entities are
    decoded.

    Args:
        body: The message body, or None.

    Returns:
        The text content with runs of inline whitespace collapsed.
    """
    if not body:
        return ""

    text = _STYLE_RE.sub("", body)
    text = _SCRIPT_RE.sub("", text)
    text = _BLOCK_BREAK_RE.sub("\n", text)
    text = _TAG_RE.sub(" ", text)
    text = html.unescape(text).replace("\xa0", " ")

    lines = (_INLINE_WS_RE.sub(" ", line).strip() for line in text.splitlines())
    return "\n".join(line for line in lines if line)


def tokenize(
    text: str | None,
    min_length: int = 1,
    stopwords: Iterable[str] = (),
) -> set[str]:
    """Split text into a set of lower-cased alphanumeric tokens.

    Args:
        text: The text to tokenize.
        min_length: Tokens shorter than this are discarded.
        stopwords: Tokens to ignore.

    Returns:
        The distinct tokens found.
    """
    if not text:
        return set()
    ignored = {w.lower() for w in stopwords}
    return {
        token
        for token in _WORD_RE.findall(text.lower())
        if len(token) >= min_length and token not in ignored
    }
