"""Conversation titles derived from the opening user message."""

import re

from app.models import DEFAULT_TITLE

MAX_TITLE_CHARS = 48

PLACEHOLDER_TITLES = frozenset({DEFAULT_TITLE.casefold(), "new chat"})

_WHITESPACE = re.compile(r"\s+")


def derive_title(message: str, max_chars: int = MAX_TITLE_CHARS) -> str:
    """Collapse whitespace and cut to ``max_chars``, marking the cut with an ellipsis."""
    text = _WHITESPACE.sub(" ", message).strip()
    if len(text) > max_chars:
        return text[:max_chars] + "…"
    return text


def is_placeholder_title(title: str | None) -> bool:
    """True for empty titles and the untouched defaults."""
    if not title or not title.strip():
        return True
    return title.strip().casefold() in PLACEHOLDER_TITLES
