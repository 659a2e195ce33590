"""Read-side cleanup for message content.

Some stored rows hold a serialized wrapper such as
``{"conversationId": "...", "text": "..."}`` instead of the text itself,
occasionally several of them back to back. These helpers recover the text.
"""

import json
from typing import Any


def normalize_message_content(value: Any) -> str:
    """Return plain text for a stored message content value."""
    if not isinstance(value, str):
        return str(value or "")

    whole = _text_from_json(value)
    if whole is not None:
        return whole

    for fragment in reversed(extract_json_objects(value)):
        text = _text_from_json(fragment)
        if text is not None:
            return text
    return value


def extract_json_objects(value: str) -> list[str]:
    """Split out balanced top-level ``{...}`` fragments of a string."""
    fragments: list[str] = []
    depth = 0
    start = -1
    for index, char in enumerate(value):
        if char == "{":
            if depth == 0:
                start = index
            depth += 1
        elif char == "}":
            if depth > 0:
                depth -= 1
            if depth == 0 and start != -1:
                fragments.append(value[start : index + 1])
                start = -1
    return fragments


def _text_from_json(candidate: str) -> str | None:
    trimmed = candidate.strip()
    if not (trimmed.startswith("{") and trimmed.endswith("}")):
        return None
    try:
        parsed = json.loads(trimmed)
    except ValueError:
        return None
    if isinstance(parsed, dict) and isinstance(parsed.get("text"), str):
        return parsed["text"]
    return None
