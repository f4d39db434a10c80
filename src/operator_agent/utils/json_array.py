"""Parser for JSON string arrays embedded in free-form model output.

Lightweight completions are asked for "a JSON array of strings" but often
wrap it in prose or code fences. This pulls out the outermost [...] span
and keeps only the non-empty string items.
"""

import json
import re

_ARRAY_PATTERN = re.compile(r"\[[\s\S]*\]")


def parse_string_array(text: str, limit: int | None = None) -> list[str]:
    """Extract a list of non-empty, stripped strings from model output.

    Args:
        text: Raw completion text.
        limit: Keep at most this many items.

    Returns:
        The strings found, or an empty list when there is no valid array.
    """
    match = _ARRAY_PATTERN.search(text or "")
    if not match:
        return []
    try:
        items = json.loads(match.group(0))
    except json.JSONDecodeError:
        return []
    if not isinstance(items, list):
        return []
    strings = [item.strip() for item in items if isinstance(item, str) and item.strip()]
    return strings[:limit] if limit is not None else strings
