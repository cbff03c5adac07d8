"""Tag normalization rules shared by article creation and update."""

import json
import re
from collections.abc import Iterable

MAX_TAG_LENGTH = 50

_VALID_TAG = re.compile(r"^[a-z0-9\s-]+$")


def _parse_raw_tags(raw: str | Iterable[object]) -> list[object]:
    """Turn tag input into a flat list of candidate values.

    Strings are read as a JSON array first; anything that is not valid JSON
    (or not a JSON list) falls back to comma splitting.
    """
    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except ValueError:
            return raw.split(",")
        if isinstance(parsed, list):
            return parsed
        return raw.split(",")
    return list(raw)


def normalize_tags(raw: str | Iterable[object] | None) -> list[str]:
    """Canonicalize free-text tags.

    Entries are lowercased and trimmed, kept only when they match
    ``[a-z0-9\\s-]`` with a length between 1 and 50, and deduplicated in
    first-seen order. ``None`` yields an empty list.
    """
    if raw is None:
        return []

    tags: list[str] = []
    seen: set[str] = set()
    for candidate in _parse_raw_tags(raw):
        if not isinstance(candidate, str):
            continue
        tag = candidate.lower().strip()
        if not tag or len(tag) > MAX_TAG_LENGTH:
            continue
        if not _VALID_TAG.match(tag):
            continue
        if tag in seen:
            continue
        seen.add(tag)
        tags.append(tag)
    return tags


def normalize_auto_tags(raw: Iterable[str]) -> list[str]:
    """Lowercase, trim and dedupe system-extracted tags (no character filter)."""
    result: list[str] = []
    for candidate in raw:
        tag = candidate.lower().strip()
        if tag and tag not in result:
            result.append(tag)
    return result
