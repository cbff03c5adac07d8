"""Slug derivation for section names."""

import re

_NON_ALNUM = re.compile(r"[^a-z0-9]+")

FALLBACK_SLUG = "section"


def slugify(name: str) -> str:
    """Lowercase *name* and collapse every non-alphanumeric run into one hyphen.

    ``"Flash  Information!"`` becomes ``"flash-information"``. A name without
    any ASCII letter or digit yields ``FALLBACK_SLUG`` so the result is never
    empty.
    """
    slug = _NON_ALNUM.sub("-", name.lower()).strip("-")
    return slug or FALLBACK_SLUG


def numbered_slug(base: str, counter: int) -> str:
    return f"{base}-{counter}"
