"""Article search rules shared by the service and the repositories."""

import re
from enum import Enum

from app.domain.entities.article import Article


class SearchField(str, Enum):
    """Which part of an article a search term is matched against."""

    ALL = "all"
    TITLE = "title"
    CONTENT = "content"
    TAG = "tag"


# Embedded media leave filenames and attributes in the HTML body; a term that
# only hits those is not a content match.
_MEDIA_MARKUP = (
    re.compile(r"<img[^>]*>", re.IGNORECASE),
    re.compile(r'(src|alt|title)="[^"]*"', re.IGNORECASE),
    re.compile(r"uploads/[^\s\"'>]*", re.IGNORECASE),
    re.compile(r"\.(jpg|jpeg|png|gif|pdf|docx?|xlsx?|pptx?)\b", re.IGNORECASE),
)
_WHITESPACE = re.compile(r"\s+")


def strip_media_markup(content: str) -> str:
    for pattern in _MEDIA_MARKUP:
        content = pattern.sub(" ", content)
    return _WHITESPACE.sub(" ", content).strip()


def is_genuine_match(article: Article, term: str) -> bool:
    """True when *term* hits the title, a tag, or the body text outside media markup."""
    needle = term.lower()
    if needle in article.title.lower():
        return True
    if any(needle in tag for tag in [*article.tags, *article.auto_tags]):
        return True
    return needle in strip_media_markup(article.content).lower()
