"""Domain entities — pure Python business objects, no framework dependencies."""

import re
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from app.domain.entities.acting_user import ActingUser
from app.domain.expiration import TemporaryDuration, compute_expires_at, parse_duration
from app.domain.tags import normalize_auto_tags, normalize_tags

ARTICLE_ID_PATTERN = re.compile(r"^AN-\d{5}$")
MAX_TITLE_LENGTH = 200
TAG_EXTRACTION_VERSION = 1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ArticleFile:
    """Metadata of a stored attachment; the bytes live in file storage."""

    originalname: str
    filename: str
    path: str
    mimetype: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


@dataclass
class ArticleView:
    user_id: str
    timestamp: datetime = field(default_factory=_utcnow)


@dataclass
class ArticleRead:
    user_id: str
    read_at: datetime = field(default_factory=_utcnow)


@dataclass
class Article:
    """Core domain entity representing a knowledge article.

    ``article_id`` is the human-facing number (``AN-00123``) and is assigned
    once by the ArticleIdAllocator; ``id`` is the storage key.
    """

    title: str
    content: str
    author_id: str
    section_ids: list[str] = field(default_factory=list)
    id: str = field(default_factory=lambda: str(uuid4()))
    article_id: str | None = None
    files: list[ArticleFile] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    auto_tags: list[str] = field(default_factory=list)
    tags_extracted_at: datetime | None = None
    tag_extraction_version: int | None = None
    is_temporary: bool = False
    expires_at: datetime | None = None
    temporary_duration: TemporaryDuration | None = None
    views: int = 0
    viewed_by: list[ArticleView] = field(default_factory=list)
    reads: list[ArticleRead] = field(default_factory=list)
    hidden: bool = False
    comment_ids: list[str] = field(default_factory=list)
    last_content_update: datetime | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    # ── Content ──────────────────────────────────────────────────────

    def update(
        self,
        title: str | None = None,
        content: str | None = None,
        files: list[ArticleFile] | None = None,
    ) -> bool:
        """Update content fields; bump ``last_content_update`` only on a real change."""
        changed = False
        if title is not None and title != self.title:
            self.title = title
            changed = True
        if content is not None and content != self.content:
            self.content = content
            changed = True
        if files is not None and files != self.files:
            self.files = list(files)
            changed = True

        now = _utcnow()
        if changed:
            self.last_content_update = now
        self.updated_at = now
        return changed

    def remove_file(self, filename: str) -> ArticleFile | None:
        """Drop one attachment from the metadata. Returns it, or None when absent."""
        for index, attachment in enumerate(self.files):
            if attachment.filename == filename:
                self.files = self.files[:index] + self.files[index + 1 :]
                now = _utcnow()
                self.last_content_update = now
                self.updated_at = now
                return attachment
        return None

    def assign_sections(self, section_ids: list[str]) -> None:
        """Replace section references, dropping duplicates but keeping order."""
        self.section_ids = list(dict.fromkeys(section_ids))

    def detach_section(self, section_id: str) -> bool:
        if section_id not in self.section_ids:
            return False
        self.section_ids = [s for s in self.section_ids if s != section_id]
        return True

    def toggle_hidden(self) -> bool:
        self.hidden = not self.hidden
        return self.hidden

    # ── Tags ─────────────────────────────────────────────────────────

    def set_tags(self, raw: Any) -> None:
        self.tags = normalize_tags(raw)

    def set_auto_tags(self, tags: list[str]) -> None:
        self.auto_tags = normalize_auto_tags(tags)
        self.tags_extracted_at = _utcnow()
        self.tag_extraction_version = TAG_EXTRACTION_VERSION

    # ── Expiration ───────────────────────────────────────────────────

    def set_expiration(self, duration: str | TemporaryDuration, now: datetime | None = None) -> None:
        """Make the article temporary. Invalid durations raise before any mutation."""
        parsed = parse_duration(duration)
        now = now or _utcnow()
        self.expires_at = compute_expires_at(parsed, now)
        self.temporary_duration = parsed
        self.is_temporary = True

    def clear_expiration(self) -> None:
        self.is_temporary = False
        self.expires_at = None
        self.temporary_duration = None

    def is_expired(self, now: datetime | None = None) -> bool:
        if not self.is_temporary or self.expires_at is None:
            return False
        return self.expires_at <= (now or _utcnow())

    # ── Engagement ───────────────────────────────────────────────────

    def track_view(self, user_id: str, now: datetime | None = None) -> bool:
        """Record a view. Returns True only for a viewer seen for the first time."""
        now = now or _utcnow()
        for view in self.viewed_by:
            if view.user_id == user_id:
                view.timestamp = now
                return False
        self.viewed_by.append(ArticleView(user_id=user_id, timestamp=now))
        self.views += 1
        return True

    def mark_as_read(self, user_id: str, now: datetime | None = None) -> None:
        now = now or _utcnow()
        for read in self.reads:
            if read.user_id == user_id:
                read.read_at = now
                return
        self.reads.append(ArticleRead(user_id=user_id, read_at=now))

    # ── Permissions ──────────────────────────────────────────────────

    def can_edit(self, user: ActingUser) -> bool:
        return self.author_id == user.id or user.is_admin

    def can_delete(self, user: ActingUser) -> bool:
        return self.can_edit(user)

    @property
    def stored_filenames(self) -> list[str]:
        return [f.filename for f in self.files]
