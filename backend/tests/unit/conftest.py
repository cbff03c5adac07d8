"""In-memory fakes of the repository ports and fixtures wiring them into services."""

import copy
import re
from collections import Counter
from datetime import datetime

import pytest

from app.application.interfaces import (
    ArticleRepository,
    CommentStore,
    FileStorage,
    SectionRepository,
)
from app.application.services import (
    ArticleIdAllocator,
    ArticleService,
    ConsistencyCoordinator,
    SectionService,
)
from app.domain.entities import ActingUser, Article, Section
from app.domain.search import SearchField


# ── Fakes ────────────────────────────────────────────────────────────


class FakeSectionRepository(SectionRepository):
    """In-memory fake section store. Hands out copies like a real database would."""

    def __init__(self):
        self._sections: dict[str, Section] = {}
        self.fail_count_updates = False

    def _sorted(self, sections) -> list[Section]:
        return [copy.deepcopy(s) for s in sorted(sections, key=lambda s: (s.order, s.name))]

    async def get_by_id(self, section_id: str) -> Section | None:
        section = self._sections.get(section_id)
        return copy.deepcopy(section) if section else None

    async def get_by_ids(self, section_ids: list[str]) -> list[Section]:
        return [copy.deepcopy(self._sections[i]) for i in section_ids if i in self._sections]

    async def get_by_slug(self, slug: str) -> Section | None:
        for section in self._sections.values():
            if section.slug == slug:
                return copy.deepcopy(section)
        return None

    async def get_all(self, *, active_only: bool = False) -> list[Section]:
        return self._sorted(s for s in self._sections.values() if s.is_active or not active_only)

    async def get_children(self, parent_id: str | None) -> list[Section]:
        return self._sorted(s for s in self._sections.values() if s.parent_id == parent_id)

    async def count_children(self, section_id: str) -> int:
        return sum(1 for s in self._sections.values() if s.parent_id == section_id)

    async def find_slugs_with_prefix(self, base_slug: str, exclude_id: str | None = None) -> set[str]:
        pattern = re.compile(rf"^{re.escape(base_slug)}(-\d+)?$")
        return {
            s.slug
            for s in self._sections.values()
            if s.id != exclude_id and pattern.match(s.slug)
        }

    async def create(self, section: Section) -> Section:
        self._sections[section.id] = copy.deepcopy(section)
        return copy.deepcopy(section)

    async def update(self, section: Section) -> Section:
        if section.id not in self._sections:
            raise ValueError(f"Section {section.id} not found")
        stored = copy.deepcopy(section)
        stored.article_count = self._sections[section.id].article_count
        stored.children = []
        self._sections[section.id] = stored
        return copy.deepcopy(stored)

    async def set_article_count(self, section_id: str, count: int) -> None:
        if self.fail_count_updates:
            raise RuntimeError("database unavailable")
        if section_id in self._sections:
            self._sections[section_id].article_count = count

    async def delete(self, section_id: str) -> bool:
        return self._sections.pop(section_id, None) is not None


class FakeArticleRepository(ArticleRepository):
    """In-memory fake article store."""

    def __init__(self):
        self._articles: dict[str, Article] = {}
        self.fail_lookup = False

    def _newest_first(self, articles) -> list[Article]:
        return [copy.deepcopy(a) for a in sorted(articles, key=lambda a: a.created_at, reverse=True)]

    async def get_by_id(self, article_id: str) -> Article | None:
        article = self._articles.get(article_id)
        return copy.deepcopy(article) if article else None

    async def get_by_article_id(self, article_number: str) -> Article | None:
        for article in self._articles.values():
            if article.article_id == article_number:
                return copy.deepcopy(article)
        return None

    async def get_by_ids(self, article_ids: list[str]) -> list[Article]:
        return [copy.deepcopy(self._articles[i]) for i in article_ids if i in self._articles]

    async def search(
        self, term: str, field: SearchField = SearchField.ALL, include_hidden: bool = False, limit: int = 100
    ) -> list[Article]:
        needle = term.strip().lower()

        def hit(a: Article) -> bool:
            tags = [*a.tags, *a.auto_tags]
            if field is SearchField.TAG:
                return needle in tags
            if field is SearchField.TITLE:
                return needle in a.title.lower()
            if field is SearchField.CONTENT:
                return needle in a.content.lower()
            return needle in a.title.lower() or needle in a.content.lower() or any(needle in t for t in tags)

        articles = [a for a in self._articles.values() if hit(a) and (include_hidden or not a.hidden)]
        return self._newest_first(articles)[:limit]

    async def get_all(self, skip: int = 0, limit: int = 100, include_hidden: bool = False) -> list[Article]:
        articles = [a for a in self._articles.values() if include_hidden or not a.hidden]
        articles.sort(key=lambda a: a.article_id or "", reverse=True)
        return [copy.deepcopy(a) for a in articles[skip : skip + limit]]

    async def get_by_section(self, section_id: str, skip: int = 0, limit: int = 15) -> list[Article]:
        articles = [a for a in self._articles.values() if section_id in a.section_ids and not a.hidden]
        return self._newest_first(articles)[skip : skip + limit]

    async def find_by_tag(self, tag: str, skip: int = 0, limit: int = 15) -> list[Article]:
        articles = [a for a in self._articles.values() if tag in a.tags or tag in a.auto_tags]
        return self._newest_first(articles)[skip : skip + limit]

    async def popular_tags(self, limit: int = 10) -> list[tuple[str, int]]:
        counts = Counter(t for a in self._articles.values() for t in [*a.tags, *a.auto_tags])
        return sorted(counts.items(), key=lambda item: (-item[1], item[0]))[:limit]

    async def get_highest_article_id(self) -> str | None:
        if self.fail_lookup:
            raise RuntimeError("connection reset")
        ids = [a.article_id for a in self._articles.values() if a.article_id]
        return max(ids) if ids else None

    async def article_id_exists(self, article_number: str) -> bool:
        return any(a.article_id == article_number for a in self._articles.values())

    async def count_by_section(self, section_id: str, include_hidden: bool = True) -> int:
        return sum(
            1
            for a in self._articles.values()
            if section_id in a.section_ids and (include_hidden or not a.hidden)
        )

    async def pull_section(self, section_id: str) -> int:
        modified = 0
        for article in self._articles.values():
            if article.detach_section(section_id):
                modified += 1
        return modified

    async def get_expired(self, now: datetime) -> list[Article]:
        return [copy.deepcopy(a) for a in self._articles.values() if a.is_expired(now)]

    async def create(self, article: Article) -> Article:
        self._articles[article.id] = copy.deepcopy(article)
        return copy.deepcopy(article)

    async def update(self, article: Article) -> Article:
        if article.id not in self._articles:
            raise ValueError(f"Article {article.id} not found")
        self._articles[article.id] = copy.deepcopy(article)
        return copy.deepcopy(article)

    async def delete(self, article_id: str) -> bool:
        return self._articles.pop(article_id, None) is not None


class FakeCommentStore(CommentStore):
    def __init__(self):
        self.comments: dict[str, str] = {}  # comment id -> article id
        self.failing_articles: set[str] = set()

    async def delete_by_article(self, article_id: str) -> int:
        if article_id in self.failing_articles:
            raise RuntimeError(f"comment store rejected {article_id}")
        doomed = [cid for cid, aid in self.comments.items() if aid == article_id]
        for cid in doomed:
            del self.comments[cid]
        return len(doomed)


class FakeFileStorage(FileStorage):
    def __init__(self, filenames: set[str] | None = None):
        self.files: set[str] = set(filenames or ())
        self.deleted: list[str] = []
        self.broken: set[str] = set()

    async def delete_file(self, filename: str) -> bool:
        self.deleted.append(filename)
        if filename in self.broken:
            raise PermissionError(f"cannot unlink {filename}")
        if filename not in self.files:
            return False
        self.files.discard(filename)
        return True


# ── Users ────────────────────────────────────────────────────────────


@pytest.fixture
def admin() -> ActingUser:
    return ActingUser(id="u-admin", email="Admin@Example.com", role="admin")


@pytest.fixture
def author() -> ActingUser:
    return ActingUser(id="u-author", email="author@example.com", role="user")


@pytest.fixture
def reader() -> ActingUser:
    return ActingUser(id="u-reader", email="reader@example.com", role="user")


# ── Wiring ───────────────────────────────────────────────────────────


@pytest.fixture
def section_repo() -> FakeSectionRepository:
    return FakeSectionRepository()


@pytest.fixture
def article_repo() -> FakeArticleRepository:
    return FakeArticleRepository()


@pytest.fixture
def comment_store() -> FakeCommentStore:
    return FakeCommentStore()


@pytest.fixture
def file_storage() -> FakeFileStorage:
    return FakeFileStorage()


@pytest.fixture
def coordinator(section_repo, article_repo, file_storage, comment_store) -> ConsistencyCoordinator:
    return ConsistencyCoordinator(
        section_repository=section_repo,
        article_repository=article_repo,
        file_storage=file_storage,
        comment_store=comment_store,
    )


@pytest.fixture
def section_service(section_repo, article_repo, coordinator) -> SectionService:
    return SectionService(section_repo, article_repo, coordinator)


@pytest.fixture
def article_service(article_repo, section_repo, coordinator) -> ArticleService:
    return ArticleService(
        repository=article_repo,
        section_repository=section_repo,
        id_allocator=ArticleIdAllocator(article_repo),
        coordinator=coordinator,
        flash_section_name="Flash Information",
    )


@pytest.fixture
def add_section(section_repo):
    """Store a section directly, bypassing the service's admin checks."""

    async def _add(name: str, *, order: int = 0, parent_id: str | None = None, is_active: bool = True) -> Section:
        slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
        section = Section(
            name=name,
            created_by="u-admin",
            slug=slug,
            order=order,
            parent_id=parent_id,
            is_active=is_active,
        )
        return await section_repo.create(section)

    return _add


@pytest.fixture
def add_article(article_repo):
    """Store an article directly with the given sections."""
    counter = iter(range(100, 100_000))

    async def _add(section_ids: list[str], *, hidden: bool = False, **fields) -> Article:
        article = Article(
            title=fields.pop("title", "Article"),
            content=fields.pop("content", "Body"),
            author_id=fields.pop("author_id", "u-author"),
            section_ids=list(section_ids),
            article_id=f"AN-{next(counter):05d}",
            hidden=hidden,
            **fields,
        )
        return await article_repo.create(article)

    return _add
