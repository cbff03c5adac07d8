"""Abstract repository interfaces (ports) — define the contract, not the implementation."""

from abc import ABC, abstractmethod
from datetime import datetime

from app.domain.entities import Article
from app.domain.search import SearchField


class ArticleRepository(ABC):
    """Port for article persistence — implemented in the infrastructure layer."""

    @abstractmethod
    async def get_by_id(self, article_id: str) -> Article | None:
        """Retrieve a single article by its storage ID."""
        ...

    @abstractmethod
    async def get_by_article_id(self, article_number: str) -> Article | None:
        """Retrieve a single article by its ``AN-XXXXX`` number."""
        ...

    @abstractmethod
    async def get_by_ids(self, article_ids: list[str]) -> list[Article]:
        """Articles with the given storage IDs; unknown IDs are skipped."""
        ...

    @abstractmethod
    async def get_all(
        self, skip: int = 0, limit: int = 100, include_hidden: bool = False
    ) -> list[Article]:
        """Retrieve a paginated list of articles, highest article number first."""
        ...

    @abstractmethod
    async def get_by_section(self, section_id: str, skip: int = 0, limit: int = 15) -> list[Article]:
        """Non-hidden articles referencing a section, newest first."""
        ...

    @abstractmethod
    async def find_by_tag(self, tag: str, skip: int = 0, limit: int = 15) -> list[Article]:
        """Articles carrying *tag* as a manual or automatic tag, newest first."""
        ...

    @abstractmethod
    async def search(
        self, term: str, field: SearchField = SearchField.ALL, include_hidden: bool = False, limit: int = 100
    ) -> list[Article]:
        """Case-insensitive substring search (exact tag match for TAG), newest first."""
        ...

    @abstractmethod
    async def popular_tags(self, limit: int = 10) -> list[tuple[str, int]]:
        """Most used tags (manual and automatic combined) with their counts."""
        ...

    @abstractmethod
    async def get_highest_article_id(self) -> str | None:
        """The lexicographically highest ``article_id`` in the store."""
        ...

    @abstractmethod
    async def article_id_exists(self, article_number: str) -> bool:
        ...

    @abstractmethod
    async def count_by_section(self, section_id: str, include_hidden: bool = True) -> int:
        ...

    @abstractmethod
    async def pull_section(self, section_id: str) -> int:
        """Remove *section_id* from every article's sections. Returns articles modified."""
        ...

    @abstractmethod
    async def get_expired(self, now: datetime) -> list[Article]:
        """Temporary articles whose ``expires_at`` is at or before *now*."""
        ...

    @abstractmethod
    async def create(self, article: Article) -> Article:
        """Persist a new article and return it."""
        ...

    @abstractmethod
    async def update(self, article: Article) -> Article:
        """Update an existing article."""
        ...

    @abstractmethod
    async def delete(self, article_id: str) -> bool:
        """Delete an article. Returns True if deleted, False if not found."""
        ...
