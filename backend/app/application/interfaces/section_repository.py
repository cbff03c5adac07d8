"""Abstract repository interface (port) for Section persistence."""

from abc import ABC, abstractmethod

from app.domain.entities import Section


class SectionRepository(ABC):
    """Port for the section tree store — implemented in the infrastructure layer."""

    @abstractmethod
    async def get_by_id(self, section_id: str) -> Section | None:
        """Retrieve a single section by its ID."""
        ...

    @abstractmethod
    async def get_by_ids(self, section_ids: list[str]) -> list[Section]:
        """Retrieve every existing section among *section_ids* (missing ids are skipped)."""
        ...

    @abstractmethod
    async def get_by_slug(self, slug: str) -> Section | None:
        ...

    @abstractmethod
    async def get_all(self, *, active_only: bool = False) -> list[Section]:
        """All sections sorted by order then name."""
        ...

    @abstractmethod
    async def get_children(self, parent_id: str | None) -> list[Section]:
        """Direct children of *parent_id* (roots when None), sorted by order then name."""
        ...

    @abstractmethod
    async def count_children(self, section_id: str) -> int:
        ...

    @abstractmethod
    async def find_slugs_with_prefix(self, base_slug: str, exclude_id: str | None = None) -> set[str]:
        """Slugs equal to *base_slug* or shaped like ``base_slug-N``, excluding one section."""
        ...

    @abstractmethod
    async def create(self, section: Section) -> Section:
        ...

    @abstractmethod
    async def update(self, section: Section) -> Section:
        ...

    @abstractmethod
    async def set_article_count(self, section_id: str, count: int) -> None:
        """Write only the denormalized counter, leaving other fields untouched."""
        ...

    @abstractmethod
    async def delete(self, section_id: str) -> bool:
        """Delete a section. Returns True if deleted, False if not found."""
        ...
