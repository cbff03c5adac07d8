"""Application service (use case) for Article operations."""

import logging

from app.application.interfaces import ArticleRepository, SectionRepository
from app.application.schemas import ArticleCreate, ArticleUpdate
from app.application.services.article_id_allocator import ArticleIdAllocator
from app.application.services.consistency_coordinator import ConsistencyCoordinator
from app.domain.entities import ARTICLE_ID_PATTERN, ActingUser, Article, ArticleFile
from app.domain.exceptions import (
    DomainValidationError,
    EntityNotFoundError,
    PermissionDeniedError,
)
from app.domain.search import SearchField, is_genuine_match
from app.domain.tags import normalize_tags

logger = logging.getLogger(__name__)

DEFAULT_FLASH_SECTION_NAME = "Flash Information"


class ArticleService:
    """Orchestrates article business logic. Depends on the repository ports (DI)."""

    def __init__(
        self,
        repository: ArticleRepository,
        section_repository: SectionRepository,
        id_allocator: ArticleIdAllocator,
        coordinator: ConsistencyCoordinator,
        flash_section_name: str = DEFAULT_FLASH_SECTION_NAME,
    ):
        self._repository = repository
        self._sections = section_repository
        self._ids = id_allocator
        self._coordinator = coordinator
        self._flash_section_name = flash_section_name

    # ── Queries ──────────────────────────────────────────────────────

    async def get_article(self, article_id: str, viewer: ActingUser | None = None) -> Article:
        """Fetch an article; a viewer's visit is recorded as a view and a read."""
        article = await self._repository.get_by_id(article_id)
        if article is None:
            raise EntityNotFoundError("Article", article_id)

        if viewer is not None:
            if article.track_view(viewer.id):
                logger.debug("First view of %s by %s", article.article_id, viewer.id)
            article.mark_as_read(viewer.id)
            article = await self._repository.update(article)
        return article

    async def get_by_article_id(self, article_number: str) -> Article:
        if not ARTICLE_ID_PATTERN.match(article_number):
            raise DomainValidationError(
                "Invalid article ID format. Expected AN-XXXXX", field="article_id"
            )
        article = await self._repository.get_by_article_id(article_number)
        if article is None:
            raise EntityNotFoundError("Article", article_number)
        return article

    async def list_articles(
        self, page: int = 1, limit: int = 15, include_hidden: bool = False
    ) -> list[Article]:
        skip = (max(page, 1) - 1) * limit
        return await self._repository.get_all(skip=skip, limit=limit, include_hidden=include_hidden)

    async def find_by_tag(self, tag: str, page: int = 1, limit: int = 15) -> list[Article]:
        needle = tag.strip().lower()
        if not needle:
            raise DomainValidationError("Tag is required", field="tag")
        skip = (max(page, 1) - 1) * limit
        return await self._repository.find_by_tag(needle, skip=skip, limit=limit)

    async def search(
        self, query: str, field: str = SearchField.ALL.value, viewer: ActingUser | None = None
    ) -> list[Article]:
        """Search titles, bodies and tags; hidden articles are only shown to admins."""
        term = (query or "").strip()
        if not term:
            raise DomainValidationError("Search term is required", field="q")
        try:
            search_field = SearchField(field)
        except ValueError:
            raise DomainValidationError(
                f"Invalid search filter: {field}. Expected one of: "
                + ", ".join(f.value for f in SearchField),
                field="filter",
            ) from None

        include_hidden = viewer is not None and viewer.is_admin
        articles = await self._repository.search(term, search_field, include_hidden=include_hidden)
        if search_field in (SearchField.ALL, SearchField.CONTENT):
            articles = [a for a in articles if is_genuine_match(a, term)]
        logger.debug("Search %r (%s) matched %d articles", term, search_field.value, len(articles))
        return articles

    async def popular_tags(self, limit: int = 10) -> list[tuple[str, int]]:
        return await self._repository.popular_tags(limit=limit)

    # ── Commands ─────────────────────────────────────────────────────

    async def create_article(self, data: ArticleCreate, acting_user: ActingUser) -> Article:
        title = data.title.strip()
        if not title:
            raise DomainValidationError("Title is required", field="title")

        section_ids = list(dict.fromkeys(data.section_ids))
        await self._validate_sections(section_ids, data.temporary_duration)

        article = Article(
            title=title,
            content=data.content,
            author_id=acting_user.id,
            section_ids=section_ids,
            files=[ArticleFile(**f.model_dump()) for f in data.files],
            tags=normalize_tags(data.tags),
        )
        if data.temporary_duration:
            article.set_expiration(data.temporary_duration)

        article.article_id = await self._ids.allocate()
        article.last_content_update = article.created_at

        created = await self._repository.create(article)
        await self._coordinator.refresh_article_counts(created.section_ids)
        logger.info("Article %s created by %s", created.article_id, acting_user.email)
        return created

    async def update_article(self, article_id: str, data: ArticleUpdate, acting_user: ActingUser) -> Article:
        article = await self._get_editable(article_id, acting_user)
        previous_sections = list(article.section_ids)

        title = data.title.strip() if data.title is not None else None
        if title is not None and not title:
            raise DomainValidationError("Title is required", field="title")

        new_sections = article.section_ids
        if data.section_ids is not None:
            new_sections = list(dict.fromkeys(data.section_ids))
        if data.is_temporary and not data.temporary_duration and not article.is_temporary:
            raise DomainValidationError(
                "A temporary duration is required to make an article temporary",
                field="temporary_duration",
            )

        duration = data.temporary_duration
        if duration is None and data.is_temporary is not False and article.is_temporary:
            duration = article.temporary_duration.value if article.temporary_duration else None
        await self._validate_sections(new_sections, duration)

        # Expiration first so an invalid duration leaves the article untouched
        if data.temporary_duration:
            article.set_expiration(data.temporary_duration)
        elif data.is_temporary is False:
            article.clear_expiration()

        files = [ArticleFile(**f.model_dump()) for f in data.files] if data.files is not None else None
        if article.update(title=title, content=data.content, files=files):
            logger.debug("Content of %s changed", article.article_id)
        if data.section_ids is not None:
            article.assign_sections(new_sections)
        if data.tags is not None:
            article.set_tags(data.tags)

        updated = await self._repository.update(article)
        await self._coordinator.refresh_article_counts([*previous_sections, *updated.section_ids])
        return updated

    async def toggle_visibility(self, article_id: str, acting_user: ActingUser) -> Article:
        article = await self._get_editable(article_id, acting_user)
        hidden = article.toggle_hidden()
        updated = await self._repository.update(article)
        await self._coordinator.refresh_article_counts(updated.section_ids)
        logger.info("Article %s is now %s", updated.article_id, "hidden" if hidden else "visible")
        return updated

    async def mark_as_read(self, article_id: str, user: ActingUser) -> Article:
        article = await self._repository.get_by_id(article_id)
        if article is None:
            raise EntityNotFoundError("Article", article_id)
        article.mark_as_read(user.id)
        return await self._repository.update(article)

    async def set_auto_tags(self, article_id: str, tags: list[str]) -> Article:
        article = await self._repository.get_by_id(article_id)
        if article is None:
            raise EntityNotFoundError("Article", article_id)
        article.set_auto_tags(tags)
        return await self._repository.update(article)

    async def delete_file(self, article_id: str, filename: str, acting_user: ActingUser) -> Article:
        """Remove one attachment from storage and from the article."""
        article = await self._get_editable(article_id, acting_user)
        if article.remove_file(filename) is None:
            raise EntityNotFoundError("File", filename)
        await self._coordinator.delete_stored_file(filename)
        updated = await self._repository.update(article)
        logger.info("Attachment %s removed from %s by %s", filename, updated.article_id, acting_user.email)
        return updated

    async def bulk_set_visibility(self, article_ids: list[str], hidden: bool, acting_user: ActingUser) -> int:
        articles = await self._get_bulk(article_ids, acting_user)
        for article in articles:
            article.hidden = hidden
            await self._repository.update(article)
        await self._coordinator.refresh_article_counts(s for a in articles for s in a.section_ids)
        logger.info(
            "%s %s %d articles", acting_user.email, "hid" if hidden else "unhid", len(articles)
        )
        return len(articles)

    async def bulk_delete(self, article_ids: list[str], acting_user: ActingUser) -> int:
        articles = await self._get_bulk(article_ids, acting_user)
        for article in articles:
            await self._coordinator.delete_article(article)
        logger.info("%s deleted %d articles", acting_user.email, len(articles))
        return len(articles)

    async def delete_article(self, article_id: str, acting_user: ActingUser) -> Article:
        article = await self._repository.get_by_id(article_id)
        if article is None:
            raise EntityNotFoundError("Article", article_id)
        if not article.can_delete(acting_user):
            raise PermissionDeniedError("Not authorized to delete this article")
        await self._coordinator.delete_article(article)
        return article

    # ── Helpers ──────────────────────────────────────────────────────

    async def _get_editable(self, article_id: str, acting_user: ActingUser) -> Article:
        article = await self._repository.get_by_id(article_id)
        if article is None:
            raise EntityNotFoundError("Article", article_id)
        if not article.can_edit(acting_user):
            raise PermissionDeniedError("Not authorized to edit this article")
        return article

    async def _get_bulk(self, article_ids: list[str], acting_user: ActingUser) -> list[Article]:
        """All-or-nothing lookup for admin bulk operations."""
        if not acting_user.is_admin:
            raise PermissionDeniedError("Only administrators can modify articles in bulk")
        unique_ids = list(dict.fromkeys(article_ids))
        if not unique_ids:
            raise DomainValidationError("No articles specified", field="article_ids")
        articles = await self._repository.get_by_ids(unique_ids)
        if len(articles) != len(unique_ids):
            raise DomainValidationError("One or more articles not found", field="article_ids")
        return articles

    async def _validate_sections(self, section_ids: list[str], temporary_duration: str | None) -> None:
        """Every section must exist and be active; the flash section demands an expiry."""
        if not section_ids:
            raise DomainValidationError("At least one section is required", field="section_ids")

        sections = await self._sections.get_by_ids(section_ids)
        found = {s.id: s for s in sections}
        missing = [sid for sid in section_ids if sid not in found]
        if missing:
            raise DomainValidationError(
                f"Invalid or inactive sections: {', '.join(missing)}", field="section_ids"
            )
        inactive = [s.id for s in sections if not s.is_active]
        if inactive:
            raise DomainValidationError(
                f"Invalid or inactive sections: {', '.join(inactive)}", field="section_ids"
            )

        if not temporary_duration and any(s.name == self._flash_section_name for s in sections):
            raise DomainValidationError(
                f'Articles in "{self._flash_section_name}" section must have a temporary duration',
                field="temporary_duration",
            )
