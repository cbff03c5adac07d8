"""Cross-entity orchestration between sections and articles.

Owns every operation that touches more than one document: the guarded
section deletion, the article deletion saga, sibling reordering and the
denormalized ``Section.article_count`` cache.

None of these sequences run in one transaction. Each step is idempotent,
so a retry after a partial failure converges: a section whose references
were pulled but which was not deleted passes the guard on the next attempt.
"""

import logging
from collections.abc import Iterable

from app.application.interfaces import (
    ArticleRepository,
    CommentStore,
    FileStorage,
    SectionRepository,
)
from app.domain.entities import ActingUser, Article, Section
from app.domain.exceptions import (
    DomainValidationError,
    EntityNotFoundError,
    GuardViolationError,
)
from app.infrastructure.logging.colored_logger import ConsistencyLogger, ConsistencyStage

logger = logging.getLogger(__name__)
clog = ConsistencyLogger("ConsistencyCoordinator")

REORDER_DIRECTIONS = ("up", "down")


class ConsistencyCoordinator:
    """Keeps sections and articles referentially consistent."""

    def __init__(
        self,
        section_repository: SectionRepository,
        article_repository: ArticleRepository,
        file_storage: FileStorage,
        comment_store: CommentStore,
    ):
        self._sections = section_repository
        self._articles = article_repository
        self._files = file_storage
        self._comments = comment_store

    # ── Section deletion ────────────────────────────────────────────

    async def dependency_counts(self, section_id: str) -> tuple[int, int]:
        """(referencing articles, child sections) for a section; hidden articles count."""
        articles = await self._articles.count_by_section(section_id, include_hidden=True)
        children = await self._sections.count_children(section_id)
        return articles, children

    async def can_delete(self, section_id: str) -> bool:
        articles, children = await self.dependency_counts(section_id)
        return articles == 0 and children == 0

    async def delete_section(
        self, section_id: str, acting_user: ActingUser, confirm_email: str | None
    ) -> Section:
        """Guarded deletion: confirm email, check dependents, pull references, delete."""
        if not confirm_email or not confirm_email.strip():
            raise DomainValidationError(
                "Email confirmation is required for this dangerous operation",
                field="confirm_email",
            )
        if not acting_user.email_matches(confirm_email):
            clog.step_rejected(
                ConsistencyStage.GUARD,
                "Email confirmation mismatch",
                section_id=section_id,
                user_id=acting_user.id,
            )
            raise GuardViolationError("Email confirmation does not match your account email")

        section = await self._sections.get_by_id(section_id)
        if section is None:
            raise EntityNotFoundError("Section", section_id)

        clog.step_start(ConsistencyStage.GUARD, f"Checking dependents of '{section.name}'", id=section.id)
        article_count, child_count = await self.dependency_counts(section.id)
        if article_count or child_count:
            clog.step_rejected(
                ConsistencyStage.GUARD,
                f"Cannot delete '{section.name}'",
                articles=article_count,
                children=child_count,
            )
            raise GuardViolationError(
                f'Cannot delete section "{section.name}". It contains {article_count} '
                f"article(s) and {child_count} child section(s). "
                "Please move or delete them first.",
                article_count=article_count,
                child_count=child_count,
            )

        # A concurrent writer may have attached an article since the guard ran
        pulled = await self._articles.pull_section(section.id)
        clog.step_complete(ConsistencyStage.CLEANUP, "Pulled article references", modified=pulled)

        await self._sections.delete(section.id)
        clog.step_complete(
            ConsistencyStage.DELETE,
            f"Section '{section.name}' deleted",
            slug=section.slug,
            deleted_by=acting_user.email,
        )
        return section

    # ── Article deletion ────────────────────────────────────────────

    async def delete_article(self, article: Article) -> None:
        """Files, then comments, then the article itself, then the counters."""
        clog.step_start(ConsistencyStage.DELETE, f"Deleting article {article.article_id}", id=article.id)

        for filename in article.stored_filenames:
            await self.delete_stored_file(filename)

        comments = await self._comments.delete_by_article(article.id)
        deleted = await self._articles.delete(article.id)
        await self.refresh_article_counts(article.section_ids)

        clog.step_complete(
            ConsistencyStage.DELETE,
            f"Article {article.article_id} removed",
            files=len(article.files),
            comments=comments,
            existed=deleted,
        )

    async def delete_stored_file(self, filename: str) -> bool:
        """Remove one attachment from storage. Storage failures are logged, never raised."""
        try:
            removed = await self._files.delete_file(filename)
        except Exception as exc:
            clog.step_error(ConsistencyStage.CLEANUP, f"Could not delete attachment {filename}", error=exc)
            return False
        if not removed:
            clog.detail(f"File already absent: {filename}")
        return removed

    # ── Article-count cache ─────────────────────────────────────────

    async def update_article_count(self, section_id: str) -> int | None:
        """Recompute one section's visible-article count. Never raises."""
        try:
            count = await self._articles.count_by_section(section_id, include_hidden=False)
            await self._sections.set_article_count(section_id, count)
        except Exception as exc:
            clog.step_error(ConsistencyStage.COUNT, f"Count refresh failed for section {section_id}", error=exc)
            return None
        logger.debug("Section %s article_count=%d", section_id, count)
        return count

    async def refresh_article_counts(self, section_ids: Iterable[str]) -> None:
        for section_id in dict.fromkeys(section_ids):
            await self.update_article_count(section_id)

    async def rebuild_all_article_counts(self) -> int:
        """Recompute every section's counter. Returns the number of sections visited."""
        sections = await self._sections.get_all()
        with clog.timed_step(ConsistencyStage.COUNT, "Rebuilding all article counts", sections=len(sections)):
            for section in sections:
                await self.update_article_count(section.id)
        return len(sections)

    # ── Sibling ordering ────────────────────────────────────────────

    async def reorder_section(self, section_id: str, direction: str) -> tuple[Section, Section]:
        """Swap ``order`` with the neighbouring sibling in *direction*."""
        if direction not in REORDER_DIRECTIONS:
            raise DomainValidationError("Invalid move direction", field="direction")

        section = await self._sections.get_by_id(section_id)
        if section is None:
            raise EntityNotFoundError("Section", section_id)

        siblings = await self._sections.get_children(section.parent_id)
        index = next((i for i, s in enumerate(siblings) if s.id == section.id), None)
        if index is None:
            raise EntityNotFoundError("Section", section_id)

        target = index - 1 if direction == "up" else index + 1
        if target < 0 or target >= len(siblings):
            clog.step_rejected(ConsistencyStage.REORDER, f"'{section.name}' is already at the boundary", direction=direction)
            raise DomainValidationError("Invalid move direction", field="direction")

        current = siblings[index]
        other = siblings[target]
        current.order, other.order = other.order, current.order

        await self._sections.update(current)
        await self._sections.update(other)
        clog.step_complete(
            ConsistencyStage.REORDER,
            f"Swapped '{current.name}' and '{other.name}'",
            direction=direction,
        )
        return current, other
