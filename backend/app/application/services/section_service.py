"""Application service (use case) for Section operations."""

import logging

from app.application.interfaces import ArticleRepository, SectionRepository
from app.application.schemas import SectionCreate, SectionUpdate
from app.application.services.consistency_coordinator import ConsistencyCoordinator
from app.application.services.slug_generator import SlugGenerator
from app.domain.entities import ActingUser, Article, Section
from app.domain.entities.section import DEFAULT_ICON
from app.domain.exceptions import (
    DomainValidationError,
    EntityNotFoundError,
    PermissionDeniedError,
)

logger = logging.getLogger(__name__)

GENERAL_SECTION_NAME = "General"
GENERAL_SECTION_SLUG = "general"
# Roots, their children and grandchildren get populated ``children``
TREE_DEPTH = 2


class SectionService:
    """Orchestrates section business logic. Cross-entity work is delegated to the coordinator."""

    def __init__(
        self,
        repository: SectionRepository,
        article_repository: ArticleRepository,
        coordinator: ConsistencyCoordinator,
    ):
        self._repository = repository
        self._articles = article_repository
        self._coordinator = coordinator
        self._slugs = SlugGenerator(repository)

    @staticmethod
    def _require_admin(acting_user: ActingUser) -> None:
        if not acting_user.is_admin:
            raise PermissionDeniedError("Only administrators can manage sections")

    # ── Queries ──────────────────────────────────────────────────────

    async def get_section(self, section_id: str) -> Section:
        section = await self._repository.get_by_id(section_id)
        if section is None:
            raise EntityNotFoundError("Section", section_id)
        return section

    async def list_sections(
        self, acting_user: ActingUser | None = None, include_inactive: bool = False
    ) -> list[Section]:
        """Admins asking for the admin view see everything; everyone else sees active sections."""
        show_all = include_inactive and acting_user is not None and acting_user.is_admin
        return await self._repository.get_all(active_only=not show_all)

    async def list_navigation_sections(self) -> list[Section]:
        return await self._repository.get_all(active_only=True)

    async def get_tree(self) -> list[Section]:
        """Root sections with two populated levels of children beneath them."""
        sections = await self._repository.get_all()
        by_parent: dict[str | None, list[Section]] = {}
        for section in sections:
            section.children = []
            by_parent.setdefault(section.parent_id, []).append(section)

        def attach(nodes: list[Section], depth: int) -> None:
            if depth > TREE_DEPTH:
                return
            for node in nodes:
                node.children = by_parent.get(node.id, [])
                attach(node.children, depth + 1)

        roots = by_parent.get(None, [])
        attach(roots, 1)
        return roots

    async def list_section_articles(self, section_id: str, page: int = 1, limit: int = 15) -> list[Article]:
        await self.get_section(section_id)
        skip = (max(page, 1) - 1) * limit
        return await self._articles.get_by_section(section_id, skip=skip, limit=limit)

    # ── Commands ─────────────────────────────────────────────────────

    async def create_section(self, data: SectionCreate, acting_user: ActingUser) -> Section:
        self._require_admin(acting_user)
        name = data.name.strip()
        if not name:
            raise DomainValidationError("Section name is required", field="name")

        parent_id = data.parent_id or None
        if parent_id is not None:
            await self._require_parent(parent_id)

        section = Section(
            name=name,
            created_by=acting_user.id,
            description=data.description.strip(),
            icon=data.icon or DEFAULT_ICON,
            order=data.order,
            parent_id=parent_id,
        )
        section.slug = await self._slugs.generate(name)
        created = await self._repository.create(section)
        logger.info("Section created: '%s' (slug=%s) by %s", created.name, created.slug, acting_user.email)
        return created

    async def update_section(self, section_id: str, data: SectionUpdate, acting_user: ActingUser) -> Section:
        self._require_admin(acting_user)
        section = await self.get_section(section_id)

        if data.name is not None and not data.name.strip():
            raise DomainValidationError("Section name is required", field="name")

        changes: dict = {}
        if "parent_id" in data.model_fields_set:
            new_parent = data.parent_id or None
            if new_parent is not None:
                await self._check_parent_assignment(section.id, new_parent)
            changes["parent_id"] = new_parent

        name_changed = section.update(
            name=data.name,
            description=data.description,
            icon=data.icon,
            order=data.order,
            is_active=data.is_active,
            **changes,
        )
        if name_changed:
            section.slug = await self._slugs.generate(section.name, exclude_id=section.id)

        return await self._repository.update(section)

    async def toggle_active(self, section_id: str, acting_user: ActingUser) -> Section:
        self._require_admin(acting_user)
        section = await self.get_section(section_id)
        is_active = section.toggle_active()
        logger.info("Section '%s' is now %s", section.name, "active" if is_active else "inactive")
        return await self._repository.update(section)

    async def ensure_general_section(self, acting_user: ActingUser) -> Section:
        """Create the default ``General`` section unless it already exists."""
        self._require_admin(acting_user)
        existing = await self._repository.get_by_slug(GENERAL_SECTION_SLUG)
        if existing is not None:
            return existing

        section = Section(
            name=GENERAL_SECTION_NAME,
            created_by=acting_user.id,
            slug=GENERAL_SECTION_SLUG,
            description="General articles and information",
            icon=DEFAULT_ICON,
            order=0,
        )
        logger.info("Initializing default section '%s'", GENERAL_SECTION_NAME)
        return await self._repository.create(section)

    async def delete_section(
        self, section_id: str, acting_user: ActingUser, confirm_email: str | None
    ) -> Section:
        self._require_admin(acting_user)
        return await self._coordinator.delete_section(section_id, acting_user, confirm_email)

    async def reorder_section(self, section_id: str, direction: str, acting_user: ActingUser) -> list[Section]:
        self._require_admin(acting_user)
        await self._coordinator.reorder_section(section_id, direction)
        section = await self.get_section(section_id)
        return await self._repository.get_children(section.parent_id)

    async def rebuild_article_counts(self, acting_user: ActingUser) -> int:
        self._require_admin(acting_user)
        return await self._coordinator.rebuild_all_article_counts()

    # ── Helpers ──────────────────────────────────────────────────────

    async def _require_parent(self, parent_id: str) -> Section:
        parent = await self._repository.get_by_id(parent_id)
        if parent is None:
            raise DomainValidationError(f"Parent section {parent_id} does not exist", field="parent_id")
        return parent

    async def _check_parent_assignment(self, section_id: str, parent_id: str) -> None:
        """Reject self-parenting and any assignment that would close a cycle."""
        if parent_id == section_id:
            raise DomainValidationError("A section cannot be its own parent", field="parent_id")

        current: Section | None = await self._require_parent(parent_id)
        visited: set[str] = set()
        while current is not None and current.parent_id is not None:
            if current.parent_id == section_id:
                raise DomainValidationError(
                    "Cannot move a section beneath one of its descendants", field="parent_id"
                )
            if current.id in visited:
                break
            visited.add(current.id)
            current = await self._repository.get_by_id(current.parent_id)
