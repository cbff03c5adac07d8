"""Concrete Section repository backed by SQLAlchemy."""

import re
from datetime import datetime, timezone

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.interfaces import SectionRepository
from app.domain.entities import Section
from app.domain.exceptions import DuplicateEntityError
from app.infrastructure.database.models import SectionModel


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class SQLAlchemySectionRepository(SectionRepository):
    """Implements the SectionRepository port using SQLAlchemy async sessions."""

    def __init__(self, session: AsyncSession):
        self._session = session

    def _to_entity(self, model: SectionModel) -> Section:
        """Map ORM model → domain entity."""
        return Section(
            id=model.id,
            name=model.name,
            slug=model.slug,
            description=model.description,
            icon=model.icon,
            order=model.order,
            parent_id=model.parent_id,
            is_active=model.is_active,
            created_by=model.created_by,
            article_count=model.article_count,
            created_at=_as_utc(model.created_at),
            updated_at=_as_utc(model.updated_at),
        )

    def _to_model(self, entity: Section) -> SectionModel:
        """Map domain entity → ORM model (for creation)."""
        return SectionModel(
            id=entity.id,
            name=entity.name,
            slug=entity.slug,
            description=entity.description,
            icon=entity.icon,
            order=entity.order,
            parent_id=entity.parent_id,
            is_active=entity.is_active,
            created_by=entity.created_by,
            article_count=entity.article_count,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    def _sorted(self, stmt):
        return stmt.order_by(SectionModel.order, SectionModel.name)

    async def _flush(self, slug: str) -> None:
        try:
            await self._session.flush()
        except IntegrityError as exc:
            raise DuplicateEntityError("Section", "slug", slug) from exc

    # ── Read Operations ──────────────────────────────────────────────

    async def get_by_id(self, section_id: str) -> Section | None:
        model = await self._session.get(SectionModel, section_id)
        return self._to_entity(model) if model else None

    async def get_by_ids(self, section_ids: list[str]) -> list[Section]:
        if not section_ids:
            return []
        result = await self._session.execute(
            select(SectionModel).where(SectionModel.id.in_(section_ids))
        )
        return [self._to_entity(m) for m in result.scalars().all()]

    async def get_by_slug(self, slug: str) -> Section | None:
        result = await self._session.execute(select(SectionModel).where(SectionModel.slug == slug))
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_all(self, *, active_only: bool = False) -> list[Section]:
        stmt = select(SectionModel)
        if active_only:
            stmt = stmt.where(SectionModel.is_active.is_(True))
        result = await self._session.execute(self._sorted(stmt))
        return [self._to_entity(m) for m in result.scalars().all()]

    async def get_children(self, parent_id: str | None) -> list[Section]:
        if parent_id is None:
            stmt = select(SectionModel).where(SectionModel.parent_id.is_(None))
        else:
            stmt = select(SectionModel).where(SectionModel.parent_id == parent_id)
        result = await self._session.execute(self._sorted(stmt))
        return [self._to_entity(m) for m in result.scalars().all()]

    async def count_children(self, section_id: str) -> int:
        result = await self._session.execute(
            select(func.count()).select_from(SectionModel).where(SectionModel.parent_id == section_id)
        )
        return result.scalar_one()

    async def find_slugs_with_prefix(self, base_slug: str, exclude_id: str | None = None) -> set[str]:
        stmt = select(SectionModel.slug).where(
            or_(SectionModel.slug == base_slug, SectionModel.slug.startswith(f"{base_slug}-", autoescape=True))
        )
        if exclude_id is not None:
            stmt = stmt.where(SectionModel.id != exclude_id)
        result = await self._session.execute(stmt)
        numbered = re.compile(rf"^{re.escape(base_slug)}(-\d+)?$")
        return {slug for slug in result.scalars().all() if numbered.match(slug)}

    # ── Write Operations ─────────────────────────────────────────────

    async def create(self, section: Section) -> Section:
        model = self._to_model(section)
        self._session.add(model)
        await self._flush(section.slug)
        return self._to_entity(model)

    async def update(self, section: Section) -> Section:
        model = await self._session.get(SectionModel, section.id)
        if model is None:
            raise ValueError(f"Section {section.id} not found in database")
        model.name = section.name
        model.slug = section.slug
        model.description = section.description
        model.icon = section.icon
        model.order = section.order
        model.parent_id = section.parent_id
        model.is_active = section.is_active
        model.updated_at = section.updated_at
        await self._flush(section.slug)
        return self._to_entity(model)

    async def set_article_count(self, section_id: str, count: int) -> None:
        await self._session.execute(
            update(SectionModel).where(SectionModel.id == section_id).values(article_count=count)
        )

    async def delete(self, section_id: str) -> bool:
        result = await self._session.execute(delete(SectionModel).where(SectionModel.id == section_id))
        return result.rowcount > 0
