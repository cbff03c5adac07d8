"""Concrete Article repository backed by SQLAlchemy."""

from datetime import datetime, timezone

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.interfaces import ArticleRepository
from app.domain.entities import Article, ArticleFile, ArticleRead, ArticleView
from app.domain.exceptions import DuplicateEntityError
from app.domain.expiration import TemporaryDuration
from app.domain.search import SearchField
from app.infrastructure.database.models import ArticleModel, ArticleSectionModel, ArticleTagModel


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes
    if value is None or value.tzinfo:
        return value
    return value.replace(tzinfo=timezone.utc)


def _parse_ts(raw: str) -> datetime:
    return _as_utc(datetime.fromisoformat(raw))


class SQLAlchemyArticleRepository(ArticleRepository):
    """Implements the ArticleRepository port using SQLAlchemy async sessions."""

    def __init__(self, session: AsyncSession):
        self._session = session

    def _to_entity(self, model: ArticleModel) -> Article:
        """Map ORM model → domain entity."""
        return Article(
            id=model.id,
            article_id=model.article_id,
            title=model.title,
            content=model.content,
            author_id=model.author_id,
            section_ids=[link.section_id for link in model.section_links],
            files=[ArticleFile(**f) for f in model.files or []],
            tags=[t.tag for t in model.tag_links if not t.is_auto],
            auto_tags=[t.tag for t in model.tag_links if t.is_auto],
            tags_extracted_at=_as_utc(model.tags_extracted_at),
            tag_extraction_version=model.tag_extraction_version,
            is_temporary=model.is_temporary,
            expires_at=_as_utc(model.expires_at),
            temporary_duration=TemporaryDuration(model.temporary_duration) if model.temporary_duration else None,
            views=model.views,
            viewed_by=[ArticleView(user_id=v["user_id"], timestamp=_parse_ts(v["timestamp"])) for v in model.viewed_by or []],
            reads=[ArticleRead(user_id=r["user_id"], read_at=_parse_ts(r["read_at"])) for r in model.reads or []],
            hidden=model.hidden,
            comment_ids=[c.id for c in model.comments],
            last_content_update=_as_utc(model.last_content_update),
            created_at=_as_utc(model.created_at),
            updated_at=_as_utc(model.updated_at),
        )

    def _to_model(self, entity: Article) -> ArticleModel:
        """Map domain entity → ORM model (for creation)."""
        model = ArticleModel(id=entity.id, created_at=entity.created_at)
        self._apply(model, entity)
        return model

    def _apply(self, model: ArticleModel, entity: Article) -> None:
        """Copy mutable state onto *model*. JSON columns always get fresh lists."""
        model.article_id = entity.article_id
        model.title = entity.title
        model.content = entity.content
        model.author_id = entity.author_id
        model.files = [f.to_dict() for f in entity.files]
        model.tags_extracted_at = entity.tags_extracted_at
        model.tag_extraction_version = entity.tag_extraction_version
        model.is_temporary = entity.is_temporary
        model.expires_at = entity.expires_at
        model.temporary_duration = entity.temporary_duration.value if entity.temporary_duration else None
        model.views = entity.views
        model.viewed_by = [{"user_id": v.user_id, "timestamp": v.timestamp.isoformat()} for v in entity.viewed_by]
        model.reads = [{"user_id": r.user_id, "read_at": r.read_at.isoformat()} for r in entity.reads]
        model.hidden = entity.hidden
        model.last_content_update = entity.last_content_update
        model.updated_at = entity.updated_at
        self._sync_sections(model, entity.section_ids)
        self._sync_tags(model, entity.tags, entity.auto_tags)

    @staticmethod
    def _sync_sections(model: ArticleModel, section_ids: list[str]) -> None:
        existing = {link.section_id: link for link in model.section_links or []}
        links = []
        for position, section_id in enumerate(section_ids):
            link = existing.get(section_id) or ArticleSectionModel(section_id=section_id)
            link.position = position
            links.append(link)
        model.section_links = links

    @staticmethod
    def _sync_tags(model: ArticleModel, tags: list[str], auto_tags: list[str]) -> None:
        existing = {(t.tag, t.is_auto): t for t in model.tag_links or []}
        links = []
        for is_auto, values in ((False, tags), (True, auto_tags)):
            for position, tag in enumerate(values):
                link = existing.get((tag, is_auto)) or ArticleTagModel(tag=tag, is_auto=is_auto)
                link.position = position
                links.append(link)
        model.tag_links = links

    async def _flush(self, article: Article) -> None:
        try:
            await self._session.flush()
        except IntegrityError as exc:
            raise DuplicateEntityError("Article", "article_id", article.article_id) from exc

    @staticmethod
    def _in_section(section_id: str):
        return ArticleModel.section_links.any(ArticleSectionModel.section_id == section_id)

    # ── Read Operations ──────────────────────────────────────────────

    async def get_by_id(self, article_id: str) -> Article | None:
        model = await self._session.get(ArticleModel, article_id)
        return self._to_entity(model) if model else None

    async def get_by_article_id(self, article_number: str) -> Article | None:
        result = await self._session.execute(
            select(ArticleModel).where(ArticleModel.article_id == article_number)
        )
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_by_ids(self, article_ids: list[str]) -> list[Article]:
        if not article_ids:
            return []
        result = await self._session.execute(select(ArticleModel).where(ArticleModel.id.in_(article_ids)))
        return [self._to_entity(row) for row in result.scalars().all()]

    async def search(
        self, term: str, field: SearchField = SearchField.ALL, include_hidden: bool = False, limit: int = 100
    ) -> list[Article]:
        needle = term.strip().lower()
        pattern = "%" + needle.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_") + "%"
        title = ArticleModel.title.ilike(pattern, escape="\\")
        content = ArticleModel.content.ilike(pattern, escape="\\")
        if field is SearchField.TAG:
            condition = ArticleModel.tag_links.any(ArticleTagModel.tag == needle)
        elif field is SearchField.TITLE:
            condition = title
        elif field is SearchField.CONTENT:
            condition = content
        else:
            condition = or_(
                title,
                content,
                ArticleModel.tag_links.any(ArticleTagModel.tag.ilike(pattern, escape="\\")),
            )

        stmt = select(ArticleModel).where(condition)
        if not include_hidden:
            stmt = stmt.where(ArticleModel.hidden.is_(False))
        stmt = stmt.order_by(ArticleModel.created_at.desc()).limit(limit)
        result = await self._session.execute(stmt)
        return [self._to_entity(row) for row in result.scalars().all()]

    async def get_all(
        self, skip: int = 0, limit: int = 100, include_hidden: bool = False
    ) -> list[Article]:
        stmt = select(ArticleModel)
        if not include_hidden:
            stmt = stmt.where(ArticleModel.hidden.is_(False))
        stmt = stmt.order_by(ArticleModel.article_id.desc()).offset(skip).limit(limit)
        result = await self._session.execute(stmt)
        return [self._to_entity(row) for row in result.scalars().all()]

    async def get_by_section(self, section_id: str, skip: int = 0, limit: int = 15) -> list[Article]:
        stmt = (
            select(ArticleModel)
            .where(self._in_section(section_id), ArticleModel.hidden.is_(False))
            .order_by(ArticleModel.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(row) for row in result.scalars().all()]

    async def find_by_tag(self, tag: str, skip: int = 0, limit: int = 15) -> list[Article]:
        stmt = (
            select(ArticleModel)
            .where(ArticleModel.tag_links.any(ArticleTagModel.tag == tag.lower()))
            .order_by(ArticleModel.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(row) for row in result.scalars().all()]

    async def popular_tags(self, limit: int = 10) -> list[tuple[str, int]]:
        count = func.count(ArticleTagModel.id).label("count")
        stmt = (
            select(ArticleTagModel.tag, count)
            .group_by(ArticleTagModel.tag)
            .order_by(count.desc(), ArticleTagModel.tag)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [(tag, n) for tag, n in result.all()]

    async def get_highest_article_id(self) -> str | None:
        result = await self._session.execute(select(func.max(ArticleModel.article_id)))
        return result.scalar_one_or_none()

    async def article_id_exists(self, article_number: str) -> bool:
        result = await self._session.execute(
            select(ArticleModel.id).where(ArticleModel.article_id == article_number).limit(1)
        )
        return result.first() is not None

    async def count_by_section(self, section_id: str, include_hidden: bool = True) -> int:
        stmt = select(func.count()).select_from(ArticleModel).where(self._in_section(section_id))
        if not include_hidden:
            stmt = stmt.where(ArticleModel.hidden.is_(False))
        result = await self._session.execute(stmt)
        return result.scalar_one()

    async def get_expired(self, now: datetime) -> list[Article]:
        stmt = select(ArticleModel).where(
            ArticleModel.is_temporary.is_(True),
            ArticleModel.expires_at.is_not(None),
            ArticleModel.expires_at <= now,
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(row) for row in result.scalars().all()]

    # ── Write Operations ─────────────────────────────────────────────

    async def pull_section(self, section_id: str) -> int:
        result = await self._session.execute(select(ArticleModel).where(self._in_section(section_id)))
        models = result.scalars().all()
        for model in models:
            remaining = [link.section_id for link in model.section_links if link.section_id != section_id]
            self._sync_sections(model, remaining)
        await self._session.flush()
        return len(models)

    async def create(self, article: Article) -> Article:
        model = self._to_model(article)
        self._session.add(model)
        await self._flush(article)
        await self._session.refresh(model, attribute_names=["comments"])
        return self._to_entity(model)

    async def update(self, article: Article) -> Article:
        model = await self._session.get(ArticleModel, article.id)
        if model is None:
            raise ValueError(f"Article {article.id} not found in database")
        self._apply(model, article)
        await self._flush(article)
        return self._to_entity(model)

    async def delete(self, article_id: str) -> bool:
        model = await self._session.get(ArticleModel, article_id)
        if model is None:
            return False
        await self._session.delete(model)
        await self._session.flush()
        return True
