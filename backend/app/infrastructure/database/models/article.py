"""SQLAlchemy ORM models for the Article entity and its child rows.

Section references and tags are ordered child rows rather than arrays so
that "every article in section X" and "every article tagged Y" are indexed
lookups. Section references deliberately carry no foreign key: removing
them is the job of the section deletion protocol, not of the database.
"""

from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.infrastructure.database.base import Base


class ArticleModel(Base):
    """ORM model — maps to the 'articles' table."""

    __tablename__ = "articles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    article_id: Mapped[str | None] = mapped_column(String(8), nullable=True, unique=True, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    # [{originalname, filename, path, mimetype}]
    files: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    tags_extracted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    tag_extraction_version: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_temporary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)
    temporary_duration: Mapped[str | None] = mapped_column(String(3), nullable=True)
    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # [{user_id, timestamp}] / [{user_id, read_at}], ISO timestamps
    viewed_by: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    reads: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    hidden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_content_update: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    section_links = relationship(
        "ArticleSectionModel",
        back_populates="article",
        cascade="all, delete-orphan",
        order_by="ArticleSectionModel.position",
        lazy="selectin",
    )
    tag_links = relationship(
        "ArticleTagModel",
        back_populates="article",
        cascade="all, delete-orphan",
        order_by="ArticleTagModel.position",
        lazy="selectin",
    )
    # Comments are purged explicitly by the deletion saga
    comments = relationship("CommentModel", viewonly=True, lazy="selectin")

    def __repr__(self) -> str:
        return f"<ArticleModel(id={self.id}, article_id='{self.article_id}')>"


class ArticleSectionModel(Base):
    """One section reference of an article, in the author's order."""

    __tablename__ = "article_sections"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    article_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("articles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    section_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    article = relationship("ArticleModel", back_populates="section_links")


class ArticleTagModel(Base):
    """A manual (``is_auto=False``) or extracted (``is_auto=True``) tag."""

    __tablename__ = "article_tags"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    article_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("articles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    tag: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    is_auto: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    article = relationship("ArticleModel", back_populates="tag_links")
