"""FastAPI dependency injection — wires infrastructure to application layer."""

from collections.abc import AsyncGenerator

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.application.services import (
    ArticleIdAllocator,
    ArticleService,
    ConsistencyCoordinator,
    ExpirationSweeper,
    SectionService,
)
from app.domain.entities import ActingUser
from app.infrastructure.database.session import get_db_session
from app.infrastructure.database.repositories import (
    SQLAlchemyArticleRepository,
    SQLAlchemyCommentStore,
    SQLAlchemySectionRepository,
)
from app.infrastructure.storage.local_file_storage import LocalFileStorage


# ── Acting user ──────────────────────────────────────────────────────


async def get_optional_user(
    x_user_id: str | None = Header(None),
    x_user_email: str | None = Header(None),
    x_user_role: str | None = Header(None),
) -> ActingUser | None:
    """Identity forwarded by the upstream auth layer, or None for anonymous calls."""
    if not x_user_id or not x_user_email:
        return None
    return ActingUser(id=x_user_id, email=x_user_email, role=(x_user_role or "user").lower())


async def get_current_user(
    user: ActingUser | None = Depends(get_optional_user),
) -> ActingUser:
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return user


# ── Services ─────────────────────────────────────────────────────────


def build_consistency_coordinator(session: AsyncSession) -> ConsistencyCoordinator:
    """Coordinator bound to one session; shared by request handlers and the sweep job."""
    settings = get_settings()
    return ConsistencyCoordinator(
        section_repository=SQLAlchemySectionRepository(session),
        article_repository=SQLAlchemyArticleRepository(session),
        file_storage=LocalFileStorage(upload_dir=settings.upload_dir),
        comment_store=SQLAlchemyCommentStore(session),
    )


def build_expiration_sweeper(session: AsyncSession) -> ExpirationSweeper:
    return ExpirationSweeper(
        repository=SQLAlchemyArticleRepository(session),
        coordinator=build_consistency_coordinator(session),
        savepoint=session.begin_nested,
    )


async def get_section_service(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[SectionService, None]:
    """Provides a SectionService instance with its repositories wired up."""
    yield SectionService(
        repository=SQLAlchemySectionRepository(session),
        article_repository=SQLAlchemyArticleRepository(session),
        coordinator=build_consistency_coordinator(session),
    )


async def get_article_service(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[ArticleService, None]:
    """Provides an ArticleService instance with its repositories wired up."""
    settings = get_settings()
    repository = SQLAlchemyArticleRepository(session)
    yield ArticleService(
        repository=repository,
        section_repository=SQLAlchemySectionRepository(session),
        id_allocator=ArticleIdAllocator(repository),
        coordinator=build_consistency_coordinator(session),
        flash_section_name=settings.flash_section_name,
    )


async def get_expiration_sweeper(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[ExpirationSweeper, None]:
    yield build_expiration_sweeper(session)
