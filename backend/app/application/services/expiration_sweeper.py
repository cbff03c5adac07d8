"""Expiration sweep — removes temporary articles whose lifetime has elapsed."""

import asyncio
import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager, nullcontext
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.application.interfaces import ArticleRepository
from app.application.services.consistency_coordinator import ConsistencyCoordinator
from app.infrastructure.logging.colored_logger import ConsistencyLogger, ConsistencyStage

logger = logging.getLogger(__name__)
slog = ConsistencyLogger("ExpirationSweeper")

DEFAULT_INTERVAL_HOURS = 6


class ExpirationSweeper:
    """Deletes every expired temporary article through the coordinator's deletion saga.

    Each article is removed inside its own *savepoint* (``session.begin_nested``
    when wired to a database), so one failing article is rolled back and
    logged while the rest of the sweep goes on.
    """

    def __init__(
        self,
        repository: ArticleRepository,
        coordinator: ConsistencyCoordinator,
        savepoint: Callable[[], AbstractAsyncContextManager] | None = None,
    ):
        self._repository = repository
        self._coordinator = coordinator
        self._savepoint = savepoint or nullcontext

    async def cleanup_expired_articles(self, now: datetime | None = None) -> int:
        now = now or datetime.now(timezone.utc)
        expired = await self._repository.get_expired(now)
        if not expired:
            logger.debug("No expired articles at %s", now.isoformat())
            return 0

        removed = 0
        with slog.timed_step(ConsistencyStage.SWEEP, "Purging expired articles", candidates=len(expired)):
            for article in expired:
                try:
                    async with self._savepoint():
                        await self._coordinator.delete_article(article)
                except Exception as exc:
                    slog.step_error(
                        ConsistencyStage.SWEEP,
                        f"Could not delete expired article {article.article_id}",
                        error=exc,
                    )
                    continue
                removed += 1
        if removed < len(expired):
            logger.warning("Expiration sweep removed %d of %d expired articles", removed, len(expired))
        return removed


class ExpirationCleanupJob:
    """Asyncio task that runs the sweep at startup and then on a fixed interval.

    Runs inside FastAPI's lifespan. Every run gets its own session and
    transaction; a failed run is rolled back, logged, and the loop carries on.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        sweeper_factory: Callable[[AsyncSession], ExpirationSweeper],
        interval_hours: float = DEFAULT_INTERVAL_HOURS,
        run_on_start: bool = True,
    ) -> None:
        self._session_factory = session_factory
        self._sweeper_factory = sweeper_factory
        self._interval = interval_hours * 3600
        self._run_on_start = run_on_start
        self._running = False
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info("Expiration cleanup scheduled every %.1f hours", self._interval / 3600)

    async def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        logger.info("Expiration cleanup stopped")

    async def run_once(self) -> int:
        """One sweep in its own transaction. Returns the number deleted, 0 on failure."""
        async with self._session_factory() as session:
            try:
                removed = await self._sweeper_factory(session).cleanup_expired_articles()
                await session.commit()
            except Exception as exc:
                await session.rollback()
                slog.step_error(ConsistencyStage.SWEEP, "Expiration sweep failed", error=exc)
                return 0
        if removed:
            logger.info("Cleaned up %d expired articles", removed)
        return removed

    async def _loop(self) -> None:
        if not self._run_on_start:
            await asyncio.sleep(self._interval)
        while self._running:
            try:
                await self.run_once()
            except asyncio.CancelledError:
                break
            await asyncio.sleep(self._interval)
