"""SQLAlchemy implementation of the CommentStore port."""

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.interfaces import CommentStore
from app.infrastructure.database.models import CommentModel


class SQLAlchemyCommentStore(CommentStore):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def delete_by_article(self, article_id: str) -> int:
        result = await self._session.execute(
            delete(CommentModel)
            .where(CommentModel.article_id == article_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
