from .article_repository import SQLAlchemyArticleRepository
from .comment_store import SQLAlchemyCommentStore
from .section_repository import SQLAlchemySectionRepository

__all__ = [
    "SQLAlchemyArticleRepository",
    "SQLAlchemyCommentStore",
    "SQLAlchemySectionRepository",
]
