from .article_repository import ArticleRepository
from .comment_store import CommentStore
from .file_storage import FileStorage
from .section_repository import SectionRepository

__all__ = [
    "ArticleRepository",
    "CommentStore",
    "FileStorage",
    "SectionRepository",
]
