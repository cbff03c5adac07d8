from .article import ArticleModel, ArticleSectionModel, ArticleTagModel
from .comment import CommentModel
from .section import SectionModel

__all__ = [
    "ArticleModel",
    "ArticleSectionModel",
    "ArticleTagModel",
    "CommentModel",
    "SectionModel",
]
