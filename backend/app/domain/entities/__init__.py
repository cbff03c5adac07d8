from .acting_user import ActingUser, ADMIN_ROLES
from .article import Article, ArticleFile, ArticleRead, ArticleView, ARTICLE_ID_PATTERN
from .section import Section

__all__ = [
    "ActingUser",
    "ADMIN_ROLES",
    "Article",
    "ArticleFile",
    "ArticleRead",
    "ArticleView",
    "ARTICLE_ID_PATTERN",
    "Section",
]
