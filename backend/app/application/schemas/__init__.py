from .common import ApiResponse, ok
from .article import (
    ArticleCreate,
    ArticleUpdate,
    ArticleResponse,
    ArticleFileSchema,
    ArticleFileUpload,
    AutoTagsUpdate,
    BulkArticlesRequest,
    BulkResult,
    BulkVisibilityRequest,
    CleanupResult,
    PopularTag,
)
from .section import (
    ArticleCountRebuild,
    DeleteSectionRequest,
    ReorderRequest,
    SectionCreate,
    SectionResponse,
    SectionTreeNode,
    SectionUpdate,
)

__all__ = [
    "ApiResponse",
    "ok",
    "ArticleCreate",
    "ArticleUpdate",
    "ArticleResponse",
    "ArticleFileSchema",
    "ArticleFileUpload",
    "AutoTagsUpdate",
    "BulkArticlesRequest",
    "BulkResult",
    "BulkVisibilityRequest",
    "CleanupResult",
    "PopularTag",
    "ArticleCountRebuild",
    "DeleteSectionRequest",
    "ReorderRequest",
    "SectionCreate",
    "SectionResponse",
    "SectionTreeNode",
    "SectionUpdate",
]
