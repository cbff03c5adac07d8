from .article_id_allocator import ArticleIdAllocator
from .article_service import ArticleService
from .consistency_coordinator import ConsistencyCoordinator
from .expiration_sweeper import ExpirationCleanupJob, ExpirationSweeper
from .section_service import SectionService
from .slug_generator import SlugGenerator

__all__ = [
    "ArticleIdAllocator",
    "ArticleService",
    "ConsistencyCoordinator",
    "ExpirationCleanupJob",
    "ExpirationSweeper",
    "SectionService",
    "SlugGenerator",
]
