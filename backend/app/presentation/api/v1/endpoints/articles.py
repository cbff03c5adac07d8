"""Article endpoints."""

from fastapi import APIRouter, Depends, Query, status

from app.application.schemas import (
    ApiResponse,
    ArticleCreate,
    ArticleResponse,
    ArticleUpdate,
    AutoTagsUpdate,
    BulkArticlesRequest,
    BulkResult,
    BulkVisibilityRequest,
    CleanupResult,
    PopularTag,
    ok,
)
from app.application.services import ArticleService, ExpirationSweeper
from app.domain.entities import ActingUser, Article
from app.domain.exceptions import PermissionDeniedError
from app.infrastructure.dependencies import (
    get_article_service,
    get_current_user,
    get_expiration_sweeper,
    get_optional_user,
)

router = APIRouter(prefix="/articles", tags=["Articles"])


def _to_response(article: Article) -> ArticleResponse:
    return ArticleResponse.model_validate(article, from_attributes=True)


@router.get("", response_model=ApiResponse[list[ArticleResponse]])
async def list_articles(
    page: int = Query(1, ge=1),
    limit: int = Query(15, ge=1, le=100),
    include_hidden: bool = Query(False, alias="includeHidden"),
    user: ActingUser | None = Depends(get_optional_user),
    service: ArticleService = Depends(get_article_service),
) -> ApiResponse[list[ArticleResponse]]:
    """Retrieve a page of articles, highest article number first."""
    show_hidden = include_hidden and user is not None and user.is_admin
    articles = await service.list_articles(page=page, limit=limit, include_hidden=show_hidden)
    return ok([_to_response(a) for a in articles])


@router.get("/search", response_model=ApiResponse[list[ArticleResponse]])
async def search_articles(
    q: str = Query(..., min_length=1),
    search_filter: str = Query("all", alias="filter", description="all, title, content or tag"),
    user: ActingUser | None = Depends(get_optional_user),
    service: ArticleService = Depends(get_article_service),
) -> ApiResponse[list[ArticleResponse]]:
    """Search articles by title, content or tag, newest first."""
    articles = await service.search(q, field=search_filter, viewer=user)
    return ok([_to_response(a) for a in articles], f"{len(articles)} articles found")


@router.get("/tags/popular", response_model=ApiResponse[list[PopularTag]])
async def popular_tags(
    limit: int = Query(10, ge=1, le=100),
    service: ArticleService = Depends(get_article_service),
) -> ApiResponse[list[PopularTag]]:
    tags = await service.popular_tags(limit=limit)
    return ok([PopularTag(tag=tag, count=count) for tag, count in tags])


@router.get("/tags/{tag}", response_model=ApiResponse[list[ArticleResponse]])
async def find_by_tag(
    tag: str,
    page: int = Query(1, ge=1),
    limit: int = Query(15, ge=1, le=100),
    service: ArticleService = Depends(get_article_service),
) -> ApiResponse[list[ArticleResponse]]:
    articles = await service.find_by_tag(tag, page=page, limit=limit)
    return ok([_to_response(a) for a in articles])


@router.get("/by-number/{article_number}", response_model=ApiResponse[ArticleResponse])
async def get_by_article_number(
    article_number: str,
    service: ArticleService = Depends(get_article_service),
) -> ApiResponse[ArticleResponse]:
    """Look an article up by its ``AN-XXXXX`` number."""
    article = await service.get_by_article_id(article_number)
    return ok(_to_response(article))


@router.get("/{article_id}", response_model=ApiResponse[ArticleResponse])
async def get_article(
    article_id: str,
    user: ActingUser | None = Depends(get_optional_user),
    service: ArticleService = Depends(get_article_service),
) -> ApiResponse[ArticleResponse]:
    """Retrieve a single article; an identified caller's visit is recorded."""
    article = await service.get_article(article_id, viewer=user)
    return ok(_to_response(article))


@router.post("", response_model=ApiResponse[ArticleResponse], status_code=status.HTTP_201_CREATED)
async def create_article(
    data: ArticleCreate,
    user: ActingUser = Depends(get_current_user),
    service: ArticleService = Depends(get_article_service),
) -> ApiResponse[ArticleResponse]:
    article = await service.create_article(data, user)
    return ok(_to_response(article), "Article created successfully")


@router.post("/cleanup-expired", response_model=ApiResponse[CleanupResult])
async def cleanup_expired(
    user: ActingUser = Depends(get_current_user),
    sweeper: ExpirationSweeper = Depends(get_expiration_sweeper),
) -> ApiResponse[CleanupResult]:
    """Run the expiration sweep now instead of waiting for the next tick."""
    if not user.is_admin:
        raise PermissionDeniedError("Only administrators can trigger the expiration sweep")
    deleted = await sweeper.cleanup_expired_articles()
    return ok(CleanupResult(deleted=deleted), f"Cleaned up {deleted} expired articles")


@router.post("/bulk/visibility", response_model=ApiResponse[BulkResult])
async def bulk_visibility(
    data: BulkVisibilityRequest,
    user: ActingUser = Depends(get_current_user),
    service: ArticleService = Depends(get_article_service),
) -> ApiResponse[BulkResult]:
    affected = await service.bulk_set_visibility(data.article_ids, data.hidden, user)
    verb = "hidden" if data.hidden else "unhidden"
    return ok(BulkResult(affected=affected), f"Successfully {verb} {affected} articles")


@router.post("/bulk/delete", response_model=ApiResponse[BulkResult])
async def bulk_delete(
    data: BulkArticlesRequest,
    user: ActingUser = Depends(get_current_user),
    service: ArticleService = Depends(get_article_service),
) -> ApiResponse[BulkResult]:
    """Delete several articles, each with its attachments and comments."""
    affected = await service.bulk_delete(data.article_ids, user)
    return ok(BulkResult(affected=affected), f"Successfully deleted {affected} articles")


@router.put("/{article_id}", response_model=ApiResponse[ArticleResponse])
async def update_article(
    article_id: str,
    data: ArticleUpdate,
    user: ActingUser = Depends(get_current_user),
    service: ArticleService = Depends(get_article_service),
) -> ApiResponse[ArticleResponse]:
    article = await service.update_article(article_id, data, user)
    return ok(_to_response(article), "Article updated successfully")


@router.post("/{article_id}/visibility", response_model=ApiResponse[ArticleResponse])
async def toggle_visibility(
    article_id: str,
    user: ActingUser = Depends(get_current_user),
    service: ArticleService = Depends(get_article_service),
) -> ApiResponse[ArticleResponse]:
    article = await service.toggle_visibility(article_id, user)
    return ok(_to_response(article), "Article hidden" if article.hidden else "Article visible")


@router.post("/{article_id}/read", response_model=ApiResponse[ArticleResponse])
async def mark_as_read(
    article_id: str,
    user: ActingUser = Depends(get_current_user),
    service: ArticleService = Depends(get_article_service),
) -> ApiResponse[ArticleResponse]:
    article = await service.mark_as_read(article_id, user)
    return ok(_to_response(article))


@router.put("/{article_id}/auto-tags", response_model=ApiResponse[ArticleResponse])
async def set_auto_tags(
    article_id: str,
    data: AutoTagsUpdate,
    user: ActingUser = Depends(get_current_user),
    service: ArticleService = Depends(get_article_service),
) -> ApiResponse[ArticleResponse]:
    """Replace the extracted tags; written by the tag extraction job."""
    article = await service.set_auto_tags(article_id, data.tags)
    return ok(_to_response(article))


@router.delete("/{article_id}", response_model=ApiResponse[None])
async def delete_article(
    article_id: str,
    user: ActingUser = Depends(get_current_user),
    service: ArticleService = Depends(get_article_service),
) -> ApiResponse[None]:
    """Delete an article with its attachments and comments."""
    article = await service.delete_article(article_id, user)
    return ok(None, f"Article {article.article_id} deleted successfully")


@router.delete("/{article_id}/files/{filename}", response_model=ApiResponse[ArticleResponse])
async def delete_file(
    article_id: str,
    filename: str,
    user: ActingUser = Depends(get_current_user),
    service: ArticleService = Depends(get_article_service),
) -> ApiResponse[ArticleResponse]:
    """Remove one attachment from storage and from the article."""
    article = await service.delete_file(article_id, filename, user)
    return ok(_to_response(article), "File deleted successfully")
