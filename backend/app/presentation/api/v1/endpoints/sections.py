"""Section endpoints — tree navigation, admin management and guarded deletion."""

import logging

from fastapi import APIRouter, Body, Depends, Query, status

from app.application.schemas import (
    ApiResponse,
    ArticleCountRebuild,
    ArticleResponse,
    DeleteSectionRequest,
    ReorderRequest,
    SectionCreate,
    SectionResponse,
    SectionTreeNode,
    SectionUpdate,
    ok,
)
from app.application.services import SectionService
from app.domain.entities import ActingUser, Section
from app.infrastructure.dependencies import get_current_user, get_optional_user, get_section_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sections", tags=["Sections"])


# ── Helpers ──────────────────────────────────────────────────────────


def _to_response(section: Section) -> SectionResponse:
    return SectionResponse.model_validate(section, from_attributes=True)


def _to_tree_node(section: Section) -> SectionTreeNode:
    return SectionTreeNode(
        **_to_response(section).model_dump(),
        children=[_to_tree_node(child) for child in section.children],
    )


# ── Queries ──────────────────────────────────────────────────────────


@router.get("", response_model=ApiResponse[list[SectionResponse]])
async def list_sections(
    include_inactive: bool = Query(False, alias="includeInactive"),
    user: ActingUser | None = Depends(get_optional_user),
    service: SectionService = Depends(get_section_service),
) -> ApiResponse[list[SectionResponse]]:
    """List sections; admins may ask for inactive ones too."""
    sections = await service.list_sections(acting_user=user, include_inactive=include_inactive)
    return ok([_to_response(s) for s in sections])


@router.get("/navigation", response_model=ApiResponse[list[SectionResponse]])
async def list_navigation_sections(
    service: SectionService = Depends(get_section_service),
) -> ApiResponse[list[SectionResponse]]:
    sections = await service.list_navigation_sections()
    return ok([_to_response(s) for s in sections])


@router.get("/tree", response_model=ApiResponse[list[SectionTreeNode]])
async def get_tree(
    service: SectionService = Depends(get_section_service),
) -> ApiResponse[list[SectionTreeNode]]:
    """Root sections with their children and grandchildren."""
    roots = await service.get_tree()
    return ok([_to_tree_node(r) for r in roots])


@router.get("/{section_id}", response_model=ApiResponse[SectionResponse])
async def get_section(
    section_id: str,
    service: SectionService = Depends(get_section_service),
) -> ApiResponse[SectionResponse]:
    section = await service.get_section(section_id)
    return ok(_to_response(section))


@router.get("/{section_id}/articles", response_model=ApiResponse[list[ArticleResponse]])
async def list_section_articles(
    section_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(15, ge=1, le=100),
    service: SectionService = Depends(get_section_service),
) -> ApiResponse[list[ArticleResponse]]:
    """Visible articles of a section, newest first."""
    articles = await service.list_section_articles(section_id, page=page, limit=limit)
    return ok([ArticleResponse.model_validate(a, from_attributes=True) for a in articles])


# ── Commands ─────────────────────────────────────────────────────────


@router.post("", response_model=ApiResponse[SectionResponse], status_code=status.HTTP_201_CREATED)
async def create_section(
    data: SectionCreate,
    user: ActingUser = Depends(get_current_user),
    service: SectionService = Depends(get_section_service),
) -> ApiResponse[SectionResponse]:
    section = await service.create_section(data, user)
    return ok(_to_response(section), "Section created successfully")


@router.post("/init-general", response_model=ApiResponse[SectionResponse])
async def init_general_section(
    user: ActingUser = Depends(get_current_user),
    service: SectionService = Depends(get_section_service),
) -> ApiResponse[SectionResponse]:
    """Create the default General section if it is missing."""
    section = await service.ensure_general_section(user)
    return ok(_to_response(section))


@router.post("/rebuild-counts", response_model=ApiResponse[ArticleCountRebuild])
async def rebuild_article_counts(
    user: ActingUser = Depends(get_current_user),
    service: SectionService = Depends(get_section_service),
) -> ApiResponse[ArticleCountRebuild]:
    visited = await service.rebuild_article_counts(user)
    return ok(ArticleCountRebuild(sections=visited), f"Article counts rebuilt for {visited} sections")


@router.put("/{section_id}", response_model=ApiResponse[SectionResponse])
async def update_section(
    section_id: str,
    data: SectionUpdate,
    user: ActingUser = Depends(get_current_user),
    service: SectionService = Depends(get_section_service),
) -> ApiResponse[SectionResponse]:
    section = await service.update_section(section_id, data, user)
    return ok(_to_response(section), "Section updated successfully")


@router.post("/{section_id}/toggle", response_model=ApiResponse[SectionResponse])
async def toggle_section(
    section_id: str,
    user: ActingUser = Depends(get_current_user),
    service: SectionService = Depends(get_section_service),
) -> ApiResponse[SectionResponse]:
    section = await service.toggle_active(section_id, user)
    state = "activated" if section.is_active else "deactivated"
    return ok(_to_response(section), f"Section {state} successfully")


@router.put("/{section_id}/reorder", response_model=ApiResponse[list[SectionResponse]])
async def reorder_section(
    section_id: str,
    data: ReorderRequest,
    user: ActingUser = Depends(get_current_user),
    service: SectionService = Depends(get_section_service),
) -> ApiResponse[list[SectionResponse]]:
    """Swap a section with its neighbour; returns the reordered siblings."""
    siblings = await service.reorder_section(section_id, data.direction, user)
    return ok([_to_response(s) for s in siblings], "Section order updated successfully")


async def _delete(
    section_id: str, data: DeleteSectionRequest | None, user: ActingUser, service: SectionService
) -> ApiResponse[SectionResponse]:
    confirm_email = data.confirm_email if data else None
    section = await service.delete_section(section_id, user, confirm_email)
    return ok(_to_response(section), f'Section "{section.name}" deleted successfully')


@router.delete("/{section_id}", response_model=ApiResponse[SectionResponse])
async def delete_section(
    section_id: str,
    data: DeleteSectionRequest | None = Body(None),
    user: ActingUser = Depends(get_current_user),
    service: SectionService = Depends(get_section_service),
) -> ApiResponse[SectionResponse]:
    """Guarded deletion; the body must repeat the caller's email."""
    return await _delete(section_id, data, user, service)


@router.post("/{section_id}/delete-confirm", response_model=ApiResponse[SectionResponse])
async def delete_section_confirmed(
    section_id: str,
    data: DeleteSectionRequest,
    user: ActingUser = Depends(get_current_user),
    service: SectionService = Depends(get_section_service),
) -> ApiResponse[SectionResponse]:
    """Same as DELETE, for clients that cannot send a DELETE body."""
    return await _delete(section_id, data, user, service)
