"""Unit tests for the ConsistencyCoordinator — deletion guard, sagas, counters, reorder."""

import pytest
import pytest_asyncio

from app.domain.entities import ArticleFile
from app.domain.exceptions import (
    DomainValidationError,
    EntityNotFoundError,
    GuardViolationError,
)


# ── Section deletion ─────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_delete_requires_confirmation_email(coordinator, add_section, admin):
    section = await add_section("Empty")
    for missing in (None, "", "   "):
        with pytest.raises(DomainValidationError, match="Email confirmation is required"):
            await coordinator.delete_section(section.id, admin, missing)


@pytest.mark.asyncio
async def test_delete_rejects_wrong_email(coordinator, section_repo, add_section, admin):
    section = await add_section("Empty")
    with pytest.raises(GuardViolationError, match="does not match"):
        await coordinator.delete_section(section.id, admin, "someone@else.com")
    assert await section_repo.get_by_id(section.id) is not None


@pytest.mark.asyncio
async def test_delete_missing_section(coordinator, admin):
    with pytest.raises(EntityNotFoundError):
        await coordinator.delete_section("nope", admin, admin.email)


@pytest.mark.asyncio
async def test_delete_empty_section_accepts_case_insensitive_email(
    coordinator, section_repo, add_section, admin
):
    section = await add_section("Empty")
    deleted = await coordinator.delete_section(section.id, admin, "  admin@example.COM ")

    assert deleted.id == section.id
    assert await section_repo.get_by_id(section.id) is None


@pytest.mark.asyncio
async def test_delete_blocked_by_articles_leaves_everything_untouched(
    coordinator, section_repo, article_repo, add_section, add_article, admin
):
    section = await add_section("Busy")
    article = await add_article([section.id], hidden=True)

    with pytest.raises(GuardViolationError) as exc_info:
        await coordinator.delete_section(section.id, admin, admin.email)

    assert exc_info.value.article_count == 1
    assert exc_info.value.child_count == 0
    assert 'Cannot delete section "Busy"' in exc_info.value.message
    assert await section_repo.get_by_id(section.id) is not None
    assert (await article_repo.get_by_id(article.id)).section_ids == [section.id]


@pytest.mark.asyncio
async def test_delete_blocked_by_children(coordinator, add_section, admin):
    parent = await add_section("Parent")
    await add_section("Child", parent_id=parent.id)

    assert await coordinator.can_delete(parent.id) is False
    with pytest.raises(GuardViolationError) as exc_info:
        await coordinator.delete_section(parent.id, admin, admin.email)
    assert exc_info.value.child_count == 1


# ── Article deletion saga ────────────────────────────────────────────


@pytest.mark.asyncio
async def test_delete_article_removes_files_comments_and_refreshes_counts(
    coordinator, section_repo, article_repo, file_storage, comment_store, add_section, add_article
):
    section = await add_section("Docs")
    keep = await add_article([section.id])
    files = [
        ArticleFile(originalname="a.pdf", filename="a-1.pdf", path="uploads/a-1.pdf", mimetype="application/pdf"),
        ArticleFile(originalname="b.png", filename="b-1.png", path="uploads/b-1.png", mimetype="image/png"),
    ]
    doomed = await add_article([section.id], files=files)
    file_storage.files = {"a-1.pdf"}  # b-1.png already gone from disk
    comment_store.comments = {"c1": doomed.id, "c2": doomed.id, "c3": keep.id}

    await coordinator.delete_article(doomed)

    assert file_storage.deleted == ["a-1.pdf", "b-1.png"]
    assert comment_store.comments == {"c3": keep.id}
    assert await article_repo.get_by_id(doomed.id) is None
    assert (await section_repo.get_by_id(section.id)).article_count == 1


@pytest.mark.asyncio
async def test_delete_article_carries_on_when_storage_fails(
    coordinator, article_repo, file_storage, add_section, add_article
):
    section = await add_section("Docs")
    files = [
        ArticleFile(originalname="a.pdf", filename="a-1.pdf", path="uploads/a-1.pdf", mimetype="application/pdf"),
        ArticleFile(originalname="b.png", filename="b-1.png", path="uploads/b-1.png", mimetype="image/png"),
    ]
    doomed = await add_article([section.id], files=files)
    file_storage.files = {"a-1.pdf", "b-1.png"}
    file_storage.broken = {"a-1.pdf"}

    await coordinator.delete_article(doomed)

    assert file_storage.deleted == ["a-1.pdf", "b-1.png"]
    assert file_storage.files == {"a-1.pdf"}
    assert await article_repo.get_by_id(doomed.id) is None


# ── Article-count cache ──────────────────────────────────────────────


@pytest.mark.asyncio
async def test_article_count_ignores_hidden_articles(coordinator, section_repo, add_section, add_article):
    section = await add_section("Docs")
    await add_article([section.id])
    await add_article([section.id], hidden=True)

    assert await coordinator.update_article_count(section.id) == 1
    assert (await section_repo.get_by_id(section.id)).article_count == 1
    assert await coordinator.dependency_counts(section.id) == (2, 0)


@pytest.mark.asyncio
async def test_count_refresh_failure_is_swallowed(coordinator, section_repo, add_section):
    section = await add_section("Docs")
    section_repo.fail_count_updates = True
    assert await coordinator.update_article_count(section.id) is None


@pytest.mark.asyncio
async def test_rebuild_all_article_counts(coordinator, section_repo, add_section, add_article):
    a = await add_section("A")
    b = await add_section("B", order=1)
    await add_article([a.id, b.id])
    await add_article([b.id])

    assert await coordinator.rebuild_all_article_counts() == 2
    assert (await section_repo.get_by_id(a.id)).article_count == 1
    assert (await section_repo.get_by_id(b.id)).article_count == 2


# ── Reorder ──────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def abc(add_section):
    parent = await add_section("Root")
    a = await add_section("A", order=0, parent_id=parent.id)
    b = await add_section("B", order=1, parent_id=parent.id)
    c = await add_section("C", order=2, parent_id=parent.id)
    return a, b, c


async def _orders(section_repo, *sections) -> list[int]:
    return [(await section_repo.get_by_id(s.id)).order for s in sections]


@pytest.mark.asyncio
async def test_reorder_middle_down_swaps_with_next_only(coordinator, section_repo, abc):
    a, b, c = abc
    await coordinator.reorder_section(b.id, "down")
    assert await _orders(section_repo, a, b, c) == [0, 2, 1]


@pytest.mark.asyncio
async def test_reorder_middle_up_swaps_with_previous_only(coordinator, section_repo, abc):
    a, b, c = abc
    await coordinator.reorder_section(b.id, "up")
    assert await _orders(section_repo, a, b, c) == [1, 0, 2]


@pytest.mark.asyncio
async def test_reorder_past_boundary_is_rejected(coordinator, section_repo, abc):
    a, b, c = abc
    with pytest.raises(DomainValidationError, match="Invalid move direction"):
        await coordinator.reorder_section(a.id, "up")
    with pytest.raises(DomainValidationError, match="Invalid move direction"):
        await coordinator.reorder_section(c.id, "down")
    assert await _orders(section_repo, a, b, c) == [0, 1, 2]


@pytest.mark.asyncio
async def test_reorder_unknown_direction_is_rejected(coordinator, abc):
    _, b, _ = abc
    with pytest.raises(DomainValidationError):
        await coordinator.reorder_section(b.id, "sideways")
