"""Unit tests for sequential article number allocation."""

import pytest

from app.application.services import ArticleIdAllocator
from app.application.services.article_id_allocator import format_article_id, parse_sequence
from app.domain.entities import ARTICLE_ID_PATTERN
from app.domain.exceptions import ArticleIdAllocationError


class CollidingRepository:
    """Reports a stale maximum and claims every probed number is taken."""

    def __init__(self, highest: str, taken: set[str]):
        self._highest = highest
        self._taken = taken
        self.probes: list[str] = []

    async def get_highest_article_id(self):
        return self._highest

    async def article_id_exists(self, article_number: str) -> bool:
        self.probes.append(article_number)
        return article_number in self._taken


def test_format_and_parse():
    assert format_article_id(100) == "AN-00100"
    assert ARTICLE_ID_PATTERN.match(format_article_id(99_999))
    assert parse_sequence("AN-00123") == 123
    assert parse_sequence("garbage") is None


@pytest.mark.asyncio
async def test_first_article_gets_an_00100(article_repo):
    assert await ArticleIdAllocator(article_repo).allocate() == "AN-00100"


@pytest.mark.asyncio
async def test_next_number_follows_the_highest(article_repo, add_article):
    for _ in range(3):
        await add_article(["s1"])  # AN-00100 .. AN-00102
    assert await ArticleIdAllocator(article_repo).allocate() == "AN-00103"


@pytest.mark.asyncio
async def test_collision_is_retried_once():
    repo = CollidingRepository("AN-00200", taken={"AN-00201"})
    assert await ArticleIdAllocator(repo).allocate() == "AN-00202"
    assert repo.probes == ["AN-00201", "AN-00202"]


@pytest.mark.asyncio
async def test_second_collision_raises():
    repo = CollidingRepository("AN-00200", taken={"AN-00201", "AN-00202"})
    with pytest.raises(ArticleIdAllocationError):
        await ArticleIdAllocator(repo).allocate()


@pytest.mark.asyncio
async def test_overflow_raises():
    repo = CollidingRepository("AN-99999", taken=set())
    with pytest.raises(ArticleIdAllocationError):
        await ArticleIdAllocator(repo).allocate()


@pytest.mark.asyncio
async def test_failing_lookup_raises_allocation_error(article_repo):
    article_repo.fail_lookup = True
    with pytest.raises(ArticleIdAllocationError, match="Failed to generate article ID"):
        await ArticleIdAllocator(article_repo).allocate()
