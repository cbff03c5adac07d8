"""Sequential ``AN-XXXXX`` article number allocation."""

import logging
import re

from app.application.interfaces import ArticleRepository
from app.domain.exceptions import ArticleIdAllocationError

logger = logging.getLogger(__name__)

ARTICLE_ID_PREFIX = "AN-"
FIRST_SEQUENCE = 100
MAX_SEQUENCE = 99_999
# Candidate plus one retry on collision
MAX_ATTEMPTS = 2

_SEQUENCE_PATTERN = re.compile(r"AN-(\d+)")


def format_article_id(sequence: int) -> str:
    return f"{ARTICLE_ID_PREFIX}{sequence:05d}"


def parse_sequence(article_id: str) -> int | None:
    match = _SEQUENCE_PATTERN.match(article_id)
    return int(match.group(1)) if match else None


class ArticleIdAllocator:
    """Peeks at the highest article number and hands out the next one.

    This is a check-then-act sequence without a lock: two concurrent
    creations can compute the same candidate. The existence recheck retries
    once, and the unique index on ``articles.article_id`` rejects whatever
    slips through.
    """

    def __init__(self, repository: ArticleRepository):
        self._repository = repository

    async def allocate(self) -> str:
        try:
            highest = await self._repository.get_highest_article_id()
        except Exception as exc:
            logger.exception("Article number lookup failed")
            raise ArticleIdAllocationError("Failed to generate article ID") from exc

        sequence = FIRST_SEQUENCE
        if highest:
            parsed = parse_sequence(highest)
            if parsed is not None:
                sequence = parsed + 1

        for _ in range(MAX_ATTEMPTS):
            if sequence > MAX_SEQUENCE:
                raise ArticleIdAllocationError(
                    f"Article number space exhausted (last allocated: {highest})"
                )
            candidate = format_article_id(sequence)
            if not await self._repository.article_id_exists(candidate):
                logger.debug("Allocated article number %s", candidate)
                return candidate
            logger.warning("Article number %s already exists, incrementing", candidate)
            sequence += 1

        raise ArticleIdAllocationError(
            f"Could not allocate a free article number after {MAX_ATTEMPTS} attempts"
        )
