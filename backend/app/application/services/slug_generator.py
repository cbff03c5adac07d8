"""Unique slug allocation for sections."""

import logging

from app.application.interfaces import SectionRepository
from app.domain.slugs import numbered_slug, slugify

logger = logging.getLogger(__name__)


class SlugGenerator:
    """Derives a collection-unique slug from a section name.

    The probe excludes the section being saved, so renaming a section to its
    own current name keeps its slug instead of drifting to ``-1``.
    """

    def __init__(self, repository: SectionRepository):
        self._repository = repository

    async def generate(self, name: str, exclude_id: str | None = None) -> str:
        base = slugify(name)
        taken = await self._repository.find_slugs_with_prefix(base, exclude_id=exclude_id)

        slug = base
        counter = 1
        while slug in taken:
            slug = numbered_slug(base, counter)
            counter += 1

        if slug != base:
            logger.debug("Slug '%s' taken, using '%s'", base, slug)
        return slug
