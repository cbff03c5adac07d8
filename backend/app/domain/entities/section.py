"""Domain entity for sections — the hierarchical categories articles live in."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import uuid4

MAX_NAME_LENGTH = 50
MAX_DESCRIPTION_LENGTH = 200
DEFAULT_ICON = "folder"


@dataclass
class Section:
    """A named node of the section tree.

    ``slug`` is derived from ``name`` by the SlugGenerator and must be unique.
    ``article_count`` is a cache of the non-hidden articles referencing this
    section; the ConsistencyCoordinator recomputes it, nothing else writes it.
    """

    name: str
    created_by: str
    slug: str = ""
    description: str = ""
    icon: str = DEFAULT_ICON
    order: int = 0
    parent_id: str | None = None
    is_active: bool = True
    article_count: int = 0
    id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    # Populated only by tree queries
    children: list["Section"] = field(default_factory=list)

    def update(
        self,
        name: str | None = None,
        description: str | None = None,
        icon: str | None = None,
        order: int | None = None,
        parent_id: str | None = ...,  # type: ignore[assignment]
        is_active: bool | None = None,
    ) -> bool:
        """Apply a partial update. Returns True when the name changed."""
        name_changed = False
        if name is not None and name.strip() != self.name:
            self.name = name.strip()
            name_changed = True
        if description is not None:
            self.description = description.strip()
        if icon:
            self.icon = icon
        if order is not None:
            self.order = order
        if parent_id is not ...:
            self.parent_id = parent_id or None
        if is_active is not None:
            self.is_active = is_active
        self.updated_at = datetime.now(timezone.utc)
        return name_changed

    def toggle_active(self) -> bool:
        self.is_active = not self.is_active
        self.updated_at = datetime.now(timezone.utc)
        return self.is_active
