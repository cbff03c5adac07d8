"""Port for the comment subsystem — only the pieces the article lifecycle needs."""

from abc import ABC, abstractmethod


class CommentStore(ABC):
    """Comments belong to another subsystem; articles only ever purge theirs."""

    @abstractmethod
    async def delete_by_article(self, article_id: str) -> int:
        """Delete every comment attached to an article. Returns the number removed."""
        ...
