"""Port for attachment storage."""

from abc import ABC, abstractmethod


class FileStorage(ABC):
    """Deletion primitive for stored attachments; the core never reads file bytes."""

    @abstractmethod
    async def delete_file(self, filename: str) -> bool:
        """Delete a stored file. Returns True if deleted, False if it was already gone."""
        ...
