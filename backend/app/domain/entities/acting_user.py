"""The authenticated user on whose behalf an operation runs."""

from dataclasses import dataclass

ADMIN_ROLES = frozenset({"admin", "super"})


@dataclass(frozen=True)
class ActingUser:
    """Identity supplied by the upstream auth layer for every request."""

    id: str
    email: str
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    def email_matches(self, candidate: str) -> bool:
        """Case-insensitive, whitespace-trimmed comparison with the account email."""
        return candidate.strip().lower() == self.email.strip().lower()
