"""Domain-specific exceptions — framework-independent."""


class EntityNotFoundError(Exception):
    """Raised when a requested entity does not exist."""

    def __init__(self, entity_type: str, entity_id: int | str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with id '{entity_id}' not found")


class DuplicateEntityError(Exception):
    """Raised when attempting to create a duplicate entity."""

    def __init__(self, entity_type: str, field: str, value: str):
        self.entity_type = entity_type
        self.field = field
        self.value = value
        super().__init__(f"{entity_type} with {field}='{value}' already exists")


class DomainValidationError(Exception):
    """Raised when input violates a business rule (bad duration, empty title, ...).

    Always detected before any mutation, so callers can report it as a 400.
    """

    def __init__(self, message: str, field: str | None = None):
        self.message = message
        self.field = field
        super().__init__(message)


class GuardViolationError(Exception):
    """Raised when a destructive operation would break referential integrity.

    Examples: deleting a section that still has articles or child sections,
    or a deletion confirmation email that does not match the acting user.
    """

    def __init__(self, message: str, article_count: int = 0, child_count: int = 0):
        self.message = message
        self.article_count = article_count
        self.child_count = child_count
        super().__init__(message)


class PermissionDeniedError(Exception):
    """Raised when the acting user lacks the role or ownership for an action."""

    def __init__(self, message: str = "Not authorized to perform this action"):
        self.message = message
        super().__init__(message)


class InfrastructureError(Exception):
    """Raised when the underlying store fails in a way the caller cannot fix."""


class ArticleIdAllocationError(InfrastructureError):
    """Raised when no article number could be allocated.

    Covers a failing lookup query, a collision that survives the single
    retry, and exhaustion of the five-digit number space.
    """
