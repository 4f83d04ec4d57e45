"""Error taxonomy shared by the repositories, the game aggregate and the API.

Repositories translate store failures into these kinds before anything
crosses into the aggregate; the API blueprint maps them to HTTP statuses.
"""


class LigainError(Exception):
    """Base class for every domain-level failure."""


class NotFoundError(LigainError):
    """A game, match, player, bet or score does not exist."""


class ValidationError(LigainError):
    """The caller asked for something the game rules forbid."""


class ConflictError(LigainError):
    """A store-level uniqueness or reference constraint rejected a write."""


class StorageError(LigainError):
    def __init__(self, operation: str, reason):
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation}: {reason}")


class CacheDegraded(LigainError):
    """A cache read or write failed. Never fatal: callers fall back to the store."""
