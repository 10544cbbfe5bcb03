"""
Base Repository Interface.
Defines the standard contract for data access operations.

Repositories only stage changes on the unit of work; committing is the
caller's decision so that several writes can share one transaction.
"""

from typing import TypeVar, List, Optional, Protocol

T = TypeVar("T")


class BaseRepository(Protocol[T]):
    """Interface for generic data access."""

    def get_by_id(self, id: str) -> Optional[T]:
        """Get a single entity by ID."""
        ...

    def list(self, skip: int = 0, limit: int = 100) -> List[T]:
        """List entities with pagination."""
        ...

    def add(self, obj: T) -> T:
        """Stage a new or changed entity and flush it."""
        ...

    def delete(self, obj: T) -> None:
        """Stage removal of an entity and flush it."""
        ...
