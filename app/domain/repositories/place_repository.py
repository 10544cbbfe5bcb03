"""
Place Repository Interface.
"""

from typing import List, Optional

from app.domain.repositories.base import BaseRepository
from app.domain.models.place import Place


class PlaceRepository(BaseRepository[Place]):
    """Interface for Place-specific operations."""

    def get_with_creator(self, id: str) -> Optional[Place]:
        """Get a place together with its owning user in one fetch."""
        ...

    def get_many(self, ids: List[str]) -> List[Place]:
        """Get places by id, in the order the ids are given."""
        ...
