"""
SQLAlchemy Implementation of Place Repository.
"""

from typing import List, Optional

from sqlalchemy.orm import joinedload

from app.domain.models.place import Place
from app.domain.repositories.place_repository import PlaceRepository
from app.infrastructure.repositories.base_repository import SQLAlchemyRepository


class SQLAlchemyPlaceRepository(SQLAlchemyRepository[Place], PlaceRepository):
    """Place repository implementation using SQLAlchemy."""

    def get_with_creator(self, id: str) -> Optional[Place]:
        return (
            self.db.query(Place)
            .options(joinedload(Place.creator))
            .filter(Place.id == id)
            .first()
        )

    def get_many(self, ids: List[str]) -> List[Place]:
        if not ids:
            return []
        found = {p.id: p for p in self.db.query(Place).filter(Place.id.in_(ids)).all()}
        return [found[i] for i in ids if i in found]
