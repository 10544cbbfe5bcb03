"""
SQLAlchemy Implementation of User Repository.
"""

from typing import Optional

from app.domain.models.user import User
from app.domain.repositories.user_repository import UserRepository
from app.infrastructure.repositories.base_repository import SQLAlchemyRepository


class SQLAlchemyUserRepository(SQLAlchemyRepository[User], UserRepository):
    """User repository implementation using SQLAlchemy."""

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def get_for_update(self, id: str) -> Optional[User]:
        # Row lock on PostgreSQL; SQLite ignores it and relies on the version column
        return (
            self.db.query(User)
            .filter(User.id == id)
            .with_for_update()
            .populate_existing()
            .first()
        )
