"""
User Repository Interface.
The credential store: identities, unique emails and password hashes.
"""

from typing import Optional

from app.domain.repositories.base import BaseRepository
from app.domain.models.user import User


class UserRepository(BaseRepository[User]):
    """Interface for User-specific operations."""

    def get_by_email(self, email: str) -> Optional[User]:
        """Get a user by its unique email."""
        ...

    def get_for_update(self, id: str) -> Optional[User]:
        """Get a user and lock its row for the rest of the transaction."""
        ...
