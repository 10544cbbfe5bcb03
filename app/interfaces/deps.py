"""
API Dependencies.
Process-wide collaborators are built once from Settings; per-request ones
are bound to the request's database session.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from app.config import get_settings
from app.core.security import PasswordHasher, TokenService
from app.application.services.place_service import PlaceCoordinator
from app.domain.models.place import Place
from app.domain.models.user import User
from app.domain.repositories.place_repository import PlaceRepository
from app.domain.repositories.user_repository import UserRepository
from app.infrastructure.database import get_db
from app.infrastructure.file_store import FileStore
from app.infrastructure.geocoding import GoogleGeocoder
from app.infrastructure.repositories.place_repository import SQLAlchemyPlaceRepository
from app.infrastructure.repositories.user_repository import SQLAlchemyUserRepository


@lru_cache
def get_token_service() -> TokenService:
    return TokenService.from_settings(get_settings())


@lru_cache
def get_password_hasher() -> PasswordHasher:
    return PasswordHasher.from_settings(get_settings())


@lru_cache
def get_geocoder() -> GoogleGeocoder:
    return GoogleGeocoder.from_settings(get_settings())


@lru_cache
def get_file_store() -> FileStore:
    return FileStore.from_settings(get_settings())


def get_user_repository(db: Session = Depends(get_db)) -> UserRepository:
    """Get user repository instance."""
    return SQLAlchemyUserRepository(db, User)


def get_place_repository(db: Session = Depends(get_db)) -> PlaceRepository:
    """Get place repository instance."""
    return SQLAlchemyPlaceRepository(db, Place)


def get_place_coordinator(
    db: Session = Depends(get_db),
    users: UserRepository = Depends(get_user_repository),
    places: PlaceRepository = Depends(get_place_repository),
    geocoder: GoogleGeocoder = Depends(get_geocoder),
    files: FileStore = Depends(get_file_store),
) -> PlaceCoordinator:
    return PlaceCoordinator(db=db, users=users, places=places, geocoder=geocoder, files=files)
