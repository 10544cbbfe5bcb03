"""Auth service — signup, login and user listing."""

from typing import List

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import (
    AuthException,
    PersistenceException,
    ValidationException,
)
from app.core.security import PasswordHasher, TokenService
from app.domain.models.user import User
from app.domain.repositories.user_repository import UserRepository
from app.domain.schemas.auth import AuthResponse, UserCreate
from app.infrastructure.database import transaction
from app.infrastructure.file_store import FileStore

logger = structlog.get_logger(__name__)


def list_users(users: UserRepository) -> List[User]:
    try:
        return users.list(limit=1000)
    except SQLAlchemyError as e:
        raise PersistenceException("Fetching users failed, please try again later.") from e


def _create_user(
    db: Session,
    users: UserRepository,
    hasher: PasswordHasher,
    data: UserCreate,
    image_path: str,
) -> User:
    try:
        existing = users.get_by_email(data.email)
    except SQLAlchemyError as e:
        raise PersistenceException("Signing up failed, please try again later.") from e

    if existing:
        raise ValidationException("User exists already, please login instead.")

    user = User(
        name=data.name,
        email=data.email,
        password_hash=hasher.hash(data.password),
        image=image_path,
        places=[],
    )

    try:
        with transaction(db):
            users.add(user)
    except IntegrityError as e:
        # Lost a race with a concurrent signup for the same email
        raise ValidationException("User exists already, please login instead.") from e
    except SQLAlchemyError as e:
        raise PersistenceException("Signing up failed, please try again later.") from e

    return user


def signup(
    db: Session,
    users: UserRepository,
    hasher: PasswordHasher,
    tokens: TokenService,
    files: FileStore,
    data: UserCreate,
    image_path: str,
) -> AuthResponse:
    """Register a user whose avatar is already stored at ``image_path``.

    The avatar is discarded when the user row is not written.
    """
    try:
        user = _create_user(db, users, hasher, data, image_path)
    except Exception:
        files.delete(image_path)
        raise

    logger.info("User signed up", user_id=user.id)
    token = tokens.issue(user.id, user.email)
    return AuthResponse(user_id=user.id, email=user.email, token=token)


def login(
    users: UserRepository,
    hasher: PasswordHasher,
    tokens: TokenService,
    email: str,
    password: str,
) -> AuthResponse:
    try:
        user = users.get_by_email(email.strip().lower())
    except SQLAlchemyError as e:
        raise PersistenceException("Logging in failed, please try again later.") from e

    if user is None:
        hasher.dummy_verify()
        logger.info("Login rejected", reason="unknown_email")
        raise AuthException("Invalid credentials, could not log you in.")

    if not hasher.verify(password, user.password_hash):
        logger.info("Login rejected", reason="bad_password", user_id=user.id)
        raise AuthException("Invalid credentials, could not log you in.")

    logger.info("User logged in", user_id=user.id)
    token = tokens.issue(user.id, user.email)
    return AuthResponse(user_id=user.id, email=user.email, token=token)
