"""User API routes — list, signup, login."""

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.application.services.auth_service import list_users, login, signup
from app.core.exceptions import ValidationException, invalid_fields
from app.core.security import PasswordHasher, TokenService
from app.domain.repositories.user_repository import UserRepository
from app.domain.schemas.auth import AuthResponse, LoginRequest, UserCreate, UserList, UserRead
from app.infrastructure.database import get_db
from app.infrastructure.file_store import FileStore
from app.interfaces.deps import (
    get_file_store,
    get_password_hasher,
    get_token_service,
    get_user_repository,
)

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("", response_model=UserList)
def get_users(users: UserRepository = Depends(get_user_repository)):
    return UserList(users=[UserRead.model_validate(u) for u in list_users(users)])


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def signup_user(
    name: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    image: UploadFile = File(...),
    db: Session = Depends(get_db),
    users: UserRepository = Depends(get_user_repository),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenService = Depends(get_token_service),
    files: FileStore = Depends(get_file_store),
):
    try:
        body = UserCreate(name=name, email=email, password=password)
    except ValidationError as e:
        raise ValidationException(details=invalid_fields(e.errors())) from e

    image_path = files.store(image.file, image.content_type)
    return signup(db, users, hasher, tokens, files, body, image_path)


@router.post("/login", response_model=AuthResponse)
def login_user(
    body: LoginRequest,
    users: UserRepository = Depends(get_user_repository),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenService = Depends(get_token_service),
):
    return login(users, hasher, tokens, body.email, body.password)
