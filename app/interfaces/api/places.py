"""Place API routes — public reads, authenticated create/update/delete."""

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from pydantic import ValidationError

from app.application.services.place_service import PlaceCoordinator
from app.core.exceptions import ValidationException, invalid_fields
from app.core.security import TokenIdentity
from app.domain.schemas.place import (
    MessageResponse,
    PlaceCreate,
    PlaceList,
    PlaceRead,
    PlaceResponse,
    PlaceUpdate,
)
from app.infrastructure.file_store import FileStore
from app.interfaces.api.deps import get_current_identity
from app.interfaces.deps import get_file_store, get_place_coordinator

router = APIRouter(prefix="/api/places", tags=["Places"])


@router.get("/{place_id}", response_model=PlaceResponse)
def get_place_by_id(
    place_id: str,
    coordinator: PlaceCoordinator = Depends(get_place_coordinator),
):
    place = coordinator.get_place(place_id)
    return PlaceResponse(place=PlaceRead.model_validate(place))


@router.get("/user/{user_id}", response_model=PlaceList)
def get_places_by_user_id(
    user_id: str,
    coordinator: PlaceCoordinator = Depends(get_place_coordinator),
):
    places = coordinator.get_places_by_user(user_id)
    return PlaceList(places=[PlaceRead.model_validate(p) for p in places])


@router.post("", response_model=PlaceResponse, status_code=status.HTTP_201_CREATED)
def create_place(
    title: str = Form(""),
    description: str = Form(""),
    address: str = Form(""),
    image: UploadFile = File(...),
    identity: TokenIdentity = Depends(get_current_identity),
    coordinator: PlaceCoordinator = Depends(get_place_coordinator),
    files: FileStore = Depends(get_file_store),
):
    try:
        body = PlaceCreate(title=title, description=description, address=address)
    except ValidationError as e:
        raise ValidationException(details=invalid_fields(e.errors())) from e

    image_path = files.store(image.file, image.content_type)
    place = coordinator.create_place(identity, body, image_path)
    return PlaceResponse(place=PlaceRead.model_validate(place))


@router.patch("/{place_id}", response_model=PlaceResponse)
def update_place(
    place_id: str,
    body: PlaceUpdate,
    identity: TokenIdentity = Depends(get_current_identity),
    coordinator: PlaceCoordinator = Depends(get_place_coordinator),
):
    place = coordinator.update_place(identity, place_id, body)
    return PlaceResponse(place=PlaceRead.model_validate(place))


@router.delete("/{place_id}", response_model=MessageResponse)
def delete_place(
    place_id: str,
    identity: TokenIdentity = Depends(get_current_identity),
    coordinator: PlaceCoordinator = Depends(get_place_coordinator),
):
    coordinator.delete_place(identity, place_id)
    return MessageResponse(message="Deleted place.")
