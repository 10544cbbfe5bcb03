"""Place service — reads, and the linked place/user mutations.

Creating or deleting a place always changes two rows: the place itself and
the owner's ``places`` id list. ``PlaceCoordinator`` is the only writer of
that list and applies both changes inside one transaction, so a reader
never sees one without the other. Stored image files live outside the
database and are compensated instead:

* create: any failure after the upload was stored discards the file;
* delete: the file is removed only once the transaction has committed.
"""

from enum import Enum
from typing import List

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.application.services.ownership import authorize_owner
from app.core.exceptions import EntityNotFoundException, PersistenceException
from app.core.security import TokenIdentity
from app.domain.models.place import Place
from app.domain.repositories.place_repository import PlaceRepository
from app.domain.repositories.user_repository import UserRepository
from app.domain.schemas.place import PlaceCreate, PlaceUpdate
from app.infrastructure.database import transaction
from app.infrastructure.file_store import FileStore
from app.infrastructure.geocoding import GoogleGeocoder

logger = structlog.get_logger(__name__)


class MutationState(str, Enum):
    PENDING = "pending"
    VALIDATED = "validated"
    AUTHORIZED = "authorized"
    TRANSACTION_OPEN = "transaction_open"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class PlaceCoordinator:
    """Orchestrates place mutations that must stay in sync with their owner."""

    def __init__(
        self,
        db: Session,
        users: UserRepository,
        places: PlaceRepository,
        geocoder: GoogleGeocoder,
        files: FileStore,
    ):
        self.db = db
        self.users = users
        self.places = places
        self.geocoder = geocoder
        self.files = files

    # ------------------------------------------------------------------ reads

    def get_place(self, place_id: str) -> Place:
        try:
            place = self.places.get_by_id(place_id)
        except SQLAlchemyError as e:
            raise PersistenceException("Something went wrong, could not find a place.") from e

        if place is None:
            raise EntityNotFoundException("Could not find a place for the provided id.")
        return place

    def get_places_by_user(self, user_id: str) -> List[Place]:
        try:
            user = self.users.get_by_id(user_id)
            places = self.places.get_many(list(user.places)) if user else []
        except SQLAlchemyError as e:
            raise PersistenceException("Fetching places failed, please try again later.") from e

        if not places:
            raise EntityNotFoundException("Could not find places for the provided user id.")
        return places

    # -------------------------------------------------------------- mutations

    def create_place(self, identity: TokenIdentity, data: PlaceCreate, image_path: str) -> Place:
        """Insert a place and link it to its creator.

        ``data`` has already been validated and the image stored; every
        failure from here on discards that image.
        """
        log = logger.bind(op="create_place", user_id=identity.user_id)
        log.debug("Mutation state", state=MutationState.VALIDATED)

        try:
            return self._create_and_link(identity, data, image_path, log)
        except Exception:
            log.info("Discarding orphaned upload", path=image_path)
            self.files.delete(image_path)
            raise

    def _create_and_link(self, identity: TokenIdentity, data: PlaceCreate, image_path: str, log) -> Place:
        coordinates = self.geocoder.resolve(data.address)

        try:
            owner = self.users.get_for_update(identity.user_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceException("Creating place failed, please try again.") from e

        if owner is None:
            self.db.rollback()
            raise EntityNotFoundException("Could not find user for provided id.")
        log.debug("Mutation state", state=MutationState.AUTHORIZED)

        place = Place(
            title=data.title,
            description=data.description,
            address=data.address,
            lat=coordinates.lat,
            lng=coordinates.lng,
            image=image_path,
            creator_id=owner.id,
        )

        try:
            with transaction(self.db):
                log.debug("Mutation state", state=MutationState.TRANSACTION_OPEN)
                self.places.add(place)
                owner.places.append(place.id)
                self.users.add(owner)
        except SQLAlchemyError as e:
            log.warning("Transaction rolled back", state=MutationState.ROLLED_BACK, error=type(e).__name__)
            raise PersistenceException("Creating place failed, please try again.") from e

        log.info("Place created", state=MutationState.COMMITTED, place_id=place.id)
        return place

    def update_place(self, identity: TokenIdentity, place_id: str, data: PlaceUpdate) -> Place:
        log = logger.bind(op="update_place", user_id=identity.user_id, place_id=place_id)

        try:
            place = self.places.get_by_id(place_id)
        except SQLAlchemyError as e:
            raise PersistenceException("Something went wrong, could not update place.") from e

        if place is None:
            raise EntityNotFoundException("Could not find place for this id.")

        authorize_owner(identity.user_id, place.creator_id, action="edit")

        try:
            with transaction(self.db):
                place.title = data.title
                place.description = data.description
                self.places.add(place)
        except SQLAlchemyError as e:
            log.warning("Transaction rolled back", state=MutationState.ROLLED_BACK, error=type(e).__name__)
            raise PersistenceException("Something went wrong, could not update place.") from e

        log.info("Place updated", state=MutationState.COMMITTED)
        return place

    def delete_place(self, identity: TokenIdentity, place_id: str) -> None:
        """Remove a place and unlink it from its creator, then drop its image."""
        log = logger.bind(op="delete_place", user_id=identity.user_id, place_id=place_id)

        try:
            place = self.places.get_with_creator(place_id)
        except SQLAlchemyError as e:
            raise PersistenceException("Something went wrong, could not delete place.") from e

        if place is None:
            raise EntityNotFoundException("Could not find place for this id.")

        authorize_owner(identity.user_id, place.creator.id, action="delete")
        log.debug("Mutation state", state=MutationState.AUTHORIZED)

        image_path = place.image

        try:
            with transaction(self.db):
                log.debug("Mutation state", state=MutationState.TRANSACTION_OPEN)
                owner = self.users.get_for_update(place.creator_id)
                self.places.delete(place)
                self._unlink(owner.places, place.id, log)
                self.users.add(owner)
        except SQLAlchemyError as e:
            # The place row is back; its image stays referenced
            log.warning("Transaction rolled back", state=MutationState.ROLLED_BACK, error=type(e).__name__)
            raise PersistenceException("Something went wrong, could not delete place.") from e

        log.info("Place deleted", state=MutationState.COMMITTED)
        self.files.delete(image_path)

    @staticmethod
    def _unlink(place_ids: List[str], place_id: str, log) -> None:
        if place_id in place_ids:
            place_ids.remove(place_id)
        else:
            log.warning("Place was missing from its owner's list")
