import io
from pathlib import Path

import pytest
from sqlalchemy import update
from sqlalchemy.exc import OperationalError

from app.application.services.place_service import PlaceCoordinator
from app.core.exceptions import (
    AuthException,
    EntityNotFoundException,
    GeocodingException,
    PersistenceException,
)
from app.core.security import TokenIdentity
from app.domain.models.place import Place
from app.domain.models.user import User
from app.domain.schemas.place import PlaceCreate, PlaceUpdate
from app.infrastructure.database import transaction
from app.infrastructure.repositories.place_repository import SQLAlchemyPlaceRepository
from app.infrastructure.repositories.user_repository import SQLAlchemyUserRepository
from conftest import PNG_BYTES

EIFFEL = PlaceCreate(title="Eiffel Tower", description="A landmark tower", address="Paris")


@pytest.fixture
def users(db_session):
    return SQLAlchemyUserRepository(db_session, User)


@pytest.fixture
def places(db_session):
    return SQLAlchemyPlaceRepository(db_session, Place)


@pytest.fixture
def coordinator(db_session, users, places, geocoder, file_store):
    return PlaceCoordinator(db_session, users, places, geocoder, file_store)


def make_user(db_session, email="ana@x.com") -> User:
    user = User(name="Ana", email=email, password_hash="x", image="avatar.png", places=[])
    with transaction(db_session):
        db_session.add(user)
    return user


def identity_of(user: User) -> TokenIdentity:
    return TokenIdentity(user_id=user.id, email=user.email)


def upload(file_store) -> str:
    return file_store.store(io.BytesIO(PNG_BYTES), "image/png")


def reload_places(db_session, user_id):
    db_session.expire_all()
    return list(db_session.get(User, user_id).places)


def test_create_links_place_to_creator_once(db_session, coordinator, file_store):
    user = make_user(db_session)
    image_path = upload(file_store)

    place = coordinator.create_place(identity_of(user), EIFFEL, image_path)

    assert place.creator_id == user.id
    assert (place.lat, place.lng) == (48.8584, 2.2945)
    assert place.image == image_path
    assert reload_places(db_session, user.id) == [place.id]
    assert Path(image_path).exists()


def test_create_rolls_back_both_rows_when_owner_write_fails(db_session, coordinator, users, file_store, monkeypatch):
    user = make_user(db_session)
    image_path = upload(file_store)

    def failing_add(obj):
        raise OperationalError("UPDATE users", {}, Exception("disk I/O error"))

    monkeypatch.setattr(users, "add", failing_add)

    with pytest.raises(PersistenceException) as exc:
        coordinator.create_place(identity_of(user), EIFFEL, image_path)

    assert exc.value.message == "Creating place failed, please try again."
    assert db_session.query(Place).count() == 0
    assert reload_places(db_session, user.id) == []
    assert not Path(image_path).exists()


def test_create_aborts_when_owner_changed_concurrently(db_session, coordinator, places, file_store, monkeypatch):
    user = make_user(db_session)
    image_path = upload(file_store)
    real_add = places.add

    def add_after_concurrent_write(obj):
        # Another writer bumps the user row between our read and our write
        db_session.execute(
            update(User)
            .where(User.id == user.id)
            .values(version=User.version + 1)
            .execution_options(synchronize_session=False)
        )
        return real_add(obj)

    monkeypatch.setattr(places, "add", add_after_concurrent_write)

    with pytest.raises(PersistenceException):
        coordinator.create_place(identity_of(user), EIFFEL, image_path)

    assert db_session.query(Place).count() == 0
    assert reload_places(db_session, user.id) == []


def test_create_discards_upload_when_geocoding_fails(db_session, coordinator, file_store):
    user = make_user(db_session)
    image_path = upload(file_store)
    nowhere = PlaceCreate(title="Lost", description="Nowhere at all", address="Nowhere")

    with pytest.raises(GeocodingException):
        coordinator.create_place(identity_of(user), nowhere, image_path)

    assert not Path(image_path).exists()
    assert db_session.query(Place).count() == 0


def test_create_for_unknown_user_is_not_found(db_session, coordinator, file_store):
    image_path = upload(file_store)

    with pytest.raises(EntityNotFoundException):
        coordinator.create_place(TokenIdentity("missing", "ghost@x.com"), EIFFEL, image_path)

    assert not Path(image_path).exists()


def test_update_changes_title_and_description(db_session, coordinator, file_store):
    user = make_user(db_session)
    place = coordinator.create_place(identity_of(user), EIFFEL, upload(file_store))

    updated = coordinator.update_place(
        identity_of(user), place.id, PlaceUpdate(title="Tour Eiffel", description="Iron lattice tower")
    )

    assert updated.title == "Tour Eiffel"
    db_session.expire_all()
    assert db_session.get(Place, place.id).description == "Iron lattice tower"


def test_update_by_other_user_is_denied(db_session, coordinator, file_store):
    owner = make_user(db_session)
    other = make_user(db_session, email="bob@x.com")
    place = coordinator.create_place(identity_of(owner), EIFFEL, upload(file_store))

    with pytest.raises(AuthException) as exc:
        coordinator.update_place(identity_of(other), place.id, PlaceUpdate(title="Mine", description="Not yours"))

    assert exc.value.status_code == 403
    db_session.expire_all()
    assert db_session.get(Place, place.id).title == "Eiffel Tower"


def test_update_missing_place_is_not_found(db_session, coordinator):
    user = make_user(db_session)

    with pytest.raises(EntityNotFoundException):
        coordinator.update_place(identity_of(user), "missing", PlaceUpdate(title="T", description="Nothing"))


def test_delete_unlinks_place_and_removes_image(db_session, coordinator, file_store):
    user = make_user(db_session)
    kept = coordinator.create_place(identity_of(user), EIFFEL, upload(file_store))
    image_path = upload(file_store)
    doomed = coordinator.create_place(identity_of(user), EIFFEL, image_path)

    coordinator.delete_place(identity_of(user), doomed.id)

    db_session.expire_all()
    assert db_session.get(Place, doomed.id) is None
    assert reload_places(db_session, user.id) == [kept.id]
    assert not Path(image_path).exists()


def test_delete_by_other_user_keeps_everything(db_session, coordinator, file_store):
    owner = make_user(db_session)
    other = make_user(db_session, email="bob@x.com")
    image_path = upload(file_store)
    place = coordinator.create_place(identity_of(owner), EIFFEL, image_path)

    with pytest.raises(AuthException):
        coordinator.delete_place(identity_of(other), place.id)

    db_session.expire_all()
    assert db_session.get(Place, place.id) is not None
    assert reload_places(db_session, owner.id) == [place.id]
    assert Path(image_path).exists()


def test_delete_rollback_keeps_place_link_and_image(db_session, coordinator, users, file_store, monkeypatch):
    user = make_user(db_session)
    image_path = upload(file_store)
    place = coordinator.create_place(identity_of(user), EIFFEL, image_path)

    def failing_add(obj):
        raise OperationalError("UPDATE users", {}, Exception("deadlock detected"))

    monkeypatch.setattr(users, "add", failing_add)

    with pytest.raises(PersistenceException):
        coordinator.delete_place(identity_of(user), place.id)

    db_session.expire_all()
    assert db_session.get(Place, place.id) is not None
    assert reload_places(db_session, user.id) == [place.id]
    assert Path(image_path).exists()


def test_delete_survives_image_delete_failure(db_session, coordinator, file_store):
    user = make_user(db_session)
    image_path = upload(file_store)
    place = coordinator.create_place(identity_of(user), EIFFEL, image_path)
    Path(image_path).unlink()

    coordinator.delete_place(identity_of(user), place.id)

    db_session.expire_all()
    assert db_session.get(Place, place.id) is None
    assert reload_places(db_session, user.id) == []


def test_places_by_user_follow_list_order(db_session, coordinator, file_store):
    user = make_user(db_session)
    first = coordinator.create_place(identity_of(user), EIFFEL, upload(file_store))
    second = coordinator.create_place(identity_of(user), EIFFEL, upload(file_store))

    assert [p.id for p in coordinator.get_places_by_user(user.id)] == [first.id, second.id]


def test_places_by_user_without_places_is_not_found(db_session, coordinator):
    user = make_user(db_session)

    with pytest.raises(EntityNotFoundException):
        coordinator.get_places_by_user(user.id)
