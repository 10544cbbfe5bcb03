import io
import os
import tempfile

# Settings are read once, on first import of the app
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["ENVIRONMENT"] = "test"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="places-uploads-")

import pytest
from fastapi.testclient import TestClient

from app.core.exceptions import GeocodingException
from app.domain.schemas.place import Coordinates
from app.infrastructure.database import Base, SessionLocal, engine
from app.infrastructure.file_store import FileStore
from app.interfaces.deps import get_file_store, get_geocoder
from app.main import app

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class FakeGeocoder:
    """Resolves every address except "Nowhere" to the Eiffel Tower."""

    def __init__(self):
        self.calls = []

    def resolve(self, address: str) -> Coordinates:
        self.calls.append(address)
        if address == "Nowhere":
            raise GeocodingException(details={"address": address})
        return Coordinates(lat=48.8584, lng=2.2945)


@pytest.fixture(autouse=True)
def database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    session = SessionLocal()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def geocoder():
    return FakeGeocoder()


@pytest.fixture
def file_store(tmp_path):
    return FileStore(str(tmp_path / "images"), max_bytes=500_000)


@pytest.fixture
def client(geocoder, file_store):
    app.dependency_overrides[get_geocoder] = lambda: geocoder
    app.dependency_overrides[get_file_store] = lambda: file_store
    yield TestClient(app)
    app.dependency_overrides.clear()


def png_upload(name: str = "picture.png"):
    return (name, io.BytesIO(PNG_BYTES), "image/png")


def stored_files(file_store: FileStore):
    if not file_store.upload_dir.exists():
        return []
    return sorted(file_store.upload_dir.iterdir())


def signup(client, name="Ana", email="ana@x.com", password="secret1"):
    return client.post(
        "/api/users/signup",
        data={"name": name, "email": email, "password": password},
        files={"image": png_upload("avatar.png")},
    )


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def create_place(client, token, title="Eiffel Tower", description="A landmark tower", address="Paris"):
    return client.post(
        "/api/places",
        data={"title": title, "description": description, "address": address},
        files={"image": png_upload()},
        headers=auth_header(token),
    )
