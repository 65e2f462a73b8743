import bcrypt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from gameshelf.db import Database
from gameshelf.main import create_app
from gameshelf.services.auth_service import AuthService
from gameshelf.services.catalog import CatalogStore
from gameshelf.services.library import LibraryStore

from .helpers import FakeProvider, login_headers, provider_record


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    real_gensalt = bcrypt.gensalt
    monkeypatch.setattr(bcrypt, "gensalt", lambda rounds=4, prefix=b"2b": real_gensalt(4, prefix))


@pytest.fixture
def database():
    db = Database("sqlite://", poolclass=StaticPool)
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def auth_service(database):
    return AuthService(database)


@pytest.fixture
def catalog(database):
    return CatalogStore(database)


@pytest.fixture
def library(database):
    return LibraryStore(database)


@pytest.fixture
def user(auth_service):
    return auth_service.create_account("player", "player-password")


@pytest.fixture
def admin(auth_service):
    return auth_service.create_account("root", "admin-password", is_admin=True)


@pytest.fixture
def available_game(catalog):
    game = catalog.create_game("Celeste", file_path="/games/celeste.zip")
    return catalog.update_game(game.id, {"is_available": True})


@pytest.fixture
def provider():
    return FakeProvider([provider_record()])


@pytest.fixture
def client(database, provider):
    app = create_app(database=database, provider=provider)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers(client, admin):
    return login_headers(client, "root", "admin-password")


@pytest.fixture
def user_headers(client, user):
    return login_headers(client, "player", "player-password")

