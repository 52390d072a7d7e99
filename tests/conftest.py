from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from api import create_app
from api.container import EXTENSION_KEY
from models.db_storage import DBStorage
from models.pet import Pet
from models.role import Role, UserRole
from models.seed import seed_authorization
from models.user import User
from utils.security import hash_password

PASSWORD = "password123"


class BrokenStorage:
    """Storage whose session fails every query, like a dropped database connection."""

    class _Session:
        def query(self, *args, **kwargs):
            raise OperationalError("SELECT 1", {}, Exception("database is locked"))

        def rollback(self):
            pass

    def get_session(self):
        return self._Session()


class RecordingNotifier:
    """Stands in for DeferredNotifier; keeps the scheduled calls instead of running them."""

    def __init__(self):
        self.calls = []

    def schedule(self, job, *args, **kwargs):
        self.calls.append((job, args, kwargs))


@pytest.fixture
def storage():
    """Seeded in-memory database for component tests."""
    store = DBStorage("sqlite://")
    store.reload()
    seed_authorization(store)
    yield store
    store.close()


@pytest.fixture
def app():
    app = create_app("testing")
    app.extensions[EXTENSION_KEY].notifier = RecordingNotifier()
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def svc(app):
    return app.extensions[EXTENSION_KEY]


def make_user(storage, email, roles=("User",), is_admin=False, password=PASSWORD, first_name="Test"):
    user = User(
        first_name=first_name,
        last_name="User",
        email=email,
        phone="0900000000",
        username=email.split("@")[0],
        password_hash=hash_password(password),
        is_admin=is_admin,
    )
    storage.new(user)
    session = storage.get_session()
    for name in roles:
        role = session.query(Role).filter_by(name=name).one()
        storage.new(UserRole(user_id=user.id, role_id=role.id))
    storage.save()
    return user


def make_pet(storage, owner, name="Milo"):
    pet = Pet(name=name, type="dog", breed="corgi", date_of_birth=date(2020, 1, 2), user_id=owner.id)
    storage.new(pet)
    storage.save()
    return pet


def login(client, email, password=PASSWORD):
    res = client.post("/api/v1/login", json={"email": email, "password": password})
    assert res.status_code == 200, res.get_data(as_text=True)
    return res.get_json()


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_factory(app, svc):
    def _make(email, **kwargs):
        with app.app_context():
            return make_user(svc.storage, email, **kwargs)

    return _make


@pytest.fixture
def pet_factory(app, svc):
    def _make(owner, **kwargs):
        with app.app_context():
            return make_pet(svc.storage, owner, **kwargs)

    return _make


@pytest.fixture
def auth_headers(client, user_factory):
    """Log a fresh user in and return its Authorization header."""

    def _headers(email, **kwargs):
        user_factory(email, **kwargs)
        return bearer(login(client, email)["access_token"])

    return _headers
