import pytest
from fastapi.testclient import TestClient

from conftest import ASHA
from gotrabandhus.core.database import create_db_engine
from gotrabandhus.core.errors import DuplicateEmailError, StorageError
from gotrabandhus.main import create_app
from gotrabandhus.storage.factory import create_user_store
from gotrabandhus.storage.memory_store import InMemoryUserStore
from gotrabandhus.storage.sql_store import SqlAlchemyUserStore


def new_user(email="asha@x.com"):
    return {
        "email": email,
        "hashed_password": "digest",
        "first_name": "Asha",
        "last_name": "Rao",
        "nickname": "ash",
        "phone": "123",
        "gender": None,
        "current_city": "",
        "profile_completed": False,
    }


@pytest.fixture(params=["sql", "memory"])
def user_store(request):
    if request.param == "memory":
        return InMemoryUserStore()
    store = SqlAlchemyUserStore(create_db_engine("sqlite://"))
    store.create_schema()
    return store


def test_insert_and_find(user_store):
    created = user_store.insert(new_user())

    assert created.id is not None
    assert user_store.find_by_id(created.id).email == "asha@x.com"
    assert user_store.find_by_email("asha@x.com").id == created.id
    assert user_store.find_by_email("nobody@x.com") is None
    assert user_store.find_by_id(created.id + 100) is None


def test_insert_duplicate_email(user_store):
    user_store.insert(new_user())
    with pytest.raises(DuplicateEmailError):
        user_store.insert(new_user())


def test_update(user_store):
    created = user_store.insert(new_user())

    updated = user_store.update(created.id, {"gotra": "G1", "hide_phone": True})

    assert updated.gotra == "G1"
    assert updated.hide_phone is True
    assert updated.first_name == "Asha"
    assert updated.updated_at is not None
    assert user_store.find_by_id(created.id).gotra == "G1"


def test_update_missing_user(user_store):
    assert user_store.update(1234, {"gotra": "G1"}) is None


def test_update_to_taken_email(user_store):
    user_store.insert(new_user("ravi@x.com"))
    asha = user_store.insert(new_user())
    with pytest.raises(DuplicateEmailError):
        user_store.update(asha.id, {"email": "ravi@x.com"})


def test_returned_records_are_snapshots(user_store):
    created = user_store.insert(new_user())
    created.gotra = "changed locally"
    assert user_store.find_by_id(created.id).gotra != "changed locally"


def test_factory_selects_backend(settings):
    assert isinstance(create_user_store(settings), InMemoryUserStore)
    sql_settings = settings.model_copy(update={"STORAGE_BACKEND": "sql", "DATABASE_URL": "sqlite://"})
    assert isinstance(create_user_store(sql_settings), SqlAlchemyUserStore)


def test_app_runs_on_sql_store(settings):
    sql_settings = settings.model_copy(update={"STORAGE_BACKEND": "sql", "DATABASE_URL": "sqlite://"})
    with TestClient(create_app(sql_settings)) as client:
        registered = client.post("/api/auth/register", json=ASHA)
        assert registered.status_code == 201
        duplicate = client.post("/api/auth/register", json={**ASHA, "email": "asha@X.com"})
        assert duplicate.status_code == 400


class BrokenStore(InMemoryUserStore):
    name = "broken"

    def find_by_email(self, email):
        raise StorageError("Error fetching user by email") from ConnectionError("db host down")

    def ping(self):
        raise StorageError("Database is unreachable")


def test_storage_errors_are_generic_500s(settings):
    with TestClient(create_app(settings, store=BrokenStore())) as client:
        response = client.post("/api/auth/register", json=ASHA)

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}
