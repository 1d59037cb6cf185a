from fastapi.testclient import TestClient

from gotrabandhus.core.errors import StorageError
from gotrabandhus.core.scheduler import StorageSupervisor
from gotrabandhus.main import create_app
from gotrabandhus.storage.memory_store import InMemoryUserStore


class FlakyStore(InMemoryUserStore):
    name = "flaky"

    def __init__(self):
        super().__init__()
        self.healthy = True
        self.resets = 0

    def ping(self):
        if not self.healthy:
            raise StorageError("Database is unreachable")

    def reset_connections(self):
        self.resets += 1


def test_backoff_doubles_until_ceiling_and_resets_on_recovery():
    store = FlakyStore()
    supervisor = StorageSupervisor(store, interval_seconds=10, max_interval_seconds=60)

    store.healthy = False
    intervals = []
    for _ in range(4):
        assert supervisor.check() is False
        intervals.append(supervisor.current_interval)

    assert intervals == [20, 40, 60, 60]
    assert supervisor.available is False
    assert store.resets == 4

    store.healthy = True
    assert supervisor.check() is True
    assert supervisor.available is True
    assert supervisor.consecutive_failures == 0
    assert supervisor.current_interval == 10


def test_start_and_stop_schedule_the_job():
    supervisor = StorageSupervisor(FlakyStore(), interval_seconds=30)

    supervisor.start()
    try:
        assert supervisor.scheduler.running
        assert supervisor.scheduler.get_job("storage_health_check") is not None
    finally:
        supervisor.stop()
    assert not supervisor.scheduler.running


def test_health_reports_storage_state(settings):
    store = FlakyStore()
    app = create_app(settings, store=store)
    with TestClient(app) as client:
        assert client.get("/health").json() == {
            "status": "healthy",
            "storage": {"backend": "flaky", "available": True},
        }

        store.healthy = False
        app.state.storage_supervisor.check()

        assert client.get("/health").json()["status"] == "degraded"


def test_root(client):
    assert client.get("/").json() == {"message": "GotraBandhus API", "version": "1.0.0"}


class LateStore(FlakyStore):
    """Store whose backend is down when the app starts"""
    name = "late"

    def __init__(self):
        super().__init__()
        self.schema_created = False

    def create_schema(self):
        if not self.healthy:
            raise StorageError("Could not create database schema")
        self.schema_created = True


def test_schema_created_once_store_recovers(settings):
    store = LateStore()
    store.healthy = False

    app = create_app(settings, store=store)
    supervisor = app.state.storage_supervisor
    assert supervisor.available is False
    assert store.schema_created is False

    store.healthy = True
    assert supervisor.check() is True
    assert store.schema_created is True
