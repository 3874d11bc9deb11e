import asyncio

from fastapi.testclient import TestClient

from conftest import ACCOUNTS, FakeLedger
from surety_oracles.config import FLIGHTS
from surety_oracles.coordinator import OracleCoordinator
from surety_oracles.dispatcher import EventIndex
from surety_oracles.server import create_app


def test_api_and_flights():
    with TestClient(create_app()) as client:
        assert client.get("/api").json() == {"message": "API Online!"}
        flights = client.get("/flights").json()["result"]
        assert flights == FLIGHTS
        assert flights[0] == {"id": 0, "name": "JJ3720"}
        assert len(flights) == 7


def test_event_index_null_then_latest_value():
    index = EventIndex()
    with TestClient(create_app(index)) as client:
        assert client.get("/eventIndex").json() == {"result": None}
        index.set(5)
        assert client.get("/eventIndex").json() == {"result": 5}


def test_startup_runs_coordinator_and_health_reports_it():
    ledger = FakeLedger(indexes={ACCOUNTS[5]: (0, 1, 2), ACCOUNTS[6]: (3, 4, 5)})

    async def factory(index):
        return OracleCoordinator(ledger, event_index=index, poll_interval=0.01)

    app = create_app(coordinator_factory=factory)
    with TestClient(app) as client:
        health = client.get("/health").json()
        assert health["status"] == "ok"
        assert health["listening"] is True
        assert health["oracles"] == 2
    assert app.state.coordinator.ready is False


def test_factory_failure_keeps_api_serving():
    async def factory(index):
        raise ConnectionError("ledger down")

    with TestClient(create_app(coordinator_factory=factory)) as client:
        assert client.get("/eventIndex").json() == {"result": None}
        assert client.get("/health").json()["listening"] is False
