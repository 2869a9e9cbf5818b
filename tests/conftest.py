# tests/conftest.py
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.main import create_app
from app.ticket.store import TicketStore


class FakeClock:
    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return TicketStore(clock=clock)


@pytest.fixture
def make_client():
    def _make(store: TicketStore | None = None, **overrides) -> TestClient:
        settings = Settings(CLEANUP_INTERVAL_SECONDS=0, **overrides)
        return TestClient(create_app(settings=settings, store=store or TicketStore()), raise_server_exceptions=False)

    return _make


@pytest.fixture
def client(make_client):
    return make_client()


@pytest.fixture
def new_ticket(client):
    def _create(**fields):
        data = {"name": "Budi", "division": "Finance", "description": "Printer jammed", **fields}
        r = client.post("/api/tickets", data=data)
        assert r.status_code == 201, r.text
        return r.json()["ticket"]

    return _create
