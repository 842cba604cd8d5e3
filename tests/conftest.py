"""
Shared fixtures: an in-memory MongoDB (mongomock) wired into the app factory.
"""

import mongomock
import pytest
from fastapi.testclient import TestClient

from config import Settings
from database import FLIGHTS_COLLECTION, FlightStore
from flight_service import FlightService
from main import create_app


@pytest.fixture
def database():
    return mongomock.MongoClient()["flights_test"]


@pytest.fixture
def store(database) -> FlightStore:
    flight_store = FlightStore(database[FLIGHTS_COLLECTION])
    flight_store.ensure_indexes()
    return flight_store


@pytest.fixture
def service(store) -> FlightService:
    return FlightService(store)


@pytest.fixture
def settings() -> Settings:
    return Settings(environment="test", max_body_bytes=4096)


@pytest.fixture
def app(database, settings):
    return create_app(database=database, settings=settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def passenger() -> dict:
    return {
        "id": 1,
        "name": "Ada Lovelace",
        "hasConnections": False,
        "age": 36,
        "flightCategory": "Platinum",
        "reservationId": "RES-001",
        "hasCheckedBaggage": True,
    }


def make_passenger(passenger_id: int, **overrides) -> dict:
    data = {
        "id": passenger_id,
        "name": f"Passenger {passenger_id}",
        "hasConnections": passenger_id % 2 == 0,
        "age": 20 + passenger_id,
        "flightCategory": "Normal",
        "reservationId": f"RES-{passenger_id:03d}",
        "hasCheckedBaggage": False,
    }
    data.update(overrides)
    return data
