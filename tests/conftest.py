"""
Shared pytest fixtures.

MongoDB is replaced by an in-memory mongomock database and uploads go to a
temporary directory.
"""
import os
import tempfile

os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="trip-albums-uploads-"))

import mongomock
import pytest
from fastapi.testclient import TestClient

import main
from database import get_db
from schemas import TripCreate
from storage import PhotoStorage
from trips import create_trip


@pytest.fixture
def db():
    return mongomock.MongoClient()["trip_albums_test"]


@pytest.fixture
def storage(tmp_path):
    return PhotoStorage(str(tmp_path / "uploads"))


@pytest.fixture
def client(db, storage):
    main.app.dependency_overrides[get_db] = lambda: db
    main.app.dependency_overrides[main.get_storage] = lambda: storage
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()


@pytest.fixture
def trip_payload():
    """One flight and one airport hotel night."""
    return {
        "tripName": "Chicago Layover",
        "segments": [
            {
                "date": "2025-02-16",
                "type": "flight",
                "transport": "AA 3180",
                "origin": {"name": "DCA", "code": "DCA", "coordinates": [38.8512, -77.0402]},
                "destination": {"name": "ORD", "code": "ORD", "coordinates": [41.9742, -87.9073]},
            }
        ],
        "stays": [
            {
                "location": "Hilton Garden Inn O'Hare",
                "coordinates": [42.000855, -87.864553],
                "dateStart": "2025-02-16",
                "dateEnd": "2025-02-17",
                "notes": "Airport hotel",
            }
        ],
    }


@pytest.fixture
def trip(db, trip_payload):
    return create_trip(db, TripCreate(**trip_payload))


@pytest.fixture
def stay_id(trip):
    return str(trip["stays"][0]["_id"])


@pytest.fixture
def segment_id(trip):
    return str(trip["segments"][0]["_id"])
