from datetime import datetime, timedelta
from itertools import count

import pytest

from mun_tracker.app import create_testing_app
from mun_tracker.repositories import RepositoryFactory
from mun_tracker.services import AnalyticsService, CommitteeService, EventService


class FakeClock:
    """Returns a strictly increasing timestamp on every call."""

    def __init__(self, start: datetime = datetime(2025, 3, 1, 9, 0, 0)):
        self.start = start
        self._ticks = count()

    def __call__(self) -> datetime:
        return self.start + timedelta(seconds=next(self._ticks))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def repository(clock):
    repo = RepositoryFactory.create_memory_repository()
    repo.clock = clock
    yield repo
    repo.database.close()


@pytest.fixture
def committee_service(repository):
    return CommitteeService(repository)


@pytest.fixture
def event_service(repository):
    return EventService(repository)


@pytest.fixture
def analytics_service(repository):
    return AnalyticsService(repository)


@pytest.fixture
def mun_app(clock):
    mun_app = create_testing_app()
    mun_app.repository.clock = clock
    yield mun_app
    mun_app.database.close()


@pytest.fixture
def client(mun_app):
    return mun_app.app.test_client()


@pytest.fixture
def committee_id(client):
    response = client.post("/api/committees", json={"name": "UNSC", "password": "secret"})
    assert response.status_code == 200
    return response.get_json()["id"]
