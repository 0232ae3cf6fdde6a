import pytest
from fastapi.testclient import TestClient

from app.config import settings
from app.features.email_sync.api import router as email_sync_api
from app.features.email_sync.services import EventService, MatchService, ThreadService
from app.features.job_validation.api import router as job_validation_api
from app.features.job_validation.services import ValidationService
from tests.fakes import (
    InMemoryEventRepository,
    InMemoryJobRepository,
    InMemoryJobSnapshotRepository,
    InMemoryStore,
    InMemoryThreadRepository,
)

WEBHOOK_SECRET = "test-webhook-secret"


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def thread_repo(store):
    return InMemoryThreadRepository(store)


@pytest.fixture
def event_repo(store):
    return InMemoryEventRepository(store)


@pytest.fixture
def job_repo(store):
    return InMemoryJobRepository(store)


@pytest.fixture
def thread_service(thread_repo, job_repo):
    return ThreadService(threads=thread_repo, jobs=job_repo)


@pytest.fixture
def match_service(thread_repo, job_repo):
    return MatchService(threads=thread_repo, jobs=job_repo)


@pytest.fixture
def event_service(event_repo, thread_repo, job_repo):
    return EventService(events=event_repo, threads=thread_repo, jobs=job_repo, max_stage_attempts=3)


@pytest.fixture
def snapshot_repo():
    return InMemoryJobSnapshotRepository()


@pytest.fixture
def validation_service(snapshot_repo):
    return ValidationService(repository=snapshot_repo)


@pytest.fixture
def webhook_secret(monkeypatch):
    monkeypatch.setattr(settings, "EMAIL_SYNC_WEBHOOK_SECRET", WEBHOOK_SECRET)
    return WEBHOOK_SECRET


@pytest.fixture
def auth_headers(webhook_secret):
    return {"x-webhook-secret": webhook_secret}


@pytest.fixture
def api_client(thread_service, match_service, event_service, validation_service):
    from app.main import app

    app.dependency_overrides[email_sync_api.get_thread_service] = lambda: thread_service
    app.dependency_overrides[email_sync_api.get_match_service] = lambda: match_service
    app.dependency_overrides[email_sync_api.get_event_service] = lambda: event_service
    app.dependency_overrides[job_validation_api.get_validation_service] = lambda: validation_service

    yield TestClient(app)

    app.dependency_overrides.clear()
