"""Pytest configuration and fixtures for API tests."""

from typing import Any, List, Optional, Sequence, Tuple

import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_raw_sql_repository
from config import Settings
from main import create_app
from repositories.secrets import EnvSecretStore
from schemas import QueryMeta, QueryResult
from services.rate_limit import FixedWindowRateLimiter

API_SECRET = "test-secret-value"


class FakeClock:
    """Deterministic monotonic clock for the rate limiter."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingRepository:
    """Stands in for the database: records statements, returns a canned result."""

    def __init__(self):
        self.calls: List[Tuple[str, list]] = []
        self.rows: List[dict] = []
        self.changes = 1
        self.error: Optional[Exception] = None

    async def execute(self, sql: str, params: Sequence[Any] | None = None) -> QueryResult:
        self.calls.append((sql, list(params or [])))
        if self.error is not None:
            raise self.error
        return QueryResult(
            results=self.rows,
            success=True,
            meta=QueryMeta(changes=self.changes, rows_read=len(self.rows)),
        )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def repository():
    return RecordingRepository()


@pytest.fixture
def rate_limiter(clock):
    return FixedWindowRateLimiter(limit=100, window_seconds=60, clock=clock)


@pytest.fixture
def app(repository, rate_limiter):
    app = create_app(
        settings=Settings(),
        secret_store=EnvSecretStore(API_SECRET),
        rate_limiter=rate_limiter,
    )
    app.dependency_overrides[get_raw_sql_repository] = lambda: repository
    return app


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {API_SECRET}"}
