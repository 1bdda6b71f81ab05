"""
Pytest configuration shared by the generation and API tests.

The database is pointed at in-memory SQLite before any application module
is imported; the OpenAI SDK is replaced by AsyncMock-backed namespaces.
"""

import json
import os
from types import SimpleNamespace
from unittest.mock import AsyncMock

os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient

from database.database import Base, engine
from generation.gpt_client import GenerationClient
from generation.orchestrator import GenerationOrchestrator
from generation.retry_policy import RetryPolicy


class ServiceError(Exception):
    """Stand-in for an SDK error carrying an HTTP status."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code


def completion(content, annotations=None):
    message = SimpleNamespace(content=content, annotations=annotations or [])
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def sections_json(*sections):
    return json.dumps({"sections": list(sections)})


def make_sdk():
    """Namespace shaped like AsyncOpenAI with every endpoint an AsyncMock."""
    return SimpleNamespace(
        chat=SimpleNamespace(completions=SimpleNamespace(create=AsyncMock())),
        images=SimpleNamespace(generate=AsyncMock(), edit=AsyncMock()),
        audio=SimpleNamespace(
            speech=SimpleNamespace(create=AsyncMock()),
            transcriptions=SimpleNamespace(create=AsyncMock()),
        ),
        videos=SimpleNamespace(create=AsyncMock(), retrieve=AsyncMock()),
    )


async def _no_sleep(delay):
    return None


def fast_policy(max_retries: int = 3) -> RetryPolicy:
    return RetryPolicy(max_retries=max_retries, initial_delay=1.0, jitter=lambda: 0.0, sleep=_no_sleep)


@pytest.fixture
def sdk():
    return make_sdk()


@pytest.fixture
def generation_client(sdk):
    return GenerationClient(api_key="sk-test", client_factory=lambda key, base_url: sdk)


@pytest.fixture
def orchestrator(generation_client):
    return GenerationOrchestrator(generation_client, retry_policy=fast_policy(), clock=lambda: 1700000000.0)


@pytest.fixture
def client(generation_client, orchestrator):
    from app import app
    from routers.dependencies import get_generation_client, get_orchestrator

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    app.dependency_overrides[get_generation_client] = lambda: generation_client
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
