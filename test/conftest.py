"""
Test Configuration and Fixtures

This module provides:
- Environment pinned before any application module reads settings
- A fresh in-memory document store per test
- A TestClient running the real app with the document store provider overridden
- JWT helpers for authenticated requests
- Kvrocks fixtures for integration tests (skipped when Kvrocks is unreachable)
"""

# =============================================================================
# CRITICAL: Environment setup MUST happen before any other imports
# settings and the loguru sinks are built at import time
# =============================================================================
import os
from pathlib import Path


def _early_setup_test_environment() -> None:
    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)

    os.environ['STORE_BACKEND'] = 'memory'
    os.environ['SECRET_KEY'] = 'test_secret_key'

    worker_id = os.environ.get('PYTEST_XDIST_WORKER', 'master')
    os.environ['KVROCKS_KEY_PREFIX'] = 'test_' if worker_id == 'master' else f'test_{worker_id}_'


_early_setup_test_environment()

from collections.abc import AsyncGenerator, Callable, Generator  # noqa: E402

from dependency_injector import providers  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
import pytest  # noqa: E402

from src.platform.config.core_setting import settings  # noqa: E402
from src.platform.config.di import container  # noqa: E402
from src.service.ticketing.driven_adapter.store.in_memory_document_store import (  # noqa: E402
    InMemoryDocumentStore,
)
from src.service.ticketing.driven_adapter.store.kvrocks_document_store import (  # noqa: E402
    KvrocksDocumentStore,
)
from src.service.ticketing.driving_adapter.http_controller.auth.jwt_auth import (  # noqa: E402
    JwtAuth,
)
from test.kvrocks_test_client import (  # noqa: E402
    kvrocks_test_client,
    kvrocks_test_client_async,
)


# =============================================================================
# Document store
# =============================================================================
@pytest.fixture
def document_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore(buffer_size=100)


# =============================================================================
# HTTP
# =============================================================================
@pytest.fixture
def jwt_auth() -> JwtAuth:
    return JwtAuth()


@pytest.fixture
def auth_headers(jwt_auth: JwtAuth) -> Callable[[str], dict[str, str]]:
    def _headers(user_id: str) -> dict[str, str]:
        return {'Authorization': f'Bearer {jwt_auth.create_jwt_token(user_id)}'}

    return _headers


@pytest.fixture
def client(document_store: InMemoryDocumentStore) -> Generator[TestClient, None, None]:
    """Real app (lifespan included) backed by this test's in-memory store"""
    from src.main import app

    with container.document_store.override(providers.Object(document_store)):
        with TestClient(app) as test_client:
            yield test_client


# =============================================================================
# Kvrocks (integration)
# =============================================================================
@pytest.fixture
async def kvrocks_document_store() -> AsyncGenerator[KvrocksDocumentStore, None]:
    if not kvrocks_test_client.is_reachable():
        pytest.skip(f'Kvrocks not reachable at {settings.KVROCKS_HOST}:{settings.KVROCKS_PORT}')

    kvrocks_test_client.delete_prefixed_keys(settings.KVROCKS_KEY_PREFIX)
    await kvrocks_test_client_async.initialize()
    try:
        yield KvrocksDocumentStore(
            kvrocks=kvrocks_test_client_async, key_prefix=settings.KVROCKS_KEY_PREFIX
        )
    finally:
        await kvrocks_test_client_async.disconnect()
        kvrocks_test_client.delete_prefixed_keys(settings.KVROCKS_KEY_PREFIX)
