"""
https://python-dependency-injector.ets-labs.org/index.html
https://python-dependency-injector.ets-labs.org/examples/fastapi.html
"""

from dependency_injector import containers, providers

from src.platform.config.core_setting import Settings, settings
from src.platform.state.kvrocks_client import kvrocks_client
from src.service.ticketing.driven_adapter.store.in_memory_document_store import (
    InMemoryDocumentStore,
)
from src.service.ticketing.driven_adapter.store.kvrocks_document_store import (
    KvrocksDocumentStore,
)
from src.service.ticketing.driving_adapter.http_controller.auth.jwt_auth import JwtAuth


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)

    # Document store backends (one instance per process so live queries see every write)
    in_memory_document_store = providers.Singleton(
        InMemoryDocumentStore, buffer_size=settings.LIVE_QUERY_BUFFER_SIZE
    )
    kvrocks_document_store = providers.Singleton(
        KvrocksDocumentStore, kvrocks=kvrocks_client, key_prefix=settings.KVROCKS_KEY_PREFIX
    )

    # Selected by STORE_BACKEND; tests override this provider directly
    document_store = providers.Selector(
        config_service.provided.STORE_BACKEND,
        memory=in_memory_document_store,
        kvrocks=kvrocks_document_store,
    )

    # Auth service
    jwt_auth = providers.Singleton(JwtAuth)


container = Container()
