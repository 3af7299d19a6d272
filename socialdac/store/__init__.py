"""SocialDAC document store — client and backends."""

from socialdac.store.backends import (  # noqa: F401
    DocumentBackend,
    HttpBackend,
    MemoryBackend,
    RedisBackend,
    create_backend,
)
from socialdac.store.client import ABSENT, DocumentStoreClient, is_absent  # noqa: F401

__all__ = [
    "ABSENT",
    "DocumentBackend",
    "DocumentStoreClient",
    "HttpBackend",
    "MemoryBackend",
    "RedisBackend",
    "create_backend",
    "is_absent",
]
