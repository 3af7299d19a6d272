"""
Document store backends — where the JSON documents actually live.

Every backend is a remote (or in-process) key-addressed JSON blob store with
whole-document get/set and no transactions:

  MemoryBackend  — in-process dict, used by tests and ``store.backend: memory``
  RedisBackend   — one Redis string per document, keyed per user
  HttpBackend    — GET/PUT against a document HTTP API (404 = no document)

Backends return ``None`` for a missing document; the store client turns that
into ABSENT. They do not retry.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

import httpx
import redis.asyncio as redis_asyncio

from socialdac.engine.config import StoreConfig
from socialdac.engine.errors import SocialDACConfigError, SocialDACStoreError

logger = logging.getLogger("socialdac.store.backends")


def _dumps(data: Any) -> str:
    return json.dumps(data, separators=(",", ":"))


class DocumentBackend(ABC):
    """Whole-document JSON get/set at a hierarchical path."""

    name: str = "abstract"

    @abstractmethod
    async def get_json(self, path: str) -> Optional[Any]:
        """Return the parsed document at *path*, or None if there is none."""

    @abstractmethod
    async def set_json(self, path: str, data: Any) -> None:
        """Overwrite the document at *path* with *data*."""

    async def close(self) -> None:
        """Release connections. No-op by default."""


class MemoryBackend(DocumentBackend):
    """
    In-process backend. Documents are kept as JSON text so callers never
    share mutable state with the store.
    """

    name = "memory"

    def __init__(self, documents: Optional[Dict[str, Any]] = None):
        self._documents: Dict[str, str] = {
            path: _dumps(doc) for path, doc in (documents or {}).items()
        }
        self.writes: List[Tuple[str, Any]] = []

    async def get_json(self, path: str) -> Optional[Any]:
        raw = self._documents.get(path)
        if raw is None:
            return None
        return json.loads(raw)

    async def set_json(self, path: str, data: Any) -> None:
        raw = _dumps(data)
        self._documents[path] = raw
        self.writes.append((path, json.loads(raw)))

    def peek(self, path: str) -> Optional[Any]:
        """Synchronous read for inspection (tests, CLI)."""
        raw = self._documents.get(path)
        return json.loads(raw) if raw is not None else None

    @property
    def paths(self) -> List[str]:
        return sorted(self._documents)


class RedisBackend(DocumentBackend):
    """
    Redis-backed store. Keys: ``{prefix}{user_id}:{path}``, so every user gets
    their own document tree.
    """

    name = "redis"

    def __init__(
        self,
        user_id: str,
        redis_url: str = "redis://localhost:6379/0",
        prefix: str = "socialdac:",
        timeout: int = 30,
        client: Any = None,
    ):
        self._user_id = user_id
        self._prefix = prefix
        self._client = client or redis_asyncio.Redis.from_url(
            redis_url,
            decode_responses=True,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
        )

    def _make_key(self, path: str) -> str:
        return f"{self._prefix}{self._user_id}:{path}"

    async def get_json(self, path: str) -> Optional[Any]:
        raw = await self._client.get(self._make_key(path))
        if raw is None:
            return None
        return json.loads(raw)

    async def set_json(self, path: str, data: Any) -> None:
        await self._client.set(self._make_key(path), _dumps(data))

    async def close(self) -> None:
        await self._client.aclose()


class HttpBackend(DocumentBackend):
    """
    HTTP document API backend.

        GET  {base_url}/{path}  → 200 JSON body | 404 no document
        PUT  {base_url}/{path}  ← JSON body

    Auth is a bearer token scoped to the user's document tree.
    """

    name = "http"

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: int = 30,
        client: Optional[httpx.AsyncClient] = None,
    ):
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=httpx.Timeout(timeout, connect=10.0),
        )

    @staticmethod
    def _check(response: httpx.Response, operation: str, path: str) -> None:
        if response.status_code >= 400:
            raise SocialDACStoreError(
                f"Store {operation} failed with HTTP {response.status_code}",
                operation=operation,
                path=path,
                status_code=response.status_code,
                response_body=response.text[:500],
            )

    async def get_json(self, path: str) -> Optional[Any]:
        response = await self._client.get(f"/{path}")
        if response.status_code == 404:
            return None
        self._check(response, "get", path)
        if not response.content:
            return None
        return response.json()

    async def set_json(self, path: str, data: Any) -> None:
        response = await self._client.put(f"/{path}", json=data)
        self._check(response, "set", path)

    async def close(self) -> None:
        await self._client.aclose()


def create_backend(store_config: StoreConfig, user_id: str) -> DocumentBackend:
    """Build the backend selected by ``store.backend``."""
    if store_config.backend == "memory":
        return MemoryBackend()
    if store_config.backend == "redis":
        return RedisBackend(
            user_id=user_id,
            redis_url=store_config.redis_url,
            prefix=store_config.key_prefix,
            timeout=store_config.timeout,
        )
    if store_config.backend == "http":
        return HttpBackend(
            base_url=store_config.http_base_url,
            token=store_config.http_token,
            timeout=store_config.timeout,
        )
    raise SocialDACConfigError(f"Unknown store backend: {store_config.backend}")
