"""
Integration test fixtures — a document HTTP server and real file logging.

The HTTP document API is served in-process through ``httpx.MockTransport``,
so the HttpBackend exercises its real request/response path without network.

Run: pytest tests/integration/ -v -m integration
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Tuple

import httpx
import pytest

from socialdac.engine.identity import LocalIdentityProvider
from socialdac.store.backends import HttpBackend

BASE_URL = "https://docs.example/api"


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: cross-module workflows")


class DocumentServer:
    """Per-user JSON documents behind GET/PUT, keyed by bearer token."""

    def __init__(self):
        self.documents: Dict[Tuple[str, str], Any] = {}
        self.requests: List[Tuple[str, str]] = []
        self.fail_with: int = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        user = request.headers.get("Authorization", "").removeprefix("Bearer ")
        path = request.url.path.removeprefix("/api/")
        self.requests.append((request.method, path))
        if self.fail_with:
            return httpx.Response(self.fail_with, text="unavailable")
        if request.method == "GET":
            if (user, path) not in self.documents:
                return httpx.Response(404)
            return httpx.Response(200, json=self.documents[(user, path)])
        if request.method == "PUT":
            self.documents[(user, path)] = json.loads(request.content)
            return httpx.Response(204)
        return httpx.Response(405)

    def document(self, user: str, path: str) -> Any:
        return self.documents.get((user, path))


@pytest.fixture
def document_server():
    return DocumentServer()


@pytest.fixture
def http_identity(document_server):
    """Build a provider whose sessions talk to ``document_server``."""

    def make(user_id: str) -> LocalIdentityProvider:
        def factory(uid: str) -> HttpBackend:
            client = httpx.AsyncClient(
                transport=httpx.MockTransport(document_server),
                base_url=BASE_URL,
                headers={"Authorization": f"Bearer {uid}"},
            )
            return HttpBackend(BASE_URL, client=client)

        return LocalIdentityProvider(user_id, backend_factory=factory)

    return make
