"""
SocialDAC Test Suite — Shared fixtures and configuration.

Run:  pytest tests/ -v
"""

from __future__ import annotations

import logging
from typing import List

import pytest

from socialdac.engine.config import SocialDACConfig
from socialdac.engine.context import SessionContext, SkappPaths
from socialdac.engine.identity import LocalIdentityProvider, UserSession
from socialdac.store.backends import MemoryBackend
from socialdac.store.client import DocumentStoreClient

USER_ID = "d4f1a2b3c4"
DATA_DOMAIN = "social-dac.hns"
REFERRER = "https://app1.hns.siasky.net/feed?x=1"


@pytest.fixture(autouse=True)
def _isolate_globals():
    """Reset the operation log and logger levels between tests."""
    import socialdac.engine.logging as log_mod

    yield
    log_mod.shutdown_logging()

    root = logging.getLogger("socialdac")
    root.setLevel(logging.NOTSET)
    for handler in [h for h in root.handlers if getattr(h, "_socialdac", False)]:
        root.removeHandler(handler)


class FakeClock:
    """Deterministic epoch-milliseconds clock."""

    def __init__(self, start: int = 1_700_000_000_000, step: int = 1000):
        self.now = start
        self.step = step
        self.calls: List[int] = []

    def __call__(self) -> int:
        value = self.now
        self.calls.append(value)
        self.now += self.step
        return value


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def config():
    return SocialDACConfig()


@pytest.fixture
def identity_provider(backend):
    """Provider whose sessions all share the ``backend`` fixture."""
    return LocalIdentityProvider(USER_ID, backend_factory=lambda user_id: backend)


@pytest.fixture
def session(backend):
    return UserSession(USER_ID, backend, DATA_DOMAIN)


@pytest.fixture
def store(backend):
    return DocumentStoreClient(backend)


@pytest.fixture
def session_context(session, store):
    """A ready SessionContext for skapp ``app1``."""
    return SessionContext(
        skapp="app1",
        data_domain=DATA_DOMAIN,
        paths=SkappPaths.for_skapp(DATA_DOMAIN, "app1"),
        session=session,
        store=store,
    )


@pytest.fixture
def dac(config, identity_provider, clock):
    """An uninitialized SocialDAC loaded from app1.hns.siasky.net."""
    from socialdac.boundary.adapter import SocialDAC

    return SocialDAC(config, identity_provider, referrer=REFERRER, clock=clock)
