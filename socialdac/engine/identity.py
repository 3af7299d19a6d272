"""
Identity / session provider seam.

The provider owns the user's root identity and hands out a session that can
read and write the user's document tree under one data domain. SocialDAC only
needs the user id and the scoped backend from it.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

from socialdac.engine.config import StoreConfig
from socialdac.engine.errors import SocialDACConfigError
from socialdac.store.backends import DocumentBackend, create_backend

logger = logging.getLogger("socialdac.engine.identity")


class UserSession:
    """An established session: who the user is and where their documents live."""

    def __init__(self, user_id: str, backend: DocumentBackend, data_domain: str, dev: bool = False):
        self._user_id = user_id
        self.backend = backend
        self.data_domain = data_domain
        self.dev = dev

    async def user_id(self) -> str:
        return self._user_id

    def __repr__(self) -> str:
        return f"<UserSession(user_id='{self._user_id}', data_domain='{self.data_domain}')>"


class IdentityProvider(ABC):
    """Establishes sessions scoped to a data domain."""

    @abstractmethod
    async def load_session(self, data_domain: str, dev: bool = False) -> UserSession:
        """Establish a session or raise."""


class LocalIdentityProvider(IdentityProvider):
    """
    Session from a configured user id plus the configured store backend.

    ``backend_factory`` defaults to ``create_backend(store_config, user_id)``;
    tests pass a factory returning a shared MemoryBackend.
    """

    def __init__(
        self,
        user_id: Optional[str],
        store_config: Optional[StoreConfig] = None,
        backend_factory: Optional[Callable[[str], DocumentBackend]] = None,
    ):
        self._user_id = user_id
        self._store_config = store_config or StoreConfig()
        self._backend_factory = backend_factory

    async def load_session(self, data_domain: str, dev: bool = False) -> UserSession:
        if not self._user_id:
            raise SocialDACConfigError(
                "No user id configured; set identity.user_id in socialdac.yaml"
            )
        if self._backend_factory is not None:
            backend = self._backend_factory(self._user_id)
        else:
            backend = create_backend(self._store_config, self._user_id)
        logger.debug("Session established for %s on %s (%s)", self._user_id, data_domain, backend.name)
        return UserSession(self._user_id, backend, data_domain, dev=dev)
