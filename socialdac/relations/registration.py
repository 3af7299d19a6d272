"""
Registration Workflow — record the calling skapp in the shared registry.

Runs once per login notification, in the background. Nobody awaits the
outcome, so failures are logged and never raised.
"""

from __future__ import annotations

import logging

from socialdac.engine.context import SessionContext
from socialdac.engine.errors import serialize_error
from socialdac.engine.logging import log, log_registry_update
from socialdac.relations.repository import RelationsRepository

logger = logging.getLogger("socialdac.relations.registration")


class RegistrationWorkflow:
    """Ensures ``registry[skapp] is True`` for the session's skapp."""

    def __init__(self, context: SessionContext, repository: RelationsRepository):
        self._context = context
        self._repository = repository

    async def register_skapp_name(self) -> None:
        """Load registry, set the flag unconditionally, save. Raises on failure."""
        registry = await self._repository.load_registry()
        registry.register(self._context.skapp)
        await self._repository.save_registry(registry)

    async def run(self) -> bool:
        """Register and swallow any failure. Returns whether it succeeded."""
        skapp = self._context.skapp
        try:
            await self.register_skapp_name()
        except Exception as e:
            logger.warning("Failed to register skappname %s, err: %s", skapp, e)
            log(log_registry_update(skapp, success=False, error=serialize_error(e)))
            return False
        logger.debug("Successfully registered skappname %s", skapp)
        log(log_registry_update(skapp, success=True))
        return True
