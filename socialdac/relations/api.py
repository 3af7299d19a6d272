"""
Relationship API — follow / unfollow for the session's skapp.

Each call is a load → modify → save of the skapp's relation document.
Results always come back as a DACResponse; nothing raised in here crosses
the boundary.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from socialdac.engine.context import SessionContext
from socialdac.engine.errors import serialize_error
from socialdac.engine.logging import log, log_relation_change
from socialdac.relations.models import DACResponse, RelationRecord
from socialdac.relations.repository import RelationsRepository

logger = logging.getLogger("socialdac.relations.api")


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


def not_following_message(skapp: str, user_id: str) -> str:
    return f"Not following user with this skapp. (skapp: {skapp}, userId: {user_id})"


class RelationshipAPI:

    def __init__(
        self,
        context: SessionContext,
        repository: RelationsRepository,
        clock: Optional[Callable[[], int]] = None,
    ):
        self._context = context
        self._repository = repository
        self._clock = clock or now_ms

    @property
    def skapp(self) -> str:
        return self._context.skapp

    async def follow(self, user_id: str) -> DACResponse:
        """Follow *user_id*. Re-following overwrites the timestamp."""
        start = time.monotonic()
        try:
            doc = await self._repository.load_relations(self.skapp)
            doc.relations[user_id] = RelationRecord(established_at=self._clock())
            await self._repository.save_relations(self.skapp, doc)
        except Exception as e:
            return self._failed("follow", user_id, e, start)

        self._record("follow", user_id, True, start)
        return DACResponse.ok()

    async def unfollow(self, user_id: str) -> DACResponse:
        """Unfollow *user_id*; fails without writing if not followed."""
        start = time.monotonic()
        try:
            doc = await self._repository.load_relations(self.skapp)
            if not doc.is_following(user_id):
                message = not_following_message(self.skapp, user_id)
                self._record("unfollow", user_id, False, start, error=message)
                return DACResponse.fail(message)

            del doc.relations[user_id]
            await self._repository.save_relations(self.skapp, doc)
        except Exception as e:
            return self._failed("unfollow", user_id, e, start)

        self._record("unfollow", user_id, True, start)
        return DACResponse.ok()

    def _failed(self, operation: str, user_id: str, error: Exception, start: float) -> DACResponse:
        logger.error("%s: Error occurred, err: %s", operation, error, exc_info=True)
        serialized = serialize_error(error)
        self._record(operation, user_id, False, start, error=serialized)
        return DACResponse.fail(serialized)

    def _record(
        self,
        operation: str,
        user_id: str,
        success: bool,
        start: float,
        error: Optional[str] = None,
    ) -> None:
        duration_ms = (time.monotonic() - start) * 1000
        log(log_relation_change(operation, self.skapp, user_id, success, duration_ms, error=error))
