"""
SocialDAC Boundary Adapter — what the embedding skapp talks to.

State machine:
    UNINITIALIZED ──init()──▶ READY

``init`` resolves the calling skapp from its referrer, establishes the
identity session and builds the SessionContext, once: repeated calls on a
ready adapter change nothing. Until it succeeds,
``follow``/``unfollow`` fail fast with a precondition error and
``onUserLogin`` does nothing but log.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Callable, Optional, Set

from socialdac.boundary.transport import ChildConnection
from socialdac.engine.config import SocialDACConfig
from socialdac.engine.context import SessionContext, SkappPaths
from socialdac.engine.domains import resolve_skapp
from socialdac.engine.errors import (
    SocialDACError,
    SocialDACInitError,
    SocialDACPreconditionError,
    serialize_error,
)
from socialdac.engine.identity import IdentityProvider, LocalIdentityProvider
from socialdac.engine.logging import log, log_system_event
from socialdac.engine.registry import MethodRegistry, RegisteredMethod
from socialdac.relations.api import RelationshipAPI
from socialdac.relations.models import DACResponse
from socialdac.relations.registration import RegistrationWorkflow
from socialdac.relations.repository import RelationsRepository
from socialdac.store.client import DocumentStoreClient

logger = logging.getLogger("socialdac.boundary.adapter")


class DACState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"


class SocialDAC:
    """
    Usage:
        dac = SocialDAC(config, identity_provider, referrer="https://app1.hns.siasky.net/")
        await dac.init()
        await dac.follow("alice")          # DACResponse
        response = await dac.connection.handle({"id": 1, "method": "unfollow", "args": ["alice"]})
    """

    def __init__(
        self,
        config: SocialDACConfig,
        identity_provider: IdentityProvider,
        referrer: Optional[str],
        clock: Optional[Callable[[], int]] = None,
    ):
        self._config = config
        self._identity_provider = identity_provider
        self._referrer = referrer
        self._clock = clock

        self._state = DACState.UNINITIALIZED
        self._context: Optional[SessionContext] = None
        self._api: Optional[RelationshipAPI] = None
        self._registration: Optional[RegistrationWorkflow] = None
        self._background: Set[asyncio.Task] = set()

        self._registry = MethodRegistry()
        self._registry.register(RegisteredMethod("init", self.init, description="Resolve skapp and load session"))
        self._registry.register(RegisteredMethod("onUserLogin", self.on_user_login, description="Register skapp name"))
        self._registry.register(RegisteredMethod("follow", self.follow, (("userId", str),), "Follow a user"))
        self._registry.register(RegisteredMethod("unfollow", self.unfollow, (("userId", str),), "Unfollow a user"))

        self.connection = ChildConnection(
            self._registry,
            allowed_origins=config.transport.allowed_origins,
        )

    # ── State ──

    @property
    def state(self) -> DACState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is DACState.READY

    @property
    def context(self) -> Optional[SessionContext]:
        return self._context

    @property
    def skapp(self) -> Optional[str]:
        return self._context.skapp if self._context else None

    # ── RPC methods ──

    async def init(self) -> None:
        """
        Resolve the skapp, set its paths and establish the session. Once READY
        the skapp and session are fixed; further calls return immediately.
        """
        if self._state is DACState.READY:
            logger.debug("[SocialDAC] init ignored, already ready for %s", self.skapp)
            return
        dac_config = self._config.dac
        logger.debug("[SocialDAC] init")
        try:
            skapp = resolve_skapp(self._referrer, dac_config.portal_domain)
            paths = SkappPaths.for_skapp(dac_config.data_domain, skapp)
            logger.debug("[SocialDAC] loaded paths %s", paths)

            session = await self._identity_provider.load_session(
                dac_config.data_domain, dev=dac_config.dev
            )
            logger.debug("[SocialDAC] loaded session %s", session)
        except Exception as e:
            logger.error("Failed to initialize SocialDAC, err: %s", e)
            log(log_system_event("init_failed", level="ERROR", details={"error": serialize_error(e)}))
            if isinstance(e, SocialDACInitError):
                raise
            raise SocialDACInitError(
                f"Initialization failed: {e}",
                referrer=self._referrer,
                cause=e.error_type if isinstance(e, SocialDACError) else type(e).__name__,
            ) from e

        context = SessionContext(
            skapp=skapp,
            data_domain=dac_config.data_domain,
            paths=paths,
            session=session,
            store=DocumentStoreClient(session.backend),
        )
        repository = RelationsRepository(context.store, session, context.data_domain)
        self._context = context
        self._api = RelationshipAPI(context, repository, clock=self._clock)
        self._registration = RegistrationWorkflow(context, repository)
        self._state = DACState.READY
        log(log_system_event("init", skapp=skapp, details=context.to_dict()))

    async def on_user_login(self) -> None:
        """Kick off skapp registration in the background and return."""
        if self._registration is None:
            logger.warning("Failed to register skappname, err: DAC not initialized")
            return
        task = asyncio.create_task(self._registration.run())
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def follow(self, user_id: str) -> DACResponse:
        if self._api is None:
            return self._not_ready("follow")
        return await self._api.follow(user_id)

    async def unfollow(self, user_id: str) -> DACResponse:
        if self._api is None:
            return self._not_ready("unfollow")
        return await self._api.unfollow(user_id)

    # ── Helpers ──

    @staticmethod
    def _not_ready(method: str) -> DACResponse:
        error = SocialDACPreconditionError(
            f"{method} called before init completed", method=method
        )
        logger.warning(error.message)
        return DACResponse.fail(error.to_json())

    async def wait_background(self) -> None:
        """Await background registrations (shutdown and tests)."""
        if self._background:
            await asyncio.gather(*self._background)

    async def close(self) -> None:
        await self.wait_background()
        if self._context is not None:
            await self._context.store.close()


def create_dac(
    config: SocialDACConfig,
    referrer: Optional[str],
    identity_provider: Optional[IdentityProvider] = None,
) -> SocialDAC:
    """Build a SocialDAC wired to the configured identity and store backend."""
    if identity_provider is None:
        identity_provider = LocalIdentityProvider(
            user_id=config.identity.user_id,
            store_config=config.store,
        )
    return SocialDAC(config, identity_provider, referrer)
