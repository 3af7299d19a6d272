"""
SocialDAC Session Context — explicit per-session state built by ``init``.

Holds the resolved skapp namespace, the namespace-scoped document paths, the
identity session and the store client. It is passed to the Relationship API
and the Registration Workflow instead of living as ambient state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict

from socialdac.engine.identity import UserSession
from socialdac.store.client import DocumentStoreClient

SKAPPS_DICT_FILE = "skapps.json"
FOLLOWING_MAP_FILE = "following.json"


@dataclass(frozen=True)
class SkappPaths:
    """Document paths for one skapp namespace."""

    skapps_dict_path: str
    following_map_path: str

    @classmethod
    def for_skapp(cls, data_domain: str, skapp: str) -> "SkappPaths":
        return cls(
            skapps_dict_path=registry_path(data_domain),
            following_map_path=following_path(data_domain, skapp),
        )


def registry_path(data_domain: str) -> str:
    return f"{data_domain}/{SKAPPS_DICT_FILE}"


def following_path(data_domain: str, skapp: str) -> str:
    return f"{data_domain}/{skapp}/{FOLLOWING_MAP_FILE}"


@dataclass
class SessionContext:
    """Everything a ready adapter knows about its session. Immutable skapp."""

    skapp: str
    data_domain: str
    paths: SkappPaths
    session: UserSession
    store: DocumentStoreClient
    established_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    async def user_id(self) -> str:
        return await self.session.user_id()

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for logging."""
        return {
            "skapp": self.skapp,
            "data_domain": self.data_domain,
            "skapps_dict_path": self.paths.skapps_dict_path,
            "following_map_path": self.paths.following_map_path,
            "backend": self.store.backend.name,
            "established_at": self.established_at,
        }
