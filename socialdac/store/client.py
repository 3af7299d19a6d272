"""
Document Store Client — typed get/set of JSON documents at a path.

``get`` distinguishes "no document" (ABSENT) from a failure; every backend
failure surfaces as SocialDACStoreError. Nothing is retried here.
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Union

from socialdac.engine.errors import SocialDACError, SocialDACStoreError
from socialdac.store.backends import DocumentBackend

logger = logging.getLogger("socialdac.store.client")


class Absent(enum.Enum):
    """Marker for a path with no backing document."""

    ABSENT = "absent"

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT = Absent.ABSENT


def is_absent(value: Any) -> bool:
    return value is ABSENT


class DocumentStoreClient:
    """
    Thin wrapper over a DocumentBackend.

    Usage:
        store = DocumentStoreClient(backend)
        doc = await store.get("social-dac.hns/skapps.json")
        if doc is ABSENT:
            ...
        await store.set("social-dac.hns/skapps.json", {"app1": True})
    """

    def __init__(self, backend: DocumentBackend):
        self._backend = backend

    @property
    def backend(self) -> DocumentBackend:
        return self._backend

    async def get(self, path: str) -> Union[Any, Absent]:
        logger.debug("downloading file at path %s", path)
        try:
            data = await self._backend.get_json(path)
        except SocialDACError:
            raise
        except Exception as e:
            raise SocialDACStoreError(
                f"Failed to download {path}: {e}",
                operation="get",
                path=path,
                backend=self._backend.name,
            ) from e

        if data is None:
            logger.debug("no data found at path %s", path)
            return ABSENT
        logger.debug("data found at path %s: %s", path, data)
        return data

    async def set(self, path: str, data: Any) -> None:
        logger.debug("updating file at path %s: %s", path, data)
        try:
            await self._backend.set_json(path, data)
        except SocialDACError:
            raise
        except Exception as e:
            raise SocialDACStoreError(
                f"Failed to update {path}: {e}",
                operation="set",
                path=path,
                backend=self._backend.name,
            ) from e

    async def close(self) -> None:
        await self._backend.close()
