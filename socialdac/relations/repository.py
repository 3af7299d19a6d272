"""
Relations Repository — load/save of the relation and registry documents.

Both documents are read fresh on every call and written back whole; there
is no cache and no partial update. A missing document is synthesized from
defaults in memory and only reaches the store on the next save.

Two writers doing load → modify → save on the same document interleave
freely: the last save wins for the whole document. The store exposes no
version token, so this is accepted rather than guarded against.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from socialdac.engine.context import following_path, registry_path
from socialdac.engine.errors import SocialDACValidationError
from socialdac.engine.identity import UserSession
from socialdac.relations.models import RelationDocument, SkappRegistry, self_reference
from socialdac.store.client import ABSENT, DocumentStoreClient

logger = logging.getLogger("socialdac.relations.repository")


class RelationsRepository:
    """
    Usage:
        repo = RelationsRepository(store, session, "social-dac.hns")
        doc = await repo.load_relations("app1")
        doc.relations["alice"] = RelationRecord(ts=now)
        await repo.save_relations("app1", doc)
    """

    def __init__(self, store: DocumentStoreClient, session: UserSession, data_domain: str):
        self._store = store
        self._session = session
        self._data_domain = data_domain

    def relations_path(self, namespace: str) -> str:
        return following_path(self._data_domain, namespace)

    @property
    def registry_path(self) -> str:
        return registry_path(self._data_domain)

    # ── Relation document ──

    async def load_relations(self, namespace: str) -> RelationDocument:
        path = self.relations_path(namespace)
        data = await self._store.get(path)
        if data is ABSENT:
            user_id = await self._session.user_id()
            return RelationDocument.default(user_id, path)
        doc = self._parse(RelationDocument, data, path)
        if doc.self_ref is None:
            doc.self_ref = self_reference(await self._session.user_id(), path)
        return doc

    async def save_relations(self, namespace: str, doc: RelationDocument) -> None:
        await self._store.set(self.relations_path(namespace), doc.to_json_data())

    # ── Skapp registry ──

    async def load_registry(self) -> SkappRegistry:
        data = await self._store.get(self.registry_path)
        if data is ABSENT:
            return SkappRegistry()
        return self._parse(SkappRegistry, data, self.registry_path)

    async def save_registry(self, registry: SkappRegistry) -> None:
        await self._store.set(self.registry_path, registry.to_json_data())

    @staticmethod
    def _parse(model: Any, data: Any, path: str) -> Any:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise SocialDACValidationError(
                f"Malformed document at {path}",
                path=path,
                validation_errors=e.errors(include_url=False),
            ) from e
