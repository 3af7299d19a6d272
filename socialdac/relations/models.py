"""
Relation documents — the stored JSON shapes and the RPC result shape.

Stored field names (``$schema``, ``_self``, ``relationType``, ``relations``,
``ts``) are fixed by existing data; Python attribute names are aliases.
Unknown fields on stored documents survive a load/save round-trip.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, RootModel

USER_RELATIONS_SCHEMA = "https://skystandards.hns.siasky.net/draft-01/userRelations.schema.json"
SELF_URI_PREFIX = "sky://ed25519-"
RELATION_TYPE_FOLLOWING = "following"


def self_reference(user_id: str, path: str) -> str:
    """Back-reference URI to the document's own location."""
    return f"{SELF_URI_PREFIX}{user_id}/{path}"


class RelationRecord(BaseModel):
    """
    One followed identifier. ``ts`` is epoch milliseconds when present; the
    key in ``relations`` alone means "following".
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    established_at: Optional[int] = Field(default=None, alias="ts")


class RelationDocument(BaseModel):
    """The per-skapp "following" document."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    schema_url: str = Field(default=USER_RELATIONS_SCHEMA, alias="$schema")
    self_ref: Optional[str] = Field(default=None, alias="_self")
    relation_type: str = Field(default=RELATION_TYPE_FOLLOWING, alias="relationType")
    relations: Dict[str, RelationRecord] = Field(default_factory=dict)

    @classmethod
    def default(cls, user_id: str, path: str) -> "RelationDocument":
        return cls(self_ref=self_reference(user_id, path))

    def is_following(self, user_id: str) -> bool:
        return user_id in self.relations

    def to_json_data(self) -> Dict[str, Any]:
        """Storage form, with the stored field names. Unset fields are left out."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class SkappRegistry(RootModel[Dict[str, bool]]):
    """Shared skapp-name registry: ``{skapp: true}``."""

    root: Dict[str, bool] = Field(default_factory=dict)

    def register(self, skapp: str) -> None:
        self.root[skapp] = True

    def __contains__(self, skapp: str) -> bool:
        return skapp in self.root

    def to_json_data(self) -> Dict[str, bool]:
        return dict(self.root)


class DACResponse(BaseModel):
    """Result of follow/unfollow as seen by the embedding context."""

    success: bool
    error: Optional[str] = None

    @classmethod
    def ok(cls) -> "DACResponse":
        return cls(success=True)

    @classmethod
    def fail(cls, error: str) -> "DACResponse":
        return cls(success=False, error=error)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)
