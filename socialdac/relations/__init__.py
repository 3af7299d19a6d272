"""SocialDAC relations — documents, repository, registration and follow/unfollow."""

from socialdac.relations.api import RelationshipAPI  # noqa: F401
from socialdac.relations.models import (  # noqa: F401
    DACResponse,
    RelationDocument,
    RelationRecord,
    SkappRegistry,
)
from socialdac.relations.registration import RegistrationWorkflow  # noqa: F401
from socialdac.relations.repository import RelationsRepository  # noqa: F401

__all__ = [
    "DACResponse",
    "RegistrationWorkflow",
    "RelationDocument",
    "RelationRecord",
    "RelationsRepository",
    "RelationshipAPI",
    "SkappRegistry",
]
