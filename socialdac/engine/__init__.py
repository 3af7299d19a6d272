"""SocialDAC Engine — Config, errors, logging, identity, session context, method registry."""

from socialdac.engine.context import SessionContext, SkappPaths  # noqa: F401
from socialdac.engine.registry import MethodRegistry, RegisteredMethod  # noqa: F401

__all__ = [
    "SessionContext",
    "SkappPaths",
    "MethodRegistry",
    "RegisteredMethod",
]
