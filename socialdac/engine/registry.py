"""
SocialDAC Method Registry — the capability set exposed over the boundary.

Only the methods named in METHOD_NAMES can be registered; the transport
resolves every inbound call through this registry, so an embedding context
can never reach anything else.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Set, Tuple, Type

from socialdac.engine.errors import SocialDACDispatchError

logger = logging.getLogger("socialdac.engine.registry")

METHOD_NAMES = frozenset({"init", "onUserLogin", "follow", "unfollow"})


@dataclass
class RegisteredMethod:
    """An RPC method: its name, handler and accepted argument shape."""

    name: str
    handler: Callable[..., Awaitable[Any]]
    params: Tuple[Tuple[str, Type], ...] = ()
    description: str = ""

    @property
    def arity(self) -> int:
        return len(self.params)


class MethodRegistry:
    """
    In-memory registry of RPC methods.

    Usage:
        registry = MethodRegistry()
        registry.register(RegisteredMethod("follow", dac.follow, (("userId", str),)))
        method = registry.resolve_or_raise("follow")
    """

    def __init__(self):
        self._methods: Dict[str, RegisteredMethod] = {}

    def register(self, method: RegisteredMethod) -> None:
        if method.name not in METHOD_NAMES:
            raise ValueError(f"Invalid method name: {method.name}. Valid: {sorted(METHOD_NAMES)}")
        self._methods[method.name] = method
        logger.debug(f"Registered method: {method.name}/{method.arity}")

    def resolve(self, name: str) -> Optional[RegisteredMethod]:
        return self._methods.get(name)

    def resolve_or_raise(self, name: str) -> RegisteredMethod:
        """Resolve or raise SocialDACDispatchError."""
        method = self.resolve(name)
        if method is None:
            raise SocialDACDispatchError(
                f"Unknown method: {name}. Available: {sorted(self.names())}",
                method=name,
            )
        return method

    def names(self) -> Set[str]:
        return set(self._methods)
