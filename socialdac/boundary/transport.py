"""
SocialDAC Transport — request/response dispatch across the process boundary.

Pipeline (per message):
    1. Validate the message shape (RPCRequest)
    2. Check the caller origin against ``transport.allowed_origins``
    3. Resolve the method through the MethodRegistry (capability set)
    4. Check arity and argument types
    5. Await the handler and marshal the result (RPCResponse)

Handler exceptions become the ``error`` string of the response; the
embedding context never sees a raw exception.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any, Dict, Iterable, List, Optional, Set, Union

from pydantic import BaseModel, Field, ValidationError

from socialdac.engine.errors import (
    SocialDACSecurityError,
    SocialDACValidationError,
    serialize_error,
)
from socialdac.engine.logging import log, log_rpc_call, log_security_event
from socialdac.engine.registry import MethodRegistry, RegisteredMethod

logger = logging.getLogger("socialdac.boundary.transport")

RequestId = Union[int, str, None]


# ---------------------------------------------------------------------------
# Request / Response Models
# ---------------------------------------------------------------------------

class RPCRequest(BaseModel):
    """Inbound method call from the embedding context."""

    id: RequestId = None
    method: str
    args: List[Any] = Field(default_factory=list)
    origin: Optional[str] = None


class RPCResponse(BaseModel):
    """Outbound result. Exactly one of ``result`` / ``error`` is meaningful."""

    id: RequestId = None
    result: Any = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        if self.error is not None:
            return {"id": self.id, "error": self.error}
        return {"id": self.id, "result": self.result}


# ---------------------------------------------------------------------------
# Child side of the handshake
# ---------------------------------------------------------------------------

class ChildConnection:
    """
    Serves the registered methods to one embedding context.

    Usage:
        connection = ChildConnection(registry, allowed_origins=["https://app.hns.siasky.net"])
        response = await connection.handle({"id": 1, "method": "follow", "args": ["alice"]})
    """

    def __init__(self, registry: MethodRegistry, allowed_origins: Iterable[str] = ("*",)):
        self._registry = registry
        self._allowed_origins: Set[str] = {o.rstrip("/") for o in allowed_origins}
        self._pending: Set[asyncio.Task] = set()

    @property
    def registry(self) -> MethodRegistry:
        return self._registry

    def origin_allowed(self, origin: Optional[str]) -> bool:
        if "*" in self._allowed_origins:
            return True
        return origin is not None and origin.rstrip("/") in self._allowed_origins

    async def handle(self, message: Any) -> Dict[str, Any]:
        """Dispatch one message and return the response dict."""
        start = time.monotonic()
        try:
            request = RPCRequest.model_validate(message)
        except ValidationError as e:
            request_id = message.get("id") if isinstance(message, dict) else None
            error = SocialDACValidationError(
                "Malformed RPC message",
                validation_errors=e.errors(include_url=False),
            )
            return RPCResponse(id=request_id, error=error.to_json()).to_dict()

        try:
            self._check_origin(request)
            method = self._registry.resolve_or_raise(request.method)
            self._check_args(method, request.args)
            result = await method.handler(*request.args)
        except Exception as e:
            serialized = serialize_error(e)
            logger.debug("RPC %s failed: %s", request.method, e)
            log(log_rpc_call(
                request.method, request.origin, False,
                (time.monotonic() - start) * 1000,
                request_id=request.id, error=serialized,
            ))
            return RPCResponse(id=request.id, error=serialized).to_dict()

        if isinstance(result, BaseModel):
            result = result.model_dump(exclude_none=True)
        log(log_rpc_call(
            request.method, request.origin, True,
            (time.monotonic() - start) * 1000,
            request_id=request.id,
        ))
        return RPCResponse(id=request.id, result=result).to_dict()

    def _check_origin(self, request: RPCRequest) -> None:
        if self.origin_allowed(request.origin):
            return
        log(log_security_event("origin_rejected", request.origin, method=request.method))
        raise SocialDACSecurityError(
            f"Origin not allowed: {request.origin}",
            origin=request.origin,
            method=request.method,
        )

    @staticmethod
    def _check_args(method: RegisteredMethod, args: List[Any]) -> None:
        if len(args) != method.arity:
            raise SocialDACValidationError(
                f"{method.name} expects {method.arity} argument(s), got {len(args)}",
                method=method.name,
            )
        for (name, expected), value in zip(method.params, args):
            if not isinstance(value, expected):
                raise SocialDACValidationError(
                    f"{method.name}: argument '{name}' must be {expected.__name__}",
                    method=method.name,
                    validation_errors=[{"field": name, "error": f"expected {expected.__name__}"}],
                )

    async def serve(self, reader: asyncio.StreamReader, writer: Any) -> None:
        """
        JSON-lines loop: one request per line in, one response per line out.

        Requests are dispatched as they arrive, so responses may come back out
        of order; callers match them by ``id``.
        """
        write_lock = asyncio.Lock()

        async def respond(message: Any) -> None:
            response = await self.handle(message)
            async with write_lock:
                writer.write((json.dumps(response, default=str) + "\n").encode("utf-8"))
                await writer.drain()

        while True:
            line = await reader.readline()
            if not line:
                break
            line = line.strip()
            if not line:
                continue
            try:
                message = json.loads(line)
            except json.JSONDecodeError:
                error = SocialDACValidationError("Invalid JSON message")
                async with write_lock:
                    writer.write((json.dumps({"id": None, "error": error.to_json()}) + "\n").encode("utf-8"))
                    await writer.drain()
                continue
            task = asyncio.create_task(respond(message))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

        if self._pending:
            await asyncio.gather(*self._pending)
