"""
SocialDAC Error Hierarchy — Structured exceptions for the relationship store.

Every error carries its context as keyword arguments and serializes to JSON,
so it can cross the RPC boundary as a plain string inside a failure result.

Hierarchy:
    SocialDACError
    ├── SocialDACPreconditionError — Operation invoked before init completed
    ├── SocialDACInitError         — Origin / session resolution failed
    ├── SocialDACStoreError        — Document store backend call failed
    ├── SocialDACValidationError   — Stored document or RPC arguments malformed
    ├── SocialDACDispatchError     — Unknown RPC method / cannot dispatch
    ├── SocialDACSecurityError     — Caller origin rejected by the transport
    └── SocialDACConfigError       — Configuration error
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


class SocialDACError(Exception):
    """
    Base error for all SocialDAC failures.
    All context is serializable to JSON.

    Keys named in ``lifted`` become top-level fields of ``to_dict``; the rest
    stay under ``context``.
    """

    lifted = ("skapp", "path", "method")

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.skapp: Optional[str] = context.get("skapp")
        self.path: Optional[str] = context.get("path")
        self.method: Optional[str] = context.get("method")
        self.error_type: str = self.__class__.__name__
        self.context: Dict[str, Any] = context
        self.timestamp: str = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error to a JSON-compatible dict."""
        d = {
            "error_type": self.error_type,
            "message": self.message,
            "timestamp": self.timestamp,
            "context": {
                k: str(v) for k, v in self.context.items()
                if k not in self.lifted
            },
        }
        for key in self.lifted:
            d[key] = getattr(self, key)
        return d

    def to_json(self) -> str:
        """Serialize to a canonical JSON string."""
        return json.dumps(self.to_dict(), default=str, sort_keys=True, separators=(",", ":"))

    def __repr__(self) -> str:
        parts = [f"{self.error_type}: {self.message}"]
        if self.skapp:
            parts.append(f"skapp={self.skapp}")
        if self.path:
            parts.append(f"path={self.path}")
        return " | ".join(parts)


class SocialDACPreconditionError(SocialDACError):
    """Operation invoked before the adapter reached the ready state."""
    pass


class SocialDACInitError(SocialDACError):
    """
    Initialization failed: the caller origin could not be resolved to a skapp
    or the identity provider refused to establish a session.
    """

    lifted = SocialDACError.lifted + ("referrer",)

    def __init__(self, message: str, **context: Any):
        self.referrer: Optional[str] = context.get("referrer")
        super().__init__(message, **context)


class SocialDACStoreError(SocialDACError):
    """Document store call failed (network, permission, HTTP status)."""

    lifted = SocialDACError.lifted + ("operation", "status_code")

    def __init__(self, message: str, **context: Any):
        self.operation: Optional[str] = context.get("operation")
        self.status_code: Optional[int] = context.get("status_code")
        super().__init__(message, **context)


class SocialDACValidationError(SocialDACError):
    """
    A stored document or an RPC argument list does not have the expected shape.
    Includes field-level error details where available.
    """

    lifted = SocialDACError.lifted + ("validation_errors",)

    def __init__(self, message: str, **context: Any):
        self.validation_errors: Optional[List[Any]] = context.get("validation_errors")
        super().__init__(message, **context)


class SocialDACDispatchError(SocialDACError):
    """RPC method not registered or cannot be dispatched."""
    pass


class SocialDACSecurityError(SocialDACError):
    """Caller origin is not allowed to talk to this DAC."""

    lifted = SocialDACError.lifted + ("origin",)

    def __init__(self, message: str, **context: Any):
        self.origin: Optional[str] = context.get("origin")
        super().__init__(message, **context)


class SocialDACConfigError(SocialDACError):
    """Configuration error — invalid socialdac.yaml or missing settings."""
    pass


def serialize_error(error: BaseException) -> str:
    """
    Render any exception as canonical JSON for a failure result.

    SocialDAC errors keep their structured context; anything else is reduced
    to its type name and message.
    """
    if isinstance(error, SocialDACError):
        return error.to_json()
    return json.dumps(
        {"error_type": type(error).__name__, "message": str(error)},
        default=str,
        sort_keys=True,
        separators=(",", ":"),
    )
