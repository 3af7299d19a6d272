"""
SocialDAC Logging — Debug tracing plus structured JSONL operation logs.

Implements:
- configure_logging(): stdlib logger setup; the ``debug`` flag turns on
  per-path download/update traces
- Operation log: entries travel through a ``QueueHandler`` on the
  ``socialdac.operations`` logger; a ``QueueListener`` thread hands them to
  JsonlFileHandler, which appends them to
  ``{log_dir}/{category}/{kind}/{YYYY-MM-DD}.jsonl``
- Log entry builders for relation, registry, RPC and system events
"""

from __future__ import annotations

import json
import logging
import queue
from dataclasses import dataclass
from datetime import date, datetime, timezone
from logging.handlers import QueueHandler, QueueListener
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger("socialdac.engine.logging")

# Valid categories and their permitted kinds
CATEGORY_KINDS = {
    "relations": ("execution",),
    "registry": ("execution",),
    "rpc": ("execution", "security"),
    "system": ("execution",),
}

OPERATIONS_LOGGER = "socialdac.operations"

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO", debug: bool = False) -> logging.Logger:
    """
    Configure the ``socialdac`` logger hierarchy.

    ``debug=True`` forces DEBUG regardless of *level*. Safe to call more than
    once; only one stream handler is ever attached.
    """
    root = logging.getLogger("socialdac")
    root.setLevel(logging.DEBUG if debug else getattr(logging, level.upper(), logging.INFO))
    if not any(getattr(h, "_socialdac", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        handler._socialdac = True
        root.addHandler(handler)
    return root


@dataclass(frozen=True)
class LogEntry:
    """One operation log line and the file it belongs in."""

    category: str
    kind: str
    data: Dict[str, Any]

    def __post_init__(self) -> None:
        if self.kind not in CATEGORY_KINDS.get(self.category, ()):
            raise ValueError(f"Unknown log destination: {self.category}/{self.kind}")

    def to_json(self) -> str:
        return json.dumps(self.data, default=str, separators=(",", ":"))


def entry_path(log_dir: Union[str, Path], category: str, kind: str, day: Optional[date] = None) -> Path:
    day = day or date.today()
    return Path(log_dir) / category / kind / f"{day.isoformat()}.jsonl"


class JsonlFileHandler(logging.Handler):
    """
    Appends the ``entry`` attached to each record to its daily JSONL file.
    Records without an entry are ignored.
    """

    def __init__(self, log_dir: Union[str, Path]):
        super().__init__()
        self.log_dir = Path(log_dir)

    def emit(self, record: logging.LogRecord) -> None:
        entry = getattr(record, "entry", None)
        if entry is None:
            return
        path = entry_path(self.log_dir, entry.category, entry.kind)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "a", encoding="utf-8") as f:
                f.write(entry.to_json() + "\n")
        except OSError:
            self.handleError(record)


def read_entries(
    log_dir: Union[str, Path],
    category: str,
    kind: str,
    day: Optional[date] = None,
) -> List[Dict[str, Any]]:
    """Read back one day's entries for a category/kind, oldest first."""
    path = entry_path(log_dir, category, kind, day)
    if not path.exists():
        return []
    with open(path, "r", encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]


# ---------------------------------------------------------------------------
# Log Entry Builders
# ---------------------------------------------------------------------------

def _base_entry(
    event: str,
    level: str,
    skapp: Optional[str] = None,
    **extra: Any,
) -> Dict[str, Any]:
    entry: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": level,
        "event": event,
    }
    if skapp:
        entry["skapp"] = skapp
    entry.update(extra)
    return entry


def log_relation_change(
    operation: str,
    skapp: str,
    target_id: str,
    success: bool,
    duration_ms: float,
    error: Optional[str] = None,
) -> LogEntry:
    """Build a follow/unfollow log entry."""
    data = _base_entry(
        event=f"relation_{operation}",
        level="INFO" if success else "ERROR",
        skapp=skapp,
        operation=operation,
        target_id=target_id,
        success=success,
        duration_ms=duration_ms,
    )
    if error:
        data["error"] = error
    return LogEntry("relations", "execution", data)


def log_registry_update(
    skapp: str,
    success: bool,
    error: Optional[str] = None,
) -> LogEntry:
    """Build a skapp registration log entry."""
    data = _base_entry(
        event="skapp_registered" if success else "skapp_registration_failed",
        level="INFO" if success else "ERROR",
        skapp=skapp,
        success=success,
    )
    if error:
        data["error"] = error
    return LogEntry("registry", "execution", data)


def log_rpc_call(
    method: str,
    origin: Optional[str],
    success: bool,
    duration_ms: float,
    request_id: Optional[Any] = None,
    error: Optional[str] = None,
) -> LogEntry:
    """Build an inbound RPC call log entry."""
    data = _base_entry(
        event="rpc_call",
        level="INFO" if success else "ERROR",
        method=method,
        origin=origin,
        success=success,
        duration_ms=duration_ms,
    )
    if request_id is not None:
        data["request_id"] = request_id
    if error:
        data["error"] = error
    return LogEntry("rpc", "execution", data)


def log_security_event(
    event: str,
    origin: Optional[str],
    method: Optional[str] = None,
    level: str = "WARNING",
) -> LogEntry:
    """Build a transport security log entry (origin rejected)."""
    data = _base_entry(event=event, level=level, origin=origin)
    if method:
        data["method"] = method
    return LogEntry("rpc", "security", data)


def log_system_event(
    event: str,
    level: str = "INFO",
    skapp: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> LogEntry:
    """Build a system event log entry (init, shutdown)."""
    data = _base_entry(event=event, level=level, skapp=skapp)
    if details:
        data["details"] = details
    return LogEntry("system", "execution", data)


# ---------------------------------------------------------------------------
# Global operation log
# ---------------------------------------------------------------------------

_operations = logging.getLogger(OPERATIONS_LOGGER)
_operations.propagate = False
_listener: Optional[QueueListener] = None


def init_logging(log_dir: Union[str, Path] = ".socialdac/logs") -> QueueListener:
    """Start writing operation log entries under *log_dir*."""
    global _listener
    shutdown_logging()
    records: queue.SimpleQueue = queue.SimpleQueue()
    _operations.addHandler(QueueHandler(records))
    _operations.setLevel(logging.INFO)
    _listener = QueueListener(records, JsonlFileHandler(log_dir))
    _listener.start()
    logger.debug("Operation log writing to %s", log_dir)
    return _listener


def logging_enabled() -> bool:
    return _listener is not None


def log(entry: LogEntry) -> bool:
    """Queue an entry for the operation log. Non-blocking."""
    if _listener is None:
        logger.debug("Operation log not initialized, %s entry dropped", entry.category)
        return False
    _operations.info(
        "%s/%s %s", entry.category, entry.kind, entry.data.get("event"),
        extra={"entry": entry},
    )
    return True


def shutdown_logging() -> None:
    """Write out queued entries and detach the operation log."""
    global _listener
    if _listener is None:
        return
    _listener.stop()
    for handler in list(_operations.handlers):
        _operations.removeHandler(handler)
    _listener = None
