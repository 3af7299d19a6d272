"""
SocialDAC Configuration — Load and validate socialdac.yaml at startup.

Usage:
    from socialdac.engine.config import load_config, apply_url_flags
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional
from urllib.parse import parse_qs, urlsplit

import yaml
from pydantic import BaseModel, Field, field_validator

CONFIG_FILENAME = "socialdac.yaml"

DEFAULT_DATA_DOMAIN = "social-dac.hns"


# ---------------------------------------------------------------------------
# Pydantic models for socialdac.yaml
# ---------------------------------------------------------------------------

class DACConfig(BaseModel):
    data_domain: str = DEFAULT_DATA_DOMAIN
    portal_domain: str = "siasky.net"
    debug: bool = False
    dev: bool = False


class StoreConfig(BaseModel):
    backend: str = "memory"
    redis_url: str = "redis://localhost:6379/0"
    key_prefix: str = "socialdac:"
    http_base_url: str = "http://localhost:8080"
    http_token: Optional[str] = None
    timeout: int = 30

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        if v not in ("memory", "redis", "http"):
            raise ValueError(f"store backend must be memory/redis/http, got '{v}'")
        return v


class IdentityConfig(BaseModel):
    user_id: Optional[str] = None


class TransportConfig(BaseModel):
    allowed_origins: List[str] = Field(default_factory=lambda: ["*"])


class LoggingConfig(BaseModel):
    level: str = "INFO"
    directory: str = ".socialdac/logs"
    file_logging: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"invalid log level '{v}'")
        return v


class SocialDACConfig(BaseModel):
    """Root model for socialdac.yaml."""
    dac: DACConfig = DACConfig()
    store: StoreConfig = StoreConfig()
    identity: IdentityConfig = IdentityConfig()
    transport: TransportConfig = TransportConfig()
    logging: LoggingConfig = LoggingConfig()


# ---------------------------------------------------------------------------
# Config Loading Functions
# ---------------------------------------------------------------------------

def _find_project_root() -> Path:
    """Find the project root by looking for socialdac.yaml."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        if (parent / CONFIG_FILENAME).exists():
            return parent
    return current


def load_config(config_path: Optional[str] = None) -> SocialDACConfig:
    """
    Load and validate socialdac.yaml.

    Args:
        config_path: Explicit path to the config file. If None, auto-discovers.

    Returns:
        Validated SocialDACConfig instance (defaults if the file is missing).
    """
    if config_path is None:
        config_path = str(_find_project_root() / CONFIG_FILENAME)

    path = Path(config_path)
    if not path.exists():
        return SocialDACConfig()

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    return SocialDACConfig(**raw)


def flags_from_url(url: str) -> Dict[str, bool]:
    """
    Read the ``debug`` and ``dev`` switches from a URL query string.

    Only the literal value ``true`` turns a switch on; absent switches are
    omitted from the result so they do not override the file config.
    """
    query = parse_qs(urlsplit(url).query)
    flags: Dict[str, bool] = {}
    for name in ("debug", "dev"):
        values = query.get(name)
        if values:
            flags[name] = values[0] == "true"
    return flags


def apply_url_flags(config: SocialDACConfig, url: Optional[str]) -> SocialDACConfig:
    """Return a copy of *config* with URL query switches applied."""
    if not url:
        return config
    flags = flags_from_url(url)
    if not flags:
        return config
    dac = config.dac.model_copy(update=flags)
    return config.model_copy(update={"dac": dac})
