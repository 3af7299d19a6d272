"""
SocialDAC — follow/unfollow relationships stored as JSON documents in a
per-user document store, exposed to skapps over a request/response boundary.

    from socialdac import SocialDAC, load_config, create_dac
"""

__version__ = "0.3.0"

from socialdac.boundary.adapter import SocialDAC, create_dac  # noqa: E402,F401
from socialdac.engine.config import load_config  # noqa: E402,F401

__all__ = ["SocialDAC", "create_dac", "load_config", "__version__"]
