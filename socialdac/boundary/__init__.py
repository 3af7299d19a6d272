"""SocialDAC boundary — the adapter and the transport the embedding skapp calls through."""

from socialdac.boundary.adapter import DACState, SocialDAC, create_dac  # noqa: F401
from socialdac.boundary.transport import ChildConnection, RPCRequest, RPCResponse  # noqa: F401

__all__ = [
    "ChildConnection",
    "DACState",
    "RPCRequest",
    "RPCResponse",
    "SocialDAC",
    "create_dac",
]
