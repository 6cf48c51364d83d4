"""Topology declaration and lifecycle state."""

from .model import ChainHandle, HandshakeResult, Link, RelayerHandle, Topology
from .states import ChainState, HandshakeState, RelayerState

__all__ = [
    "Topology",
    "ChainHandle",
    "RelayerHandle",
    "Link",
    "HandshakeResult",
    "HandshakeState",
    "ChainState",
    "RelayerState",
]
