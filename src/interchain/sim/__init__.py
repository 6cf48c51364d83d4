"""
Simulated protocol family ("sim").

In-process chains, relayer and network provider. Used by the interop tests
and the CLI to exercise the orchestrator without containers.
"""

from .chain import SimChain, parse_coin
from .network import SimNetworkProvider
from .relayer import SimRelayer

FAMILY = "sim"
"""Protocol family tag of the simulated adapters."""

__all__ = [
    "FAMILY",
    "SimChain",
    "SimNetworkProvider",
    "SimRelayer",
    "parse_coin",
]
