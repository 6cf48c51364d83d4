"""Build, handshake and teardown of interchain topologies."""

from .build import BuildOrchestrator
from .context import BuildContext
from .handshake import HandshakeSequencer
from .interchain import Interchain
from .options import BuildOptions, BuildReport
from .teardown import TeardownCoordinator, cleanup_label

__all__ = [
    "Interchain",
    "BuildOptions",
    "BuildReport",
    "BuildContext",
    "BuildOrchestrator",
    "HandshakeSequencer",
    "TeardownCoordinator",
    "cleanup_label",
]
