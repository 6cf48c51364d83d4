"""
Interchain: orchestration of cross-chain protocol test topologies.

Declare chains, relayers and the links between them, build the topology into
running chains with established channels, wait on eventually consistent chain
state in blocks, and tear everything down afterwards.
"""

from .config import OrchestratorConfig
from .factory import AdapterRegistry, InterchainSpec, build_interchain, default_registry
from .orchestrator import (
    BuildOptions,
    BuildReport,
    HandshakeSequencer,
    Interchain,
    cleanup_label,
)
from .polling import (
    BudgetScope,
    poll_for_balance,
    poll_for_proposal_status,
    poll_for_state,
    wait_for_blocks,
)
from .topology import HandshakeState
from .users import get_and_fund_test_users

__all__ = [
    "AdapterRegistry",
    "BudgetScope",
    "BuildOptions",
    "BuildReport",
    "HandshakeSequencer",
    "HandshakeState",
    "Interchain",
    "InterchainSpec",
    "OrchestratorConfig",
    "build_interchain",
    "cleanup_label",
    "default_registry",
    "get_and_fund_test_users",
    "poll_for_balance",
    "poll_for_proposal_status",
    "poll_for_state",
    "wait_for_blocks",
]
