"""Helper utilities for interop tests."""

from .assertions import assert_balance_within, assert_channel_open, assert_nothing_left
from .builders import BLOCK_TIME, RELAYER_NAME, chain_config, declare, interop_config
from .topology import hub, linear, path_name

__all__ = [
    # Assertions
    "assert_balance_within",
    "assert_channel_open",
    "assert_nothing_left",
    # Builders
    "BLOCK_TIME",
    "RELAYER_NAME",
    "chain_config",
    "declare",
    "interop_config",
    # Topology patterns
    "hub",
    "linear",
    "path_name",
]
