"""Test helpers for interchain unit tests."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import TypeVar

from .builders import MockTopology, make_build_options, make_fast_config, make_mock_topology
from .mocks import (
    CallLog,
    Failures,
    MockChain,
    MockNetworkProvider,
    MockRelayer,
    make_chain_config,
)
from .sim import SIM_LABEL, make_sim_config, start_sim_chain

_T = TypeVar("_T")


def run_async(coro: Coroutine[object, object, _T]) -> _T:
    """Run an async coroutine synchronously."""
    return asyncio.run(coro)


__all__ = [
    # Builders
    "MockTopology",
    "make_build_options",
    "make_chain_config",
    "make_fast_config",
    "make_mock_topology",
    # Mocks
    "CallLog",
    "Failures",
    "MockChain",
    "MockNetworkProvider",
    "MockRelayer",
    # Simulated family
    "SIM_LABEL",
    "make_sim_config",
    "start_sim_chain",
    # Async utilities
    "run_async",
]
