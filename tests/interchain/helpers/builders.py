"""Factories for test topologies over the mock capabilities."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from interchain.config import OrchestratorConfig
from interchain.orchestrator import BuildOptions, Interchain

from .mocks import CallLog, MockChain, MockNetworkProvider, MockRelayer, make_chain_config


def make_fast_config(**overrides: Any) -> OrchestratorConfig:
    """Config with no sleeps between height reads and short wall-clock limits."""
    values: dict[str, Any] = {
        "height_poll_interval": 0.0,
        "startup_timeout": 5.0,
        "stall_timeout": 5.0,
        "handshake_step_blocks": 50,
        "teardown_timeout": 5.0,
    }
    values.update(overrides)
    return OrchestratorConfig(**values)


def make_build_options(**overrides: Any) -> BuildOptions:
    """Build options with a fixed label and the fast config."""
    values: dict[str, Any] = {
        "test_name": "test",
        "label": "test-run",
        "config": make_fast_config(),
    }
    values.update(overrides)
    return BuildOptions(**values)


@dataclass
class MockTopology:
    """An `Interchain` declared over mocks, plus the mocks themselves."""

    interchain: Interchain
    network: MockNetworkProvider
    chains: dict[str, MockChain]
    relayers: dict[str, MockRelayer]
    calls: CallLog = field(default_factory=list)


def make_mock_topology(
    chain_names: tuple[str, ...] = ("gaia", "osmosis"),
    links: tuple[tuple[str, str, str], ...] = (("gaia", "osmosis", "gaia-osmosis"),),
    relayer_name: str = "rly",
) -> MockTopology:
    """
    Declare chains, one relayer and links over a shared call log.

    Args:
        chain_names: Chains to declare.
        links: (chain_a, chain_b, path_name) per link, all on the one relayer.
        relayer_name: Name of the relayer.
    """
    calls: CallLog = []
    network = MockNetworkProvider(calls)
    chains = {name: MockChain(make_chain_config(name), calls) for name in chain_names}
    relayer = MockRelayer(relayer_name, calls)

    ic = Interchain(network)
    for chain in chains.values():
        ic.add_chain(chain)
    ic.add_relayer(relayer, relayer_name)
    for chain_a, chain_b, path_name in links:
        ic.add_link(chain_a, chain_b, relayer_name, path_name)

    return MockTopology(
        interchain=ic,
        network=network,
        chains=chains,
        relayers={relayer_name: relayer},
        calls=calls,
    )
