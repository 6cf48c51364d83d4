"""Shared fixtures for the simulated family."""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest

from interchain.sim import SimChain, SimNetworkProvider
from tests.interchain.helpers import SIM_LABEL, make_sim_config, start_sim_chain


@pytest.fixture
def network() -> SimNetworkProvider:
    """An empty simulated network provider."""
    return SimNetworkProvider()


@pytest.fixture
async def network_id(network: SimNetworkProvider) -> str:
    """A network under the test label."""
    return await network.create_network(SIM_LABEL)


@pytest.fixture
async def gaia(network: SimNetworkProvider, network_id: str) -> AsyncGenerator[SimChain, None]:
    """A started chain, stopped afterwards."""
    chain = await start_sim_chain(network, network_id, make_sim_config("gaia"))
    yield chain
    await chain.stop()
