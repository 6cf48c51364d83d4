"""
Shared pytest fixtures for interop tests.

Provides simulated topologies with automatic cleanup.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator

import pytest

from interchain import BuildOptions, Interchain
from interchain.sim import SimNetworkProvider
from tests.interop.helpers import declare, interop_config, linear

logger = logging.getLogger(__name__)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


@pytest.fixture
def sim_network() -> SimNetworkProvider:
    """A fresh simulated network provider per test."""
    return SimNetworkProvider()


@pytest.fixture
async def sim_interchain(
    request: pytest.FixtureRequest,
    sim_network: SimNetworkProvider,
) -> AsyncGenerator[Interchain, None]:
    """
    Provide a built topology with automatic teardown.

    Chain names are configurable via the ``chains`` marker and are linked in
    a line. Default: gaia and osmosis.
    """
    marker = request.node.get_closest_marker("chains")
    names = marker.args if marker else ("gaia", "osmosis")

    ic = declare(sim_network, names, linear(names))
    await ic.build(BuildOptions(test_name=request.node.name, config=interop_config()))

    try:
        yield ic
    finally:
        # Hard timeout on teardown so a stuck relay loop cannot hang the session.
        try:
            await asyncio.wait_for(ic.close(), timeout=10.0)
        except TimeoutError:
            logger.warning("Teardown of %s timed out, sweeping the label", ic.label)
            if ic.label is not None:
                await sim_network.remove_by_label(ic.label)
