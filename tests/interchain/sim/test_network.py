"""Tests for the simulated network provider."""

from __future__ import annotations

import pytest

from interchain.sim import SimChain, SimNetworkProvider
from interchain.types import ResourceError
from tests.interchain.helpers import SIM_LABEL, make_sim_config, start_sim_chain


class _Group:
    """A process group that records shutdowns."""

    def __init__(self) -> None:
        self.shutdowns = 0

    async def shutdown(self) -> None:
        self.shutdowns += 1


class TestNetworks:
    """Tests for network creation and removal."""

    async def test_ids_carry_the_label(self, network: SimNetworkProvider) -> None:
        """Network ids are unique and prefixed with their label."""
        first = await network.create_network("run-a")
        second = await network.create_network("run-a")

        assert first.startswith("run-a-net-")
        assert first != second
        assert network.networks == {first: "run-a", second: "run-a"}

    async def test_remove_unknown(self, network: SimNetworkProvider) -> None:
        """Removing a network twice fails the second time."""
        network_id = await network.create_network("run-a")
        await network.remove_network(network_id)

        with pytest.raises(ResourceError):
            await network.remove_network(network_id)


class TestMembers:
    """Tests for process group registration."""

    async def test_attach_requires_network(self, network: SimNetworkProvider) -> None:
        """Groups only join existing networks."""
        with pytest.raises(ResourceError):
            network.attach("g", "missing-net", "run-a", _Group())

    async def test_names_are_unique(self, network: SimNetworkProvider) -> None:
        """A group name can be registered once."""
        network_id = await network.create_network("run-a")
        network.attach("g", network_id, "run-a", _Group())

        with pytest.raises(ResourceError):
            network.attach("g", network_id, "run-a", _Group())

    async def test_members_by_label(self, network: SimNetworkProvider) -> None:
        """Members can be listed per label."""
        net_a = await network.create_network("run-a")
        net_b = await network.create_network("run-b")
        network.attach("a1", net_a, "run-a", _Group())
        network.attach("b1", net_b, "run-b", _Group())

        assert network.members("run-a") == ["a1"]
        assert sorted(network.members()) == ["a1", "b1"]

    async def test_detach_unknown_is_ignored(self, network: SimNetworkProvider) -> None:
        """Detaching twice is harmless."""
        network.detach("never-attached")


class TestRemoveByLabel:
    """Tests for the label sweep."""

    async def test_sweep_stops_groups_and_networks(self, network: SimNetworkProvider) -> None:
        """Every group and network under the label goes; other labels stay."""
        net_a = await network.create_network("run-a")
        net_b = await network.create_network("run-b")
        group_a, group_b = _Group(), _Group()
        network.attach("a1", net_a, "run-a", group_a)
        network.attach("b1", net_b, "run-b", group_b)

        removed = await network.remove_by_label("run-a")

        assert removed == ["a1", net_a]
        assert group_a.shutdowns == 1
        assert group_b.shutdowns == 0
        assert network.members() == ["b1"]
        assert list(network.networks) == [net_b]

    async def test_sweep_of_unknown_label(self, network: SimNetworkProvider) -> None:
        """Sweeping a label with nothing under it removes nothing."""
        assert await network.remove_by_label("nothing-here") == []

    async def test_sweep_stops_running_chain(
        self, network: SimNetworkProvider, network_id: str
    ) -> None:
        """A chain left running is stopped by the sweep."""
        chain = await start_sim_chain(network, network_id, make_sim_config("gaia"))

        await network.remove_by_label(SIM_LABEL)

        assert network.members(SIM_LABEL) == []
        with pytest.raises(ResourceError):
            network.resolve(chain.rpc_address())


class TestEndpoints:
    """Tests for endpoint resolution."""

    async def test_resolve(self, network: SimNetworkProvider, gaia: SimChain) -> None:
        """A started chain is reachable at its RPC and gRPC addresses."""
        assert network.resolve(gaia.rpc_address()) is gaia
        assert network.resolve(gaia.grpc_address()) is gaia

    async def test_resolve_unknown(self, network: SimNetworkProvider) -> None:
        """Nothing listens at an unregistered address."""
        with pytest.raises(ResourceError):
            network.resolve("sim://nowhere/rpc")
