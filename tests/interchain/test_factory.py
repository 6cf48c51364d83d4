"""Tests for topology files and the adapter registry."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from interchain.factory import (
    AdapterRegistry,
    InterchainSpec,
    RelayerSpec,
    build_interchain,
    default_registry,
)
from interchain.ibc import Ordering
from interchain.sim import SimChain, SimNetworkProvider, SimRelayer
from interchain.types import InterchainError
from tests.interchain.helpers import MockChain, MockNetworkProvider, MockRelayer

TOPOLOGY = """
chains:
- type: sim
  name: gaia
  chain_id: gaia-1
  denom: uatom
- type: sim
  name: osmosis
  chain_id: osmosis-1
  bech32_prefix: osmo
  denom: uosmo
relayers:
- name: rly
  type: sim
  options:
    poll_interval: 0.05
links:
- path: gaia-osmosis
  chain_a: gaia
  chain_b: osmosis
  relayer: rly
  channel_options:
    ordering: unordered
config:
  handshake_step_blocks: 30
"""


class TestInterchainSpec:
    """Tests for parsing topology files."""

    def test_from_yaml(self) -> None:
        """Chains, relayers, links and config are read."""
        spec = InterchainSpec.from_yaml(TOPOLOGY)

        assert [c.chain_id for c in spec.chains] == ["gaia-1", "osmosis-1"]
        assert spec.chains[1].bech32_prefix == "osmo"
        assert spec.relayers[0].options == {"poll_interval": 0.05}
        assert spec.links[0].channel_options is not None
        assert spec.links[0].channel_options.ordering is Ordering.UNORDERED
        assert spec.links[0].client_options is None
        assert spec.config.handshake_step_blocks == 30

    def test_from_file(self, tmp_path: Path) -> None:
        """Files are read as YAML."""
        path = tmp_path / "topology.yaml"
        path.write_text(TOPOLOGY, encoding="utf-8")
        assert len(InterchainSpec.from_yaml_file(path).links) == 1

    def test_chains_required(self) -> None:
        """A topology without chains is invalid."""
        with pytest.raises(ValidationError):
            InterchainSpec.from_yaml("relayers: []\n")

    def test_unknown_keys_rejected(self) -> None:
        """Typos in a topology file are errors."""
        with pytest.raises(ValidationError):
            InterchainSpec.from_yaml(TOPOLOGY + "extra: 1\n")


class TestAdapterRegistry:
    """Tests for family lookup."""

    def test_default_registry_knows_sim(self) -> None:
        """The simulated family is built in."""
        spec = InterchainSpec.from_yaml(TOPOLOGY)
        registry = default_registry()
        network = SimNetworkProvider()

        chain = registry.create_chain(spec.chains[0], network)
        relayer = registry.create_relayer(spec.relayers[0], network)

        assert isinstance(chain, SimChain)
        assert isinstance(relayer, SimRelayer)
        assert relayer.poll_interval == 0.05
        assert relayer.name == "rly"

    def test_unknown_family(self) -> None:
        """Families without adapters are reported."""
        spec = InterchainSpec.from_yaml(TOPOLOGY.replace("type: sim", "type: cosmos"))
        with pytest.raises(InterchainError, match="cosmos"):
            default_registry().create_chain(spec.chains[0], SimNetworkProvider())
        with pytest.raises(InterchainError):
            default_registry().create_relayer(spec.relayers[0], SimNetworkProvider())

    def test_sim_needs_sim_network(self) -> None:
        """Simulated adapters only run on the simulated network."""
        spec = InterchainSpec.from_yaml(TOPOLOGY)
        with pytest.raises(InterchainError, match="SimNetworkProvider"):
            default_registry().create_chain(spec.chains[0], MockNetworkProvider())

    def test_custom_family(self) -> None:
        """Other families plug in through register."""
        registry = AdapterRegistry()
        registry.register(
            "sim",
            chain=lambda config, network: MockChain(config),
            relayer=lambda spec, network: MockRelayer(spec.name),
        )
        spec = InterchainSpec.from_yaml(TOPOLOGY)

        chain = registry.create_chain(spec.chains[0], MockNetworkProvider())
        relayer = registry.create_relayer(RelayerSpec(name="r", type="sim"), MockNetworkProvider())

        assert isinstance(chain, MockChain)
        assert isinstance(relayer, MockRelayer)


class TestBuildInterchain:
    """Tests for declaring a topology from a file."""

    def test_declares_everything(self) -> None:
        """Every entry becomes a declaration; nothing starts."""
        spec = InterchainSpec.from_yaml(TOPOLOGY)
        ic = build_interchain(spec, SimNetworkProvider())

        assert list(ic.topology.chains) == ["gaia", "osmosis"]
        assert list(ic.topology.relayers) == ["rly"]
        link = ic.link("gaia-osmosis")
        assert link.chain_a.name == "gaia"
        assert link.relayer.name == "rly"
        assert ic.label is None

    def test_bad_link_reference(self) -> None:
        """Links naming undeclared chains fail at declaration."""
        spec = InterchainSpec.from_yaml(TOPOLOGY.replace("chain_b: osmosis", "chain_b: juno"))
        with pytest.raises(InterchainError):
            build_interchain(spec, SimNetworkProvider())
