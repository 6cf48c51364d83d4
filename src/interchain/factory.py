"""
Topology files and the adapter registry.

A topology file declares chains, relayers and links in YAML:

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
    links:
    - path: gaia-osmosis
      chain_a: gaia
      chain_b: osmosis
      relayer: rly

Each chain and relayer names its protocol family in `type`. The registry maps
a family tag to the adapter factories for it, so the orchestrator never knows
which family it is driving.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from pydantic import Field

from interchain.config import OrchestratorConfig
from interchain.ibc import (
    Chain,
    ChainConfig,
    ChannelOptions,
    ClientOptions,
    NetworkProvider,
    Relayer,
)
from interchain.orchestrator import Interchain
from interchain.sim import FAMILY as SIM_FAMILY
from interchain.sim import SimChain, SimNetworkProvider, SimRelayer
from interchain.types import InterchainError, StrictBaseModel


class RelayerSpec(StrictBaseModel):
    """A relayer entry of a topology file."""

    name: str
    type: str
    """Relayer family tag."""

    options: dict[str, str | int | float | bool] = Field(default_factory=dict)
    """Family-specific options, passed to the factory."""


class LinkSpec(StrictBaseModel):
    """A link entry of a topology file."""

    path: str
    chain_a: str
    chain_b: str
    relayer: str
    client_options: ClientOptions | None = None
    channel_options: ChannelOptions | None = None


class InterchainSpec(StrictBaseModel):
    """A whole topology file."""

    chains: list[ChainConfig]
    relayers: list[RelayerSpec] = Field(default_factory=list)
    links: list[LinkSpec] = Field(default_factory=list)
    config: OrchestratorConfig = Field(default_factory=OrchestratorConfig)
    """Orchestrator budgets for builds of this topology."""

    @classmethod
    def from_yaml_file(cls, path: Path | str) -> InterchainSpec:
        """
        Load a topology file.

        Raises:
            FileNotFoundError: If the file does not exist.
            yaml.YAMLError: If the file is not valid YAML.
            pydantic.ValidationError: If the topology fails validation.
        """
        with Path(path).open(encoding="utf-8") as f:
            return cls.model_validate(yaml.safe_load(f))

    @classmethod
    def from_yaml(cls, content: str) -> InterchainSpec:
        """Load a topology from a YAML string."""
        return cls.model_validate(yaml.safe_load(content))


ChainFactory = Callable[[ChainConfig, NetworkProvider], Chain]
RelayerFactory = Callable[[RelayerSpec, NetworkProvider], Relayer]


@dataclass(slots=True)
class AdapterRegistry:
    """Chain and relayer factories by protocol family tag."""

    chains: dict[str, ChainFactory] = field(default_factory=dict)
    relayers: dict[str, RelayerFactory] = field(default_factory=dict)

    def register(
        self,
        family: str,
        *,
        chain: ChainFactory | None = None,
        relayer: RelayerFactory | None = None,
    ) -> None:
        """Register the adapters of a family. Either factory may be omitted."""
        if chain is not None:
            self.chains[family] = chain
        if relayer is not None:
            self.relayers[family] = relayer

    def create_chain(self, config: ChainConfig, network: NetworkProvider) -> Chain:
        """
        Build the chain adapter for a config.

        Raises:
            InterchainError: If no chain adapter is registered for the family.
        """
        try:
            factory = self.chains[config.type]
        except KeyError:
            raise InterchainError(f"No chain adapter for family {config.type!r}") from None
        return factory(config, network)

    def create_relayer(self, spec: RelayerSpec, network: NetworkProvider) -> Relayer:
        """
        Build the relayer adapter for a spec.

        Raises:
            InterchainError: If no relayer adapter is registered for the family.
        """
        try:
            factory = self.relayers[spec.type]
        except KeyError:
            raise InterchainError(f"No relayer adapter for family {spec.type!r}") from None
        return factory(spec, network)


def _sim_network(network: NetworkProvider) -> SimNetworkProvider:
    if not isinstance(network, SimNetworkProvider):
        raise InterchainError(
            f"The sim family needs a SimNetworkProvider, got {type(network).__name__}"
        )
    return network


def _sim_chain(config: ChainConfig, network: NetworkProvider) -> Chain:
    return SimChain(config, _sim_network(network))


def _sim_relayer(spec: RelayerSpec, network: NetworkProvider) -> Relayer:
    poll_interval = float(spec.options.get("poll_interval", 0.2))
    return SimRelayer(_sim_network(network), spec.name, poll_interval=poll_interval)


def default_registry() -> AdapterRegistry:
    """A registry that knows the simulated family."""
    registry = AdapterRegistry()
    registry.register(SIM_FAMILY, chain=_sim_chain, relayer=_sim_relayer)
    return registry


def build_interchain(
    spec: InterchainSpec,
    network: NetworkProvider,
    registry: AdapterRegistry | None = None,
) -> Interchain:
    """
    Declare everything in a topology file on a new `Interchain`.

    Nothing is started. Call `build` on the result.
    """
    registry = registry or default_registry()
    ic = Interchain(network)

    for chain_config in spec.chains:
        ic.add_chain(registry.create_chain(chain_config, network))
    for relayer_spec in spec.relayers:
        ic.add_relayer(registry.create_relayer(relayer_spec, network), relayer_spec.name)
    for link in spec.links:
        ic.add_link(
            link.chain_a,
            link.chain_b,
            link.relayer,
            link.path,
            client_options=link.client_options,
            channel_options=link.channel_options,
        )
    return ic
