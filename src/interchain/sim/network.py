"""
In-process network provider for the simulated family.

Stands in for a container runtime: networks and process groups are entries in
a label-keyed registry, and "removing" a process group stops its asyncio tasks.
Simulated relayers reach simulated chains by resolving endpoint addresses here.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from interchain.types import ResourceError

if TYPE_CHECKING:
    from .chain import SimChain

logger = logging.getLogger(__name__)


class ProcessGroup(Protocol):
    """Anything the provider can stop during a label sweep."""

    async def shutdown(self) -> None:
        """Stop every task of the group. Idempotent."""
        ...


@dataclass(slots=True)
class _Member:
    name: str
    label: str
    network_id: str
    group: ProcessGroup


@dataclass(slots=True)
class SimNetworkProvider:
    """Label-keyed registry of simulated networks and process groups."""

    networks: dict[str, str] = field(default_factory=dict)
    """Network id -> correlation label."""

    _members: dict[str, _Member] = field(default_factory=dict)
    _endpoints: dict[str, SimChain] = field(default_factory=dict)
    _ids: itertools.count = field(default_factory=lambda: itertools.count(1))

    async def create_network(self, label: str) -> str:
        """Create a network under a label."""
        network_id = f"{label}-net-{next(self._ids)}"
        self.networks[network_id] = label
        logger.debug("Created network %s", network_id)
        return network_id

    async def remove_network(self, network_id: str) -> None:
        """
        Remove a network.

        Members stay registered under their label until the label is swept.

        Raises:
            ResourceError: If the network does not exist.
        """
        if network_id not in self.networks:
            raise ResourceError(f"Network {network_id} does not exist")

        del self.networks[network_id]
        logger.debug("Removed network %s", network_id)

    async def remove_by_label(self, label: str) -> list[str]:
        """Stop every process group and remove every network registered under a label."""
        removed: list[str] = []

        for member in [m for m in self._members.values() if m.label == label]:
            await member.group.shutdown()
            self.detach(member.name)
            removed.append(member.name)

        for network_id in [n for n, lbl in self.networks.items() if lbl == label]:
            del self.networks[network_id]
            removed.append(network_id)

        if removed:
            logger.info("Swept %d resource(s) under %s", len(removed), label)
        return removed

    # -------------------------------------------------------------------------
    # Registration (used by simulated chains and relayers)
    # -------------------------------------------------------------------------

    def attach(self, name: str, network_id: str, label: str, group: ProcessGroup) -> None:
        """
        Register a process group on a network.

        Raises:
            ResourceError: If the network does not exist or the name is taken.
        """
        if network_id not in self.networks:
            raise ResourceError(f"Network {network_id} does not exist")
        if name in self._members:
            raise ResourceError(f"Process group {name} already exists")
        self._members[name] = _Member(name=name, label=label, network_id=network_id, group=group)

    def detach(self, name: str) -> None:
        """Unregister a process group and its endpoints. Unknown names are ignored."""
        self._members.pop(name, None)
        for address in [a for a, chain in self._endpoints.items() if chain.group_name == name]:
            del self._endpoints[address]

    def members(self, label: str | None = None) -> list[str]:
        """Names of registered process groups, optionally filtered by label."""
        return [m.name for m in self._members.values() if label is None or m.label == label]

    def register_endpoint(self, address: str, chain: SimChain) -> None:
        """Make a chain reachable at an address."""
        self._endpoints[address] = chain

    def resolve(self, address: str) -> SimChain:
        """
        The chain serving an address.

        Raises:
            ResourceError: If nothing listens there.
        """
        try:
            return self._endpoints[address]
        except KeyError:
            raise ResourceError(f"Nothing listening at {address}") from None
