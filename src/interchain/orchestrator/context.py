"""Runtime record shared by build, handshakes and teardown."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from interchain.ibc import KeyEntry, NetworkProvider
from interchain.storage import RunLedger
from interchain.topology import ChainHandle, Topology

from .options import BuildOptions


@dataclass(slots=True)
class BuildContext:
    """
    Everything a build created, in the order it was created.

    Teardown works from this record alone. A participant is recorded before
    the call that might leave something behind, so a half-started chain is
    still stopped.
    """

    topology: Topology
    network: NetworkProvider
    options: BuildOptions
    label: str

    ledger: RunLedger | None = None
    """Persistent record of the run, when enabled."""

    cancel: asyncio.Event = field(default_factory=asyncio.Event)
    """Set on the first fatal failure. In-flight work starts no new step."""

    network_id: str | None = None
    """Shared network, once created."""

    chains: list[ChainHandle] = field(default_factory=list)
    """Chains recorded for teardown, in the order they were attempted."""

    relayer_keys: dict[tuple[str, str], KeyEntry] = field(default_factory=dict)
    """Relayer wallet per (relayer name, chain name)."""

    torn_down: bool = False
    """Whether teardown already ran."""

    def record_chain(self, handle: ChainHandle) -> None:
        """Register a chain for teardown and in the ledger."""
        self.chains.append(handle)
        if self.ledger is not None:
            self.ledger.record_resource(self.label, "chain", handle.name, handle.chain_id)

    def record_resource(self, kind: str, name: str, ref: str) -> None:
        """Register a non-chain resource in the ledger."""
        if self.ledger is not None:
            self.ledger.record_resource(self.label, kind, name, ref)

    def release_resource(self, kind: str, name: str) -> None:
        """Mark a resource as removed in the ledger."""
        if self.ledger is not None:
            self.ledger.release_resource(self.label, kind, name)
