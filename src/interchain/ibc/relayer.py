"""Relayer capability interface."""

from __future__ import annotations

from typing import Protocol

from .types import (
    ChainConfig,
    ChannelOptions,
    ChannelOutput,
    ChannelPair,
    ClientOptions,
    ClientOutput,
    ClientPair,
    ConnectionOutput,
    ConnectionPair,
    KeyEntry,
)


class Relayer(Protocol):
    """
    Protocol for one bridge process.

    Handshake methods block until the relayer reports completion. Query
    methods return what the chain currently reports, which may lag the
    handshake by a block or more.

    Implementers should:
    - Raise `ProtocolRejection` when a chain rejects a handshake message
    - Raise `TransientQueryError` for retryable query failures
    - Return empty lists (not raise) when no artifact exists yet
    - Make `stop_relaying` idempotent and cooperative
    """

    async def initialize(self, test_name: str, network_id: str, label: str) -> None:
        """Prepare the relayer process on the shared network."""
        ...

    async def add_chain_configuration(
        self,
        config: ChainConfig,
        key_name: str,
        rpc_address: str,
        grpc_address: str,
    ) -> None:
        """Register a chain's endpoints with the relayer."""
        ...

    async def restore_key(self, chain_id: str, key_name: str, key: KeyEntry) -> None:
        """Hand the relayer its signing key for one chain (a read-only copy)."""
        ...

    async def generate_path(self, path_name: str, chain_a_id: str, chain_b_id: str) -> None:
        """Register a named path between two configured chains."""
        ...

    async def create_clients(self, path_name: str, options: ClientOptions) -> ClientPair:
        """Create a light client of each chain on the other."""
        ...

    async def create_connections(self, path_name: str) -> ConnectionPair:
        """Run the connection-open handshake over the path's clients."""
        ...

    async def create_channel(self, path_name: str, options: ChannelOptions) -> ChannelPair:
        """Run the channel-open handshake over the path's connection."""
        ...

    async def get_clients(self, chain_id: str) -> list[ClientOutput]:
        """Clients currently queryable on a chain."""
        ...

    async def get_connections(self, chain_id: str) -> list[ConnectionOutput]:
        """Connection ends currently queryable on a chain."""
        ...

    async def get_channels(self, chain_id: str) -> list[ChannelOutput]:
        """Channel ends currently queryable on a chain."""
        ...

    async def start_relaying(self, *path_names: str) -> None:
        """
        Start the background relay loop for the given paths.

        Returns once the loop is running. The loop is not awaited by the caller.
        """
        ...

    async def stop_relaying(self) -> None:
        """Signal the relay loop to stop after its current attempt and wait for it."""
        ...
