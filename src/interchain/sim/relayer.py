"""
Simulated relayer.

Submits handshake messages to simulated chains and relays transfer packets
in a background loop. Each message is a chain transaction, so every step of
a handshake costs at least one block on the chain it lands on.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass, field

from interchain.ibc import (
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
from interchain.types import InterchainError, ProtocolRejection, TransactionError

from .chain import STATE_OPEN, SimChain
from .network import SimNetworkProvider

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _ChainEntry:
    chain: SimChain
    key_name: str
    key: KeyEntry | None = None


@dataclass(slots=True)
class _Path:
    chain_a_id: str
    chain_b_id: str
    clients: ClientPair | None = None
    connections: ConnectionPair | None = None
    channels: list[ChannelPair] = field(default_factory=list)


class SimRelayer:
    """In-process implementation of the Relayer capability."""

    def __init__(
        self,
        network: SimNetworkProvider,
        name: str = "sim-relayer",
        *,
        poll_interval: float = 0.2,
    ) -> None:
        """
        Initialize an unconfigured relayer.

        Args:
            network: Network to resolve chain endpoints on.
            name: Process group name prefix.
            poll_interval: Seconds between relay passes.
        """
        self._network = network
        self.name = name
        self.poll_interval = poll_interval

        self.group_name: str | None = None
        self._chains: dict[str, _ChainEntry] = {}
        self._paths: dict[str, _Path] = {}

        self._relay_task: asyncio.Task[None] | None = None
        self._stop = asyncio.Event()
        # Packets delivered since the relayer was created.
        self.relayed = 0

    # -------------------------------------------------------------------------
    # Setup
    # -------------------------------------------------------------------------

    async def initialize(self, test_name: str, network_id: str, label: str) -> None:
        """Join the network under the label."""
        self.group_name = f"{label}/{self.name}"
        self._network.attach(self.group_name, network_id, label, self)
        logger.debug("Relayer %s initialized for %s", self.name, test_name)

    async def add_chain_configuration(
        self,
        config: ChainConfig,
        key_name: str,
        rpc_address: str,
        grpc_address: str,
    ) -> None:
        """Resolve a chain's RPC endpoint and remember it."""
        chain = self._network.resolve(rpc_address)
        if chain.config.chain_id != config.chain_id:
            raise ProtocolRejection(
                f"{rpc_address} serves {chain.config.chain_id}, expected {config.chain_id}",
                chain_id=config.chain_id,
            )
        self._chains[config.chain_id] = _ChainEntry(chain=chain, key_name=key_name)

    async def restore_key(self, chain_id: str, key_name: str, key: KeyEntry) -> None:
        """Store the signing key for a configured chain."""
        entry = self._entry(chain_id)
        entry.key_name = key_name
        entry.key = key

    async def generate_path(self, path_name: str, chain_a_id: str, chain_b_id: str) -> None:
        """Register a path between two configured chains."""
        self._entry(chain_a_id)
        self._entry(chain_b_id)
        if path_name in self._paths:
            raise ProtocolRejection(f"Path {path_name} already exists")
        self._paths[path_name] = _Path(chain_a_id=chain_a_id, chain_b_id=chain_b_id)

    # -------------------------------------------------------------------------
    # Handshake
    # -------------------------------------------------------------------------

    async def create_clients(self, path_name: str, options: ClientOptions) -> ClientPair:
        """Create a client of each chain on the other, concurrently."""
        path = self._path(path_name)
        a, b = self._entry(path.chain_a_id), self._entry(path.chain_b_id)

        async with _rejections(path.chain_a_id):
            client_a, client_b = await asyncio.gather(
                a.chain.create_client(path.chain_b_id, options, self._signer(a)),
                b.chain.create_client(path.chain_a_id, options, self._signer(b)),
            )

        path.clients = ClientPair(a=client_a, b=client_b)
        return path.clients

    async def create_connections(self, path_name: str) -> ConnectionPair:
        """Run the four connection-open messages over the path's clients."""
        path = self._path(path_name)
        a, b = self._entry(path.chain_a_id), self._entry(path.chain_b_id)
        clients = path.clients or await self._discover_clients(path)

        async with _rejections(path.chain_a_id):
            init = await a.chain.connection_open_init(clients.a.client_id, self._signer(a))
        async with _rejections(path.chain_b_id):
            tried = await b.chain.connection_open_try(
                clients.b.client_id, init.connection_id, self._signer(b)
            )
        async with _rejections(path.chain_a_id):
            acked = await a.chain.connection_open_ack(
                init.connection_id, tried.connection_id, self._signer(a)
            )
        async with _rejections(path.chain_b_id):
            confirmed = await b.chain.connection_open_confirm(tried.connection_id, self._signer(b))

        path.connections = ConnectionPair(a=acked, b=confirmed)
        return path.connections

    async def create_channel(self, path_name: str, options: ChannelOptions) -> ChannelPair:
        """Run the four channel-open messages over the path's connection."""
        path = self._path(path_name)
        a, b = self._entry(path.chain_a_id), self._entry(path.chain_b_id)
        connections = path.connections or await self._discover_connections(path)
        conn_a, conn_b = connections.a.connection_id, connections.b.connection_id

        async with _rejections(path.chain_a_id):
            init = await a.chain.channel_open_init(
                options.source_port,
                conn_a,
                options.ordering,
                options.version,
                options.dest_port,
                self._signer(a),
            )
        async with _rejections(path.chain_b_id):
            tried = await b.chain.channel_open_try(
                options.dest_port,
                conn_b,
                options.ordering,
                options.version,
                options.source_port,
                init.channel_id,
                self._signer(b),
            )
        async with _rejections(path.chain_a_id):
            acked = await a.chain.channel_open_ack(
                options.source_port, init.channel_id, tried.channel_id, self._signer(a)
            )
        async with _rejections(path.chain_b_id):
            confirmed = await b.chain.channel_open_confirm(
                options.dest_port, tried.channel_id, self._signer(b)
            )

        pair = ChannelPair(a=acked, b=confirmed)
        path.channels.append(pair)
        return pair

    async def _discover_clients(self, path: _Path) -> ClientPair:
        """Clients created out of band for a path."""
        on_a = [
            c
            for c in await self.get_clients(path.chain_a_id)
            if c.counterparty_chain_id == path.chain_b_id
        ]
        on_b = [
            c
            for c in await self.get_clients(path.chain_b_id)
            if c.counterparty_chain_id == path.chain_a_id
        ]
        if not on_a or not on_b:
            raise ProtocolRejection(f"No clients between {path.chain_a_id} and {path.chain_b_id}")
        path.clients = ClientPair(a=on_a[0], b=on_b[0])
        return path.clients

    async def _discover_connections(self, path: _Path) -> ConnectionPair:
        """Open connections created out of band for a path."""
        clients = path.clients or await self._discover_clients(path)
        on_b = {c.connection_id: c for c in await self.get_connections(path.chain_b_id)}
        for end_a in await self.get_connections(path.chain_a_id):
            end_b = on_b.get(end_a.counterparty_connection_id)
            if end_a.client_id == clients.a.client_id and end_b is not None:
                path.connections = ConnectionPair(a=end_a, b=end_b)
                return path.connections
        raise ProtocolRejection(
            f"No connection between {path.chain_a_id} and {path.chain_b_id}"
        )

    async def _discover_channels(self, path: _Path) -> None:
        """Pick up open channels created out of band on the path's connection."""
        try:
            connections = path.connections or await self._discover_connections(path)
        except ProtocolRejection:
            return

        on_b = {(c.port_id, c.channel_id): c for c in await self.get_channels(path.chain_b_id)}
        for end_a in await self.get_channels(path.chain_a_id):
            if end_a.connection_hops[:1] != [connections.a.connection_id]:
                continue
            end_b = on_b.get((end_a.counterparty.port_id, end_a.counterparty.channel_id))
            if end_b is not None and end_a.state == end_b.state == STATE_OPEN:
                path.channels.append(ChannelPair(a=end_a, b=end_b))

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def get_clients(self, chain_id: str) -> list[ClientOutput]:
        """Clients on a configured chain."""
        return await self._entry(chain_id).chain.query_clients()

    async def get_connections(self, chain_id: str) -> list[ConnectionOutput]:
        """Connection ends on a configured chain."""
        return await self._entry(chain_id).chain.query_connections()

    async def get_channels(self, chain_id: str) -> list[ChannelOutput]:
        """Channel ends on a configured chain."""
        return await self._entry(chain_id).chain.query_channels()

    # -------------------------------------------------------------------------
    # Relaying
    # -------------------------------------------------------------------------

    async def start_relaying(self, *path_names: str) -> None:
        """Start the relay loop in the background. Restarts it if already running."""
        paths = [self._path(name) for name in path_names]
        await self.stop_relaying()

        for path in paths:
            if not path.channels:
                await self._discover_channels(path)

        self._stop = asyncio.Event()
        self._relay_task = asyncio.create_task(
            self._relay_loop(paths, self._stop), name=f"{self.name}-relay"
        )
        logger.info("Relayer %s started on %s", self.name, ", ".join(path_names))

    async def stop_relaying(self) -> None:
        """Signal the relay loop and wait for its current pass to end. Idempotent."""
        task, self._relay_task = self._relay_task, None
        if task is None:
            return
        self._stop.set()
        await task
        logger.info("Relayer %s stopped", self.name)

    async def shutdown(self) -> None:
        """Stop relaying when the label is swept."""
        await self.stop_relaying()
        if self.group_name is not None:
            self._network.detach(self.group_name)

    async def _relay_loop(self, paths: list[_Path], stop: asyncio.Event) -> None:
        while not stop.is_set():
            for path in paths:
                for pair in path.channels:
                    if stop.is_set():
                        return
                    await self._relay_pass(path.chain_a_id, path.chain_b_id, pair.a)
                    await self._relay_pass(path.chain_b_id, path.chain_a_id, pair.b)

            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(stop.wait(), timeout=self.poll_interval)

    async def _relay_pass(self, src_id: str, dst_id: str, channel: ChannelOutput) -> None:
        """Deliver and acknowledge every pending packet from one channel end."""
        src, dst = self._entry(src_id), self._entry(dst_id)
        try:
            for packet in await src.chain.pending_packets(channel.port_id, channel.channel_id):
                ack = await dst.chain.recv_packet(packet, self._signer(dst))
                await src.chain.acknowledge_packet(packet, ack, self._signer(src))
                self.relayed += 1
                logger.debug("Relayed packet %d %s -> %s", packet.sequence, src_id, dst_id)
        except InterchainError as exc:
            logger.warning("Relay %s -> %s failed, retrying next pass: %s", src_id, dst_id, exc)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _entry(self, chain_id: str) -> _ChainEntry:
        try:
            return self._chains[chain_id]
        except KeyError:
            raise ProtocolRejection(
                f"Chain {chain_id} is not configured on {self.name}", chain_id=chain_id
            ) from None

    def _path(self, path_name: str) -> _Path:
        try:
            return self._paths[path_name]
        except KeyError:
            raise ProtocolRejection(f"Unknown path {path_name}") from None

    @staticmethod
    def _signer(entry: _ChainEntry) -> str:
        if entry.key is None:
            raise ProtocolRejection(
                f"No key restored for {entry.chain.config.chain_id}",
                chain_id=entry.chain.config.chain_id,
            )
        return entry.key.address


@contextlib.asynccontextmanager
async def _rejections(chain_id: str) -> AsyncIterator[None]:
    """Report a rejected handshake transaction as a protocol rejection."""
    try:
        yield
    except TransactionError as exc:
        raise ProtocolRejection(exc.message, chain_id=chain_id) from exc
