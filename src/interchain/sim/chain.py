"""
Simulated chain: a single-process stand-in for a multi-node network.

Produces blocks on an asyncio timer and applies queued transactions when a
block is committed, so a transaction becomes visible one block after it was
sent, as on a real chain. Enough state is kept to run the transfer scenario
end to end:

- Bank balances and a faucet key funded at genesis
- A keyring of orchestrator-generated keys
- Light clients, connections and channels created by a relayer
- Packet commitments, escrow accounts and minted vouchers with denom traces
- Governance proposals tallied at the end of their voting period

Nothing here verifies signatures or executes consensus.
"""

from __future__ import annotations

import asyncio
import hashlib
import itertools
import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, TypeVar

from interchain.ibc import (
    DEFAULT_TRANSFER_PORT,
    DEFAULT_TRANSFER_VERSION,
    FAUCET_KEY_NAME,
    ChainConfig,
    ChannelCounterparty,
    ChannelOutput,
    ClientOptions,
    ClientOutput,
    ConnectionOutput,
    DenomTrace,
    KeyEntry,
    Ordering,
    Packet,
    ProposalResponse,
    ProposalStatus,
    TransferOptions,
    Tx,
    WalletAmount,
    prefixed_denom,
)
from interchain.keys import Bech32, generate_key_entry
from interchain.types import (
    ChainNotStarted,
    ResourceError,
    TransactionError,
    TransientQueryError,
)

from .network import SimNetworkProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")

STATE_INIT = "STATE_INIT"
STATE_TRYOPEN = "STATE_TRYOPEN"
STATE_OPEN = "STATE_OPEN"

TX_GAS = 80_000
"""Gas reported for every simulated transaction."""

_COIN = re.compile(r"^(\d+)([a-zA-Z][a-zA-Z0-9/]*)$")


@dataclass(slots=True)
class _Proposal:
    proposal_id: int
    title: str
    submit_height: int
    voting_end_height: int
    status: ProposalStatus = ProposalStatus.VOTING_PERIOD
    votes: dict[str, str] = field(default_factory=dict)

    def to_response(self) -> ProposalResponse:
        return ProposalResponse(
            proposal_id=self.proposal_id,
            title=self.title,
            status=self.status,
            submit_height=self.submit_height,
            voting_end_height=self.voting_end_height,
            yes_votes=sum(1 for v in self.votes.values() if v == "yes"),
            no_votes=sum(1 for v in self.votes.values() if v == "no"),
        )


def parse_coin(coin: str) -> tuple[int, str]:
    """Split "100stake" into (100, "stake")."""
    match = _COIN.match(coin)
    if match is None:
        raise TransactionError(f"Invalid coin {coin!r}")
    return int(match.group(1)), match.group(2)


class SimChain:
    """In-process implementation of the Chain capability."""

    def __init__(self, config: ChainConfig, network: SimNetworkProvider) -> None:
        """
        Initialize an unstarted chain.

        Args:
            config: Static chain configuration.
            network: Provider the chain registers its process group with.
        """
        self._config = config
        self._network = network

        self.group_name: str | None = None
        self._initialized = False
        self._started = False
        self._stopped = False

        self._height = 0
        self._producer: asyncio.Task[None] | None = None
        self._new_block = asyncio.Event()
        self._pending: list[tuple[Callable[[int], Any], asyncio.Future[Any]]] = []
        self._tx_ids = itertools.count(1)

        self._balances: dict[tuple[str, str], int] = {}
        self._keys: dict[str, KeyEntry] = {}
        self._denom_traces: dict[str, DenomTrace] = {}

        self._clients: dict[str, ClientOutput] = {}
        self._connections: dict[str, ConnectionOutput] = {}
        self._channels: dict[tuple[str, str], ChannelOutput] = {}
        self._commitments: dict[tuple[str, str, int], Packet] = {}
        self._receipts: dict[tuple[str, str, int], bool] = {}
        self._next_sequence: dict[tuple[str, str], int] = {}
        self._ids: dict[str, itertools.count[int]] = {}

        self._proposals: dict[int, _Proposal] = {}

    @property
    def config(self) -> ChainConfig:
        """Static configuration of the chain."""
        return self._config

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def initialize(self, test_name: str, network_id: str, label: str) -> None:
        """Register the process group on the network and create the faucet key."""
        if self._initialized:
            raise ResourceError(f"Chain {self._config.chain_id} is already initialized")

        self.group_name = f"{label}/{self._config.chain_id}"
        self._network.attach(self.group_name, network_id, label, self)
        self._network.register_endpoint(self.rpc_address(), self)
        self._network.register_endpoint(self.grpc_address(), self)

        self._keys[FAUCET_KEY_NAME] = generate_key_entry(
            FAUCET_KEY_NAME, self._config.bech32_prefix
        )
        self._initialized = True
        logger.debug("Initialized %s for %s", self._config.chain_id, test_name)

    async def start(self, genesis_wallets: Sequence[WalletAmount]) -> None:
        """Write genesis balances and start producing blocks."""
        if not self._initialized:
            raise ResourceError(f"Chain {self._config.chain_id} is not initialized")
        if self._started:
            return

        faucet = self._keys[FAUCET_KEY_NAME]
        self._credit(faucet.address, self._config.denom, self._config.faucet_funds)
        for wallet in genesis_wallets:
            self._credit(wallet.address, wallet.denom, wallet.amount)

        self._started = True
        self._producer = asyncio.create_task(
            self._produce_blocks(), name=f"{self._config.chain_id}-blocks"
        )
        logger.info(
            "Started %s with %d validator(s) and %d full node(s)",
            self._config.chain_id,
            self._config.num_validators,
            self._config.num_full_nodes,
        )

    async def stop(self) -> None:
        """Stop producing blocks and leave the network. Idempotent."""
        if self._stopped:
            return
        self._stopped = True

        if self._producer is not None:
            self._producer.cancel()
            await asyncio.gather(self._producer, return_exceptions=True)

        pending, self._pending = self._pending, []
        for _, future in pending:
            if not future.done():
                future.set_exception(ChainNotStarted(self._config.name))
        self._new_block.set()

        if self.group_name is not None:
            self._network.detach(self.group_name)
        logger.info("Stopped %s at height %d", self._config.chain_id, self._height)

    async def shutdown(self) -> None:
        """Stop the chain when its label is swept."""
        await self.stop()

    def rpc_address(self) -> str:
        """RPC endpoint on the simulated network."""
        return f"sim://{self._require_group()}/rpc"

    def grpc_address(self) -> str:
        """gRPC endpoint on the simulated network."""
        return f"sim://{self._require_group()}/grpc"

    # -------------------------------------------------------------------------
    # Blocks
    # -------------------------------------------------------------------------

    async def _produce_blocks(self) -> None:
        while True:
            await asyncio.sleep(self._config.block_time)
            self._commit_block()

    def _commit_block(self) -> None:
        self._height += 1
        height = self._height

        pending, self._pending = self._pending, []
        for apply, future in pending:
            if future.done():
                continue
            try:
                result = apply(height)
            except Exception as exc:
                future.set_exception(exc)
            else:
                future.set_result(result)

        self._tally_proposals(height)

        block, self._new_block = self._new_block, asyncio.Event()
        block.set()

    async def _submit(self, apply: Callable[[int], T]) -> T:
        """Queue a state change for the next block and wait for its result."""
        self._require_started()
        future: asyncio.Future[T] = asyncio.get_running_loop().create_future()
        self._pending.append((apply, future))
        return await future

    def _tx(self, height: int) -> Tx:
        seed = f"{self._config.chain_id}/{height}/{next(self._tx_ids)}"
        return Tx(
            height=height,
            tx_hash=hashlib.sha256(seed.encode()).hexdigest().upper(),
            gas_spent=TX_GAS,
        )

    async def height(self) -> int:
        """Current block height."""
        self._require_started()
        return self._height

    async def wait_for_blocks(self, n: int) -> int:
        """Wait until `n` more blocks were committed."""
        self._require_started()
        target = self._height + n
        while self._height < target:
            await self._new_block.wait()
            self._require_started()
        return self._height

    # -------------------------------------------------------------------------
    # Keys and bank
    # -------------------------------------------------------------------------

    async def import_key(self, key_name: str, key: KeyEntry) -> None:
        """Add a key to the keyring."""
        self._keys[key_name] = key

    async def get_address(self, key_name: str) -> str:
        """Address of a keyring entry."""
        return self._key(key_name).address

    async def get_balance(self, address: str, denom: str) -> int:
        """Balance of `denom` held by `address`."""
        self._require_started()
        return self._balances.get((address, denom), 0)

    async def send_funds(self, key_name: str, amount: WalletAmount) -> Tx:
        """Bank send from a keyring entry."""
        sender = self._key(key_name).address

        def apply(height: int) -> Tx:
            self._move(sender, amount.address, amount.denom, amount.amount)
            return self._tx(height)

        return await self._submit(apply)

    async def execute_tx(self, key_name: str, *command: str) -> str:
        """
        Execute a chain command.

        Supported commands:
            bank send RECIPIENT AMOUNT
            gov submit-proposal TITLE
            gov vote PROPOSAL_ID yes|no
        """
        sender = self._key(key_name).address

        match command:
            case ("bank", "send", recipient, coin):
                value, denom = parse_coin(coin)

                def apply(height: int) -> Tx:
                    self._move(sender, recipient, denom, value)
                    return self._tx(height)

            case ("gov", "submit-proposal", title):

                def apply(height: int) -> Tx:
                    self._charge(sender)
                    proposal_id = len(self._proposals) + 1
                    self._proposals[proposal_id] = _Proposal(
                        proposal_id=proposal_id,
                        title=title,
                        submit_height=height,
                        voting_end_height=height + self._config.voting_period_blocks,
                    )
                    logger.info("Proposal %d submitted on %s", proposal_id, self._config.chain_id)
                    return self._tx(height)

            case ("gov", "vote", proposal_id, ("yes" | "no") as option):

                def apply(height: int) -> Tx:
                    self._charge(sender)
                    proposal = self._proposals.get(int(proposal_id))
                    if proposal is None or proposal.status is not ProposalStatus.VOTING_PERIOD:
                        raise TransactionError(f"Proposal {proposal_id} is not in voting period")
                    proposal.votes[sender] = option
                    return self._tx(height)

            case _:
                raise TransactionError(f"Unknown command: {' '.join(command)}")

        tx = await self._submit(apply)
        return tx.tx_hash

    def _key(self, key_name: str) -> KeyEntry:
        try:
            return self._keys[key_name]
        except KeyError:
            raise TransactionError(
                f"No key named {key_name!r} on {self._config.chain_id}"
            ) from None

    def _credit(self, address: str, denom: str, amount: int) -> None:
        self._balances[(address, denom)] = self._balances.get((address, denom), 0) + amount

    def _debit(self, address: str, denom: str, amount: int) -> None:
        balance = self._balances.get((address, denom), 0)
        if balance < amount:
            raise TransactionError(
                f"Insufficient funds: {address} has {balance}{denom}, needs {amount}{denom}"
            )
        self._balances[(address, denom)] = balance - amount

    def _move(self, sender: str, recipient: str, denom: str, amount: int) -> None:
        self._debit(sender, denom, amount)
        self._credit(recipient, denom, amount)

    def _charge(self, signer: str) -> None:
        """Reject transactions from accounts that hold no native tokens."""
        if self._balances.get((signer, self._config.denom), 0) <= 0:
            raise TransactionError(f"Account {signer} cannot pay fees on {self._config.chain_id}")

    # -------------------------------------------------------------------------
    # Governance
    # -------------------------------------------------------------------------

    async def query_proposal(self, proposal_id: int) -> ProposalResponse:
        """
        Current state of a proposal.

        Raises:
            TransientQueryError: If the proposal is not (yet) known.
        """
        self._require_started()
        proposal = self._proposals.get(proposal_id)
        if proposal is None:
            raise TransientQueryError(
                f"Proposal {proposal_id} not found on {self._config.chain_id}"
            )
        return proposal.to_response()

    def _tally_proposals(self, height: int) -> None:
        for proposal in self._proposals.values():
            if proposal.status is not ProposalStatus.VOTING_PERIOD:
                continue
            if height >= proposal.voting_end_height:
                yes = sum(1 for v in proposal.votes.values() if v == "yes")
                no = len(proposal.votes) - yes
                proposal.status = ProposalStatus.PASSED if yes > no else ProposalStatus.REJECTED
                logger.info(
                    "Proposal %d on %s %s (%d yes, %d no)",
                    proposal.proposal_id,
                    self._config.chain_id,
                    proposal.status.name,
                    yes,
                    no,
                )

    # -------------------------------------------------------------------------
    # Token transfer
    # -------------------------------------------------------------------------

    def escrow_address(self, port_id: str, channel_id: str) -> str:
        """Account holding native tokens sent out over a channel."""
        preimage = DEFAULT_TRANSFER_VERSION.encode() + b"\x00" + f"{port_id}/{channel_id}".encode()
        return Bech32.encode(self._config.bech32_prefix, hashlib.sha256(preimage).digest()[:20])

    def denom_trace(self, denom: str) -> DenomTrace:
        """Trace of a denom held on this chain. Unknown denoms are native."""
        return self._denom_traces.get(denom, DenomTrace(path="", base_denom=denom))

    async def send_ibc_transfer(
        self,
        channel_id: str,
        key_name: str,
        amount: WalletAmount,
        options: TransferOptions | None = None,
    ) -> Tx:
        """
        Send tokens over a transfer channel.

        Native tokens are escrowed. Vouchers going back the way they came are burned.
        """
        options = options or TransferOptions()
        sender = self._key(key_name).address

        def apply(height: int) -> Tx:
            end = self._channels.get((DEFAULT_TRANSFER_PORT, channel_id))
            if end is None or end.state != STATE_OPEN:
                raise TransactionError(
                    f"Channel {channel_id} is not open on {self._config.chain_id}"
                )

            trace = self.denom_trace(amount.denom)
            if trace.has_prefix(end.port_id, channel_id):
                self._debit(sender, amount.denom, amount.amount)
            else:
                escrow = self.escrow_address(end.port_id, channel_id)
                self._move(sender, escrow, amount.denom, amount.amount)

            key = (end.port_id, channel_id)
            sequence = self._next_sequence.get(key, 1)
            self._next_sequence[key] = sequence + 1

            packet = Packet(
                sequence=sequence,
                source_port=end.port_id,
                source_channel=channel_id,
                dest_port=end.counterparty.port_id,
                dest_channel=end.counterparty.channel_id,
                data={
                    "denom": trace.full_path,
                    "amount": str(amount.amount),
                    "sender": sender,
                    "receiver": amount.address,
                    "memo": options.memo,
                },
                timeout_height=height + options.timeout_height_offset,
            )
            self._commitments[(end.port_id, channel_id, sequence)] = packet
            return self._tx(height).model_copy(update={"packet": packet})

        return await self._submit(apply)

    async def pending_packets(self, port_id: str, channel_id: str) -> list[Packet]:
        """Packets committed on a channel and not yet acknowledged."""
        self._require_started()
        return [
            packet
            for (port, channel, _), packet in sorted(self._commitments.items())
            if port == port_id and channel == channel_id
        ]

    async def recv_packet(self, packet: Packet, signer: str) -> bool:
        """
        Deliver a packet. Returns the acknowledgement (True on success).

        Receiving the same packet twice returns the first acknowledgement.
        """

        def apply(height: int) -> bool:
            self._charge(signer)
            key = (packet.dest_port, packet.dest_channel, packet.sequence)
            if key in self._receipts:
                return self._receipts[key]

            ack = self._on_recv(packet, height)
            self._receipts[key] = ack
            return ack

        return await self._submit(apply)

    def _on_recv(self, packet: Packet, height: int) -> bool:
        if height > packet.timeout_height:
            logger.debug("Packet %d timed out on %s", packet.sequence, self._config.chain_id)
            return False

        amount = int(packet.data["amount"])
        receiver = packet.data["receiver"]
        trace = DenomTrace.parse(packet.data["denom"])

        if trace.has_prefix(packet.source_port, packet.source_channel):
            # Token returning home: release from escrow.
            local = trace.strip_first_hop()
            escrow = self.escrow_address(packet.dest_port, packet.dest_channel)
            try:
                self._move(escrow, receiver, local.ibc_denom(), amount)
            except TransactionError:
                return False
            return True

        voucher = DenomTrace.parse(
            prefixed_denom(packet.dest_port, packet.dest_channel, trace.full_path)
        )
        denom = voucher.ibc_denom()
        self._denom_traces[denom] = voucher
        self._credit(receiver, denom, amount)
        return True

    async def acknowledge_packet(self, packet: Packet, success: bool, signer: str) -> None:
        """Clear a packet commitment, refunding the sender on a failed acknowledgement."""

        def apply(height: int) -> None:
            self._charge(signer)
            key = (packet.source_port, packet.source_channel, packet.sequence)
            if self._commitments.pop(key, None) is None:
                raise TransactionError(f"No commitment for packet {packet.sequence}")
            if success:
                return

            amount = int(packet.data["amount"])
            sender = packet.data["sender"]
            trace = DenomTrace.parse(packet.data["denom"])
            if trace.has_prefix(packet.source_port, packet.source_channel):
                self._credit(sender, trace.ibc_denom(), amount)
            else:
                escrow = self.escrow_address(packet.source_port, packet.source_channel)
                self._move(escrow, sender, trace.ibc_denom(), amount)
            logger.info("Refunded packet %d on %s", packet.sequence, self._config.chain_id)

        await self._submit(apply)

    # -------------------------------------------------------------------------
    # Handshake messages
    # -------------------------------------------------------------------------

    def _next_id(self, kind: str) -> int:
        return next(self._ids.setdefault(kind, itertools.count()))

    async def create_client(
        self,
        counterparty_chain_id: str,
        options: ClientOptions,
        signer: str,
    ) -> ClientOutput:
        """Create a light client of another chain."""

        def apply(height: int) -> ClientOutput:
            self._charge(signer)
            client = ClientOutput(
                client_id=f"07-tendermint-{self._next_id('client')}",
                chain_id=self._config.chain_id,
                counterparty_chain_id=counterparty_chain_id,
            )
            self._clients[client.client_id] = client
            return client

        return await self._submit(apply)

    async def connection_open_init(self, client_id: str, signer: str) -> ConnectionOutput:
        """First connection handshake message."""

        def apply(height: int) -> ConnectionOutput:
            self._charge(signer)
            self._require_client(client_id)
            conn = ConnectionOutput(
                connection_id=f"connection-{self._next_id('connection')}",
                chain_id=self._config.chain_id,
                client_id=client_id,
                counterparty_connection_id="",
                state=STATE_INIT,
            )
            self._connections[conn.connection_id] = conn
            return conn

        return await self._submit(apply)

    async def connection_open_try(
        self,
        client_id: str,
        counterparty_connection_id: str,
        signer: str,
    ) -> ConnectionOutput:
        """Second connection handshake message."""

        def apply(height: int) -> ConnectionOutput:
            self._charge(signer)
            self._require_client(client_id)
            conn = ConnectionOutput(
                connection_id=f"connection-{self._next_id('connection')}",
                chain_id=self._config.chain_id,
                client_id=client_id,
                counterparty_connection_id=counterparty_connection_id,
                state=STATE_TRYOPEN,
            )
            self._connections[conn.connection_id] = conn
            return conn

        return await self._submit(apply)

    async def connection_open_ack(
        self,
        connection_id: str,
        counterparty_connection_id: str,
        signer: str,
    ) -> ConnectionOutput:
        """Third connection handshake message."""
        return await self._update_connection(
            connection_id, STATE_INIT, signer, counterparty_connection_id=counterparty_connection_id
        )

    async def connection_open_confirm(self, connection_id: str, signer: str) -> ConnectionOutput:
        """Final connection handshake message."""
        return await self._update_connection(connection_id, STATE_TRYOPEN, signer)

    async def _update_connection(
        self,
        connection_id: str,
        expected_state: str,
        signer: str,
        **update: str,
    ) -> ConnectionOutput:
        def apply(height: int) -> ConnectionOutput:
            self._charge(signer)
            conn = self._connections.get(connection_id)
            if conn is None or conn.state != expected_state:
                raise TransactionError(f"Connection {connection_id} is not in {expected_state}")
            conn = conn.model_copy(update={**update, "state": STATE_OPEN})
            self._connections[connection_id] = conn
            return conn

        return await self._submit(apply)

    async def channel_open_init(
        self,
        port_id: str,
        connection_id: str,
        ordering: Ordering,
        version: str,
        counterparty_port_id: str,
        signer: str,
    ) -> ChannelOutput:
        """First channel handshake message."""
        return await self._new_channel(
            port_id, connection_id, ordering, version, counterparty_port_id, "", STATE_INIT, signer
        )

    async def channel_open_try(
        self,
        port_id: str,
        connection_id: str,
        ordering: Ordering,
        version: str,
        counterparty_port_id: str,
        counterparty_channel_id: str,
        signer: str,
    ) -> ChannelOutput:
        """Second channel handshake message."""
        return await self._new_channel(
            port_id,
            connection_id,
            ordering,
            version,
            counterparty_port_id,
            counterparty_channel_id,
            STATE_TRYOPEN,
            signer,
        )

    async def channel_open_ack(
        self,
        port_id: str,
        channel_id: str,
        counterparty_channel_id: str,
        signer: str,
    ) -> ChannelOutput:
        """Third channel handshake message."""

        def apply(height: int) -> ChannelOutput:
            self._charge(signer)
            channel = self._require_channel(port_id, channel_id, STATE_INIT)
            channel = channel.model_copy(
                update={
                    "state": STATE_OPEN,
                    "counterparty": channel.counterparty.model_copy(
                        update={"channel_id": counterparty_channel_id}
                    ),
                }
            )
            self._channels[(port_id, channel_id)] = channel
            return channel

        return await self._submit(apply)

    async def channel_open_confirm(
        self,
        port_id: str,
        channel_id: str,
        signer: str,
    ) -> ChannelOutput:
        """Final channel handshake message."""

        def apply(height: int) -> ChannelOutput:
            self._charge(signer)
            channel = self._require_channel(port_id, channel_id, STATE_TRYOPEN)
            channel = channel.model_copy(update={"state": STATE_OPEN})
            self._channels[(port_id, channel_id)] = channel
            return channel

        return await self._submit(apply)

    async def _new_channel(
        self,
        port_id: str,
        connection_id: str,
        ordering: Ordering,
        version: str,
        counterparty_port_id: str,
        counterparty_channel_id: str,
        state: str,
        signer: str,
    ) -> ChannelOutput:
        def apply(height: int) -> ChannelOutput:
            self._charge(signer)
            if port_id == DEFAULT_TRANSFER_PORT and version != DEFAULT_TRANSFER_VERSION:
                raise TransactionError(
                    f"Invalid transfer version {version!r}, expected {DEFAULT_TRANSFER_VERSION!r}"
                )
            if port_id == DEFAULT_TRANSFER_PORT and ordering is not Ordering.UNORDERED:
                raise TransactionError("Transfer channels must be unordered")

            conn = self._connections.get(connection_id)
            if conn is None or conn.state != STATE_OPEN:
                raise TransactionError(f"Connection {connection_id} is not open")

            channel = ChannelOutput(
                channel_id=f"channel-{self._next_id('channel')}",
                port_id=port_id,
                chain_id=self._config.chain_id,
                ordering=ordering,
                version=version,
                state=state,
                connection_hops=[connection_id],
                counterparty=ChannelCounterparty(
                    port_id=counterparty_port_id, channel_id=counterparty_channel_id
                ),
            )
            self._channels[(port_id, channel.channel_id)] = channel
            return channel

        return await self._submit(apply)

    def _require_client(self, client_id: str) -> None:
        if client_id not in self._clients:
            raise TransactionError(f"Client {client_id} does not exist on {self._config.chain_id}")

    def _require_channel(self, port_id: str, channel_id: str, state: str) -> ChannelOutput:
        channel = self._channels.get((port_id, channel_id))
        if channel is None or channel.state != state:
            raise TransactionError(f"Channel {port_id}/{channel_id} is not in {state}")
        return channel

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def query_clients(self) -> list[ClientOutput]:
        """Light clients on this chain."""
        self._require_started()
        return list(self._clients.values())

    async def query_connections(self) -> list[ConnectionOutput]:
        """Connection ends on this chain."""
        self._require_started()
        return list(self._connections.values())

    async def query_channels(self) -> list[ChannelOutput]:
        """Channel ends on this chain."""
        self._require_started()
        return list(self._channels.values())

    def _require_started(self) -> None:
        if not self._started or self._stopped:
            raise ChainNotStarted(self._config.name)

    def _require_group(self) -> str:
        if self.group_name is None:
            raise ResourceError(f"Chain {self._config.chain_id} is not initialized")
        return self.group_name
