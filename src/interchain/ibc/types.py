"""
Value types exchanged between the orchestrator and its collaborators.

All types are frozen. A value handed to a relayer or chain adapter is a
read-only copy; nothing on either side of a capability call can mutate the
other side's view of it.
"""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from interchain.types import StrictBaseModel

DEFAULT_TRUSTING_PERIOD = "504h"
"""Light-client trusting period used when a chain config does not set one."""

DEFAULT_TRANSFER_PORT = "transfer"
"""Port bound by the fungible token transfer application."""

DEFAULT_TRANSFER_VERSION = "ics20-1"
"""Application version negotiated on transfer channels."""

FAUCET_KEY_NAME = "faucet"
"""Key every chain funds at genesis and hands out test-user funds from."""


class ChainConfig(StrictBaseModel):
    """
    Static description of one chain under test.

    The `type` field is the protocol family tag used to select adapters.
    """

    type: str
    """Protocol family tag (e.g. "sim", "cosmos")."""

    name: str
    """Logical chain name, unique within a topology."""

    chain_id: str
    """On-chain identifier, unique within a topology."""

    bech32_prefix: str = "cosmos"
    """Human-readable prefix for account addresses."""

    denom: str = "stake"
    """Native fee and staking denomination."""

    gas_prices: str = "0.0stake"
    """Minimum gas prices accepted by validators."""

    gas_adjustment: float = 1.3
    """Multiplier applied to simulated gas."""

    trusting_period: str = ""
    """Light-client trusting period. Empty selects the protocol default."""

    coin_type: int = 118
    """BIP-44 coin type of the chain's accounts."""

    num_validators: int = Field(default=1, ge=1)
    """Number of validator processes in the chain's process group."""

    num_full_nodes: int = Field(default=0, ge=0)
    """Number of full-node processes in the chain's process group."""

    block_time: float = Field(default=1.0, gt=0)
    """Target seconds between blocks."""

    voting_period_blocks: int = Field(default=10, ge=1)
    """Governance voting period expressed in blocks."""

    faucet_funds: int = Field(default=10_000_000_000_000, ge=0)
    """Genesis balance of the chain's faucet key, in `denom`."""


class WalletAmount(StrictBaseModel):
    """An amount of one denom owned by (or destined for) one address."""

    address: str
    denom: str
    amount: int = Field(ge=0)


class KeyEntry(StrictBaseModel):
    """
    Key material generated by the orchestrator.

    Handed to chains and relayers as an immutable value. Receivers hold a
    read-only copy.
    """

    key_name: str
    """Keyring name the material is registered under."""

    private_key: str
    """Hex-encoded 32-byte secp256k1 private key."""

    public_key: str
    """Hex-encoded 33-byte compressed public key."""

    address: str
    """Bech32 account address under the chain's prefix."""


class Wallet(StrictBaseModel):
    """A funded account on one chain."""

    key_name: str
    address: str
    chain_id: str


class ClientOptions(StrictBaseModel):
    """Light-client creation options. Empty values select protocol defaults."""

    trusting_period: str = ""
    """How long a header stays trusted. Empty uses the chain's configured period."""

    trust_level: str = "1/3"
    """Fraction of validator power that must overlap between trusted headers."""

    max_clock_drift: str = "10s"
    """Tolerated clock skew between the two chains."""


class Ordering(str, Enum):
    """Channel packet ordering."""

    UNORDERED = "unordered"
    ORDERED = "ordered"


class ChannelOptions(StrictBaseModel):
    """Channel handshake options. Defaults describe an unordered transfer channel."""

    source_port: str = DEFAULT_TRANSFER_PORT
    dest_port: str = DEFAULT_TRANSFER_PORT
    ordering: Ordering = Ordering.UNORDERED
    version: str = DEFAULT_TRANSFER_VERSION


class TransferOptions(StrictBaseModel):
    """Options for a cross-chain token transfer."""

    timeout_height_offset: int = Field(default=1000, ge=1)
    """Blocks on the receiving chain before the packet times out."""

    memo: str = ""


class Packet(StrictBaseModel):
    """A packet committed on the sending chain."""

    sequence: int
    source_port: str
    source_channel: str
    dest_port: str
    dest_channel: str
    data: dict[str, str]
    timeout_height: int


class Tx(StrictBaseModel):
    """Result of a transaction included in a block."""

    height: int
    tx_hash: str
    gas_spent: int = 0
    packet: Packet | None = None


# -----------------------------------------------------------------------------
# Handshake artifacts
# -----------------------------------------------------------------------------


class ClientOutput(StrictBaseModel):
    """A light client living on `chain_id` that tracks `counterparty_chain_id`."""

    client_id: str
    chain_id: str
    counterparty_chain_id: str


class ConnectionOutput(StrictBaseModel):
    """One end of a connection."""

    connection_id: str
    chain_id: str
    client_id: str
    counterparty_connection_id: str
    state: str


class ChannelCounterparty(StrictBaseModel):
    """The remote end of a channel."""

    port_id: str
    channel_id: str


class ChannelOutput(StrictBaseModel):
    """One end of a channel."""

    channel_id: str
    port_id: str
    chain_id: str
    ordering: Ordering
    version: str
    state: str
    connection_hops: list[str]
    counterparty: ChannelCounterparty


class ClientPair(StrictBaseModel):
    """Both clients created for a path: the one on chain A and the one on chain B."""

    a: ClientOutput
    b: ClientOutput


class ConnectionPair(StrictBaseModel):
    """Both ends of a connection."""

    a: ConnectionOutput
    b: ConnectionOutput


class ChannelPair(StrictBaseModel):
    """Both ends of a channel."""

    a: ChannelOutput
    b: ChannelOutput


# -----------------------------------------------------------------------------
# Governance
# -----------------------------------------------------------------------------


class ProposalStatus(str, Enum):
    """Lifecycle of a governance proposal."""

    DEPOSIT_PERIOD = "PROPOSAL_STATUS_DEPOSIT_PERIOD"
    VOTING_PERIOD = "PROPOSAL_STATUS_VOTING_PERIOD"
    PASSED = "PROPOSAL_STATUS_PASSED"
    REJECTED = "PROPOSAL_STATUS_REJECTED"
    FAILED = "PROPOSAL_STATUS_FAILED"


class ProposalResponse(StrictBaseModel):
    """Queried state of a governance proposal."""

    proposal_id: int
    title: str
    status: ProposalStatus
    submit_height: int
    voting_end_height: int
    yes_votes: int = 0
    no_votes: int = 0
