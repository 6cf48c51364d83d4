"""
Capability interfaces and value types for cross-chain protocol testing.

The orchestrator is a pure coordination layer. Everything chain-, relayer- or
runtime-specific sits behind the three protocols defined here.
"""

from .chain import Chain
from .denom import DenomTrace, ibc_denom, prefixed_denom
from .network import NetworkProvider
from .relayer import Relayer
from .types import (
    DEFAULT_TRANSFER_PORT,
    DEFAULT_TRANSFER_VERSION,
    DEFAULT_TRUSTING_PERIOD,
    FAUCET_KEY_NAME,
    ChainConfig,
    ChannelCounterparty,
    ChannelOptions,
    ChannelOutput,
    ChannelPair,
    ClientOptions,
    ClientOutput,
    ClientPair,
    ConnectionOutput,
    ConnectionPair,
    KeyEntry,
    Ordering,
    Packet,
    ProposalResponse,
    ProposalStatus,
    TransferOptions,
    Tx,
    Wallet,
    WalletAmount,
)

__all__ = [
    # Capabilities
    "Chain",
    "Relayer",
    "NetworkProvider",
    # Chain values
    "ChainConfig",
    "WalletAmount",
    "Wallet",
    "KeyEntry",
    "TransferOptions",
    "Packet",
    "Tx",
    # Handshake values
    "ClientOptions",
    "ChannelOptions",
    "Ordering",
    "ClientOutput",
    "ConnectionOutput",
    "ChannelOutput",
    "ChannelCounterparty",
    "ClientPair",
    "ConnectionPair",
    "ChannelPair",
    # Governance
    "ProposalStatus",
    "ProposalResponse",
    # Denoms
    "DenomTrace",
    "ibc_denom",
    "prefixed_denom",
    # Defaults
    "DEFAULT_TRUSTING_PERIOD",
    "DEFAULT_TRANSFER_PORT",
    "DEFAULT_TRANSFER_VERSION",
    "FAUCET_KEY_NAME",
]
