"""Chain capability interface."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from .types import (
    ChainConfig,
    KeyEntry,
    ProposalResponse,
    TransferOptions,
    Tx,
    WalletAmount,
)


class Chain(Protocol):
    """
    Protocol for one running multi-node network.

    One implementation exists per protocol family. The orchestrator only talks
    to chains through this interface, so it never depends on a specific
    transaction encoding or CLI.

    Implementers should:
    - Raise `ChainNotStarted` from state queries before `start` completed
    - Raise `TransientQueryError` for retryable query failures
    - Raise `TransactionError` when a transaction is rejected
    - Make `stop` safe to call in any lifecycle state, including twice
    """

    @property
    def config(self) -> ChainConfig:
        """Static configuration of the chain."""
        ...

    async def initialize(self, test_name: str, network_id: str, label: str) -> None:
        """
        Prepare the process group: genesis, node configuration, network attachment.

        Args:
            test_name: Name of the test run (for display).
            network_id: Shared network every process group joins.
            label: Correlation label attached to every resource created.
        """
        ...

    async def start(self, genesis_wallets: Sequence[WalletAmount]) -> None:
        """
        Start validator and full-node processes.

        Args:
            genesis_wallets: Additional accounts funded at genesis (relayer wallets).
        """
        ...

    async def height(self) -> int:
        """Current block height."""
        ...

    async def get_balance(self, address: str, denom: str) -> int:
        """Balance of `denom` held by `address` (0 for unknown accounts)."""
        ...

    async def import_key(self, key_name: str, key: KeyEntry) -> None:
        """Register orchestrator-generated key material under `key_name`."""
        ...

    async def get_address(self, key_name: str) -> str:
        """Account address of a registered key."""
        ...

    async def send_funds(self, key_name: str, amount: WalletAmount) -> Tx:
        """Send tokens within the chain from `key_name` to `amount.address`."""
        ...

    async def send_ibc_transfer(
        self,
        channel_id: str,
        key_name: str,
        amount: WalletAmount,
        options: TransferOptions | None = None,
    ) -> Tx:
        """Send tokens over a channel. The returned Tx carries the committed packet."""
        ...

    async def execute_tx(self, key_name: str, *command: str) -> str:
        """Execute an arbitrary chain command signed by `key_name`. Returns the tx hash."""
        ...

    async def wait_for_blocks(self, n: int) -> int:
        """Block until the chain advanced `n` blocks. Returns the new height."""
        ...

    async def query_proposal(self, proposal_id: int) -> ProposalResponse:
        """Current state of a governance proposal."""
        ...

    def rpc_address(self) -> str:
        """Address of the RPC endpoint reachable from inside the shared network."""
        ...

    def grpc_address(self) -> str:
        """Address of the gRPC endpoint reachable from inside the shared network."""
        ...

    async def stop(self) -> None:
        """Stop and remove every process of the chain's process group."""
        ...
