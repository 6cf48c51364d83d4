"""
The `Interchain` facade: declare, build, use and tear down a topology.

Typical use::

    async with Interchain(network) as ic:
        ic.add_chain(gaia)
        ic.add_chain(osmosis)
        ic.add_relayer(relayer, "rly")
        ic.add_link("gaia", "osmosis", "rly", "transfer-path")
        await ic.build(BuildOptions(test_name="test_transfer"))
        ...

Leaving the block closes the topology, whether the test passed or not.
"""

from __future__ import annotations

import logging
from types import TracebackType

from interchain.ibc import Chain, ChannelOptions, ClientOptions, NetworkProvider, Relayer
from interchain.storage import RunLedger, SQLiteLedger
from interchain.topology import (
    ChainHandle,
    ChainState,
    HandshakeState,
    Link,
    RelayerHandle,
    RelayerState,
    Topology,
)
from interchain.types import ChainNotStarted, HandshakeIncomplete, InterchainError

from .build import BuildOrchestrator
from .context import BuildContext
from .handshake import HandshakeSequencer
from .options import BuildOptions, BuildReport
from .teardown import TeardownCoordinator

logger = logging.getLogger(__name__)


class Interchain:
    """
    A test topology of chains, relayers and links.

    Each instance is independent. Two topologies built in the same process
    share nothing but the network provider they were given.
    """

    def __init__(self, network: NetworkProvider) -> None:
        """
        Initialize an empty topology.

        Args:
            network: Provider of the shared network and label-keyed cleanup.
        """
        self.network = network
        self.topology = Topology()
        self._context: BuildContext | None = None
        self._report: BuildReport | None = None
        self._owned_ledger: SQLiteLedger | None = None

    # -------------------------------------------------------------------------
    # Declaration
    # -------------------------------------------------------------------------

    def add_chain(self, chain: Chain, name: str | None = None) -> Interchain:
        """Declare a chain. Returns self for chaining."""
        self.topology.add_chain(chain, name)
        return self

    def add_relayer(self, relayer: Relayer, name: str) -> Interchain:
        """Declare a relayer. Returns self for chaining."""
        self.topology.add_relayer(relayer, name)
        return self

    def add_link(
        self,
        chain_a: str,
        chain_b: str,
        relayer: str,
        path_name: str,
        *,
        client_options: ClientOptions | None = None,
        channel_options: ChannelOptions | None = None,
    ) -> Interchain:
        """Declare a link between two declared chains. Returns self for chaining."""
        self.topology.add_link(
            chain_a,
            chain_b,
            relayer,
            path_name,
            client_options=client_options,
            channel_options=channel_options,
        )
        return self

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def build(self, options: BuildOptions | None = None) -> BuildReport:
        """
        Bring the declared topology up.

        May be called once per instance. On failure everything created so
        far is torn down before the error propagates.

        Raises:
            InterchainError: If the topology was already built.
            InitializationFailure: If a chain or relayer failed to become ready.
            ExceptionGroup: If one or more link handshakes failed.
            DeadlineExceeded: If the build deadline elapsed.
        """
        if self._context is not None:
            raise InterchainError(f"Topology {self._context.label} was already built")

        options = options or BuildOptions()
        ledger: RunLedger | None = None
        if options.ledger_path is not None:
            self._owned_ledger = SQLiteLedger(options.ledger_path)
            ledger = self._owned_ledger

        self._context = BuildContext(
            topology=self.topology,
            network=self.network,
            options=options,
            label=options.resolved_label(),
            ledger=ledger,
        )
        self._report = await BuildOrchestrator(self._context).run()
        return self._report

    async def close(self) -> None:
        """
        Tear down everything the build created.

        Safe before a build, after a failed build, and when called twice.

        Raises:
            TeardownFailure: If any teardown step failed. Every step still ran.
        """
        ctx = self._context
        try:
            if ctx is not None and not ctx.torn_down:
                await TeardownCoordinator(ctx).run()
        finally:
            if self._owned_ledger is not None:
                self._owned_ledger.close()
                self._owned_ledger = None

    async def __aenter__(self) -> Interchain:
        """Async context manager entry."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Async context manager exit. Closes the topology."""
        await self.close()

    # -------------------------------------------------------------------------
    # Access
    # -------------------------------------------------------------------------

    @property
    def label(self) -> str | None:
        """Correlation label, once a build started."""
        return self._context.label if self._context is not None else None

    @property
    def report(self) -> BuildReport | None:
        """Report of the last successful build."""
        return self._report

    def get_chain(self, name: str) -> Chain:
        """
        The chain adapter of a started chain.

        Raises:
            UnknownParticipant: If no chain has that name.
            ChainNotStarted: If the chain is not producing blocks.
        """
        handle = self.topology.chain(name)
        if handle.state is not ChainState.STARTED:
            raise ChainNotStarted(name)
        return handle.chain

    def chain_handle(self, name: str) -> ChainHandle:
        """The handle of a declared chain, in any state."""
        return self.topology.chain(name)

    def get_relayer(self, name: str) -> Relayer:
        """The relayer adapter of a declared relayer."""
        return self.topology.relayer(name).relayer

    def relayer_handle(self, name: str) -> RelayerHandle:
        """The handle of a declared relayer, in any state."""
        return self.topology.relayer(name)

    def link(self, path_name: str) -> Link:
        """A declared link."""
        return self.topology.link(path_name)

    def handshake(self, path_name: str) -> HandshakeSequencer:
        """
        A sequencer for driving one link's handshake by hand.

        Intended for builds with `skip_path_creation`.

        Raises:
            InterchainError: If the topology has not been built.
        """
        ctx = self._require_built()
        return HandshakeSequencer(
            self.topology.link(path_name),
            ctx.options.config,
            ledger=ctx.ledger,
            label=ctx.label,
        )

    # -------------------------------------------------------------------------
    # Relaying
    # -------------------------------------------------------------------------

    async def start_relayer(
        self,
        relayer_name: str,
        *path_names: str,
        skip_verification: bool = False,
    ) -> None:
        """
        Start relaying packets on a relayer's paths.

        Args:
            relayer_name: The relayer to start.
            path_names: Paths to relay. Defaults to every path of the relayer.
            skip_verification: Start even if a channel is not established.

        Raises:
            InterchainError: If the topology was closed or the relayer is not
                configured.
            HandshakeIncomplete: If a path has no established channel and
                verification is not skipped.
        """
        ctx = self._require_built()
        handle = self.topology.relayer(relayer_name)
        if ctx.torn_down or handle.state not in (RelayerState.CONFIGURED, RelayerState.RELAYING):
            raise InterchainError(
                f"Relayer {relayer_name!r} cannot relay from state {handle.state.name}"
            )
        paths = list(path_names) or list(handle.paths)

        for path_name in paths:
            link = self.topology.link(path_name)
            if link.relayer is not handle:
                raise InterchainError(
                    f"Path {path_name!r} is not assigned to relayer {relayer_name!r}"
                )
            if not skip_verification and link.state is not HandshakeState.CHANNEL_CREATED:
                raise HandshakeIncomplete(path_name, link.state.label)

        await handle.relayer.start_relaying(*paths)
        handle.transition(RelayerState.RELAYING)
        logger.info("Relayer %s relaying %s", relayer_name, ", ".join(paths))

    async def stop_relayer(self, relayer_name: str) -> None:
        """Stop a relayer's relay loop. The relayer stays configured."""
        handle = self.topology.relayer(relayer_name)
        await handle.relayer.stop_relaying()
        if handle.state is RelayerState.RELAYING:
            handle.transition(RelayerState.CONFIGURED)
        logger.info("Relayer %s stopped relaying", relayer_name)

    def _require_built(self) -> BuildContext:
        if self._context is None:
            raise InterchainError("Topology has not been built")
        return self._context
