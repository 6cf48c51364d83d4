"""
Build orchestrator: turns a declared topology into running, connected chains.

Phases
------
1. Create the shared network under the correlation label.
2. Generate a wallet for every relayer on every chain it touches.
3. Initialize and start all chains concurrently, funding relayer wallets at
   genesis, then wait for each to produce blocks.
4. Initialize and configure relayers one after another.
5. Run the handshake of every link concurrently.

Phases 3 and 4 are fatal on the first failure. Phase 5 isolates links: one
link failing never stops its siblings, and all failures are reported together.

On any failure the partial topology is torn down before the error propagates.
"""

from __future__ import annotations

import asyncio
import logging
import time

from interchain.ibc import WalletAmount
from interchain.keys import generate_key_entry
from interchain.metrics import build_duration, builds_failed, chains_started
from interchain.polling import wait_until_producing
from interchain.topology import ChainHandle, ChainState, HandshakeState, RelayerState
from interchain.types import (
    DeadlineExceeded,
    InitializationFailure,
    TeardownFailure,
)

from .context import BuildContext
from .handshake import HandshakeSequencer
from .options import BuildReport
from .teardown import TeardownCoordinator

logger = logging.getLogger(__name__)


class BuildOrchestrator:
    """Runs one build over a build context."""

    def __init__(self, context: BuildContext) -> None:
        """Initialize with a fresh context. The topology must not have been built."""
        self._ctx = context

    async def run(self) -> BuildReport:
        """
        Build the topology.

        Returns:
            Report of the finished build.

        Raises:
            InitializationFailure: If a chain or relayer failed to become ready.
            ExceptionGroup: If one or more link handshakes failed.
            DeadlineExceeded: If the build deadline elapsed.
        """
        ctx = self._ctx
        deadline = ctx.options.deadline
        started = time.monotonic()

        ctx.topology.seal()
        if ctx.ledger is not None:
            ctx.ledger.record_run(ctx.label, ctx.options.test_name)
        logger.info(
            "Building %s (%d chains, %d links)",
            ctx.label,
            len(ctx.topology.chains),
            len(ctx.topology.links),
        )

        timeout = asyncio.timeout(deadline)
        try:
            async with timeout:
                await self._build()
        except BaseException as exc:
            builds_failed.inc()
            build_duration.observe(time.monotonic() - started)

            error: BaseException = exc
            if isinstance(exc, TimeoutError) and timeout.expired():
                error = DeadlineExceeded("build", detail=f"{deadline}s elapsed")

            await self._abort(error)
            if error is exc:
                raise
            raise error from exc

        elapsed = time.monotonic() - started
        build_duration.observe(elapsed)
        if ctx.ledger is not None:
            ctx.ledger.set_run_status(ctx.label, "ready")

        assert ctx.network_id is not None
        logger.info("Built %s in %.1fs", ctx.label, elapsed)
        return BuildReport(
            label=ctx.label,
            network_id=ctx.network_id,
            links={name: link.state for name, link in ctx.topology.links.items()},
            elapsed=elapsed,
        )

    async def _build(self) -> None:
        ctx = self._ctx

        ctx.network_id = await ctx.network.create_network(ctx.label)
        ctx.record_resource("network", "network", ctx.network_id)
        logger.info("Network %s created for %s", ctx.network_id, ctx.label)

        self._generate_relayer_keys()
        await self._start_chains()
        await self._configure_relayers()

        if ctx.options.skip_path_creation:
            logger.info("Skipping path creation for %s", ctx.label)
            return
        await self._run_handshakes()

    async def _abort(self, error: BaseException) -> None:
        """Tear down after a failure. Teardown errors are attached, never raised."""
        ctx = self._ctx
        ctx.cancel.set()
        logger.error("Build of %s failed: %s", ctx.label, error)

        try:
            await TeardownCoordinator(ctx).run(status="failed")
        except TeardownFailure as failure:
            logger.error("Teardown after failed build of %s: %s", ctx.label, failure)
            error.add_note(f"teardown after failed build: {failure}")

    # -------------------------------------------------------------------------
    # Key material
    # -------------------------------------------------------------------------

    def _generate_relayer_keys(self) -> None:
        """One fresh wallet per relayer per chain it touches."""
        ctx = self._ctx
        for relayer_name in ctx.topology.relayers:
            for chain in ctx.topology.chains_for(relayer_name):
                ctx.relayer_keys[(relayer_name, chain.name)] = generate_key_entry(
                    relayer_name, chain.chain.config.bech32_prefix
                )

    def _genesis_wallets(self, handle: ChainHandle) -> list[WalletAmount]:
        ctx = self._ctx
        config = handle.chain.config
        return [
            WalletAmount(
                address=key.address,
                denom=config.denom,
                amount=ctx.options.config.relayer_wallet_funds,
            )
            for (_, chain_name), key in ctx.relayer_keys.items()
            if chain_name == handle.name
        ]

    # -------------------------------------------------------------------------
    # Chains
    # -------------------------------------------------------------------------

    async def _start_chains(self) -> None:
        """
        Start every chain concurrently.

        The first failure sets the cancel signal. Other chains finish the
        step they are in and start no new one.
        """
        failures: list[tuple[ChainHandle, str, Exception]] = []

        async with asyncio.TaskGroup() as tg:
            for handle in self._ctx.topology.chains.values():
                tg.create_task(self._start_chain(handle, failures), name=f"start-{handle.name}")

        if failures:
            handle, phase, exc = failures[0]
            raise InitializationFailure(handle.name, phase, f"{type(exc).__name__}: {exc}") from exc

    async def _start_chain(
        self,
        handle: ChainHandle,
        failures: list[tuple[ChainHandle, str, Exception]],
    ) -> None:
        ctx = self._ctx
        config = ctx.options.config
        assert ctx.network_id is not None

        phase = "initialize"
        try:
            if ctx.cancel.is_set():
                return
            ctx.record_chain(handle)
            await handle.chain.initialize(ctx.options.test_name, ctx.network_id, ctx.label)
            handle.transition(ChainState.INITIALIZED)

            if ctx.cancel.is_set():
                return
            phase = "start"
            await handle.chain.start(self._genesis_wallets(handle))

            phase = "ready"
            height = await wait_until_producing(handle.chain, config, ctx.cancel)
            if height is None:
                return
            handle.transition(ChainState.STARTED)
        except Exception as exc:
            logger.error("Chain %s failed during %s: %s", handle.name, phase, exc)
            failures.append((handle, phase, exc))
            ctx.cancel.set()
            return

        chains_started.inc()
        logger.info(
            "Chain %s (%s) producing blocks at height %d", handle.name, handle.chain_id, height
        )

    # -------------------------------------------------------------------------
    # Relayers
    # -------------------------------------------------------------------------

    async def _configure_relayers(self) -> None:
        """Initialize and configure relayers, one after another."""
        ctx = self._ctx
        assert ctx.network_id is not None

        for handle in ctx.topology.relayers.values():
            phase = "initialize"
            try:
                ctx.record_resource("relayer", handle.name, handle.name)
                await handle.relayer.initialize(ctx.options.test_name, ctx.network_id, ctx.label)
                handle.transition(RelayerState.INITIALIZED)

                phase = "configure"
                for chain in ctx.topology.chains_for(handle.name):
                    key = ctx.relayer_keys[(handle.name, chain.name)]
                    await handle.relayer.add_chain_configuration(
                        chain.chain.config,
                        key.key_name,
                        chain.chain.rpc_address(),
                        chain.chain.grpc_address(),
                    )
                    await handle.relayer.restore_key(chain.chain_id, key.key_name, key.model_copy())
                handle.transition(RelayerState.CONFIGURED)
            except Exception as exc:
                raise InitializationFailure(
                    handle.name, phase, f"{type(exc).__name__}: {exc}"
                ) from exc

            logger.info("Relayer %s configured for %d path(s)", handle.name, len(handle.paths))

    # -------------------------------------------------------------------------
    # Links
    # -------------------------------------------------------------------------

    async def _run_handshakes(self) -> None:
        """
        Handshake every link concurrently.

        Links are independent: a failure is recorded and the others continue.
        """
        ctx = self._ctx
        links = list(ctx.topology.links.values())
        sequencers = [
            HandshakeSequencer(
                link,
                ctx.options.config,
                cancel=ctx.cancel,
                ledger=ctx.ledger,
                label=ctx.label,
            )
            for link in links
        ]

        results = await asyncio.gather(*(s.run() for s in sequencers), return_exceptions=True)
        failures = [r for r in results if isinstance(r, BaseException)]

        for link in links:
            if link.state is HandshakeState.CHANNEL_CREATED:
                logger.info("Link %s ready", link.path_name)
            else:
                logger.error("Link %s stopped at %s", link.path_name, link.state.label)

        if failures:
            raise BaseExceptionGroup(f"handshake failed on {len(failures)} link(s)", failures)
