"""
Teardown coordinator: releases everything a build created.

Order
-----
1. Stop relaying on every relayer that reached INITIALIZED, so nothing
   submits transactions to a chain that is going away.
2. Stop every recorded chain, concurrently.
3. Remove the shared network.
4. Sweep the correlation label for anything the record missed.

Every step runs regardless of earlier failures. Errors are collected and
raised together at the end as one `TeardownFailure`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable

from interchain.ibc import NetworkProvider
from interchain.metrics import teardown_errors
from interchain.storage import RunLedger
from interchain.topology import ChainHandle, ChainState, RelayerHandle, RelayerState
from interchain.types import ResourceError, TeardownFailure

from .context import BuildContext

logger = logging.getLogger(__name__)


class TeardownCoordinator:
    """Releases the resources recorded in a build context, in dependency order."""

    def __init__(self, context: BuildContext) -> None:
        """Initialize with the context of the build to tear down."""
        self._ctx = context
        self._timeout = context.options.config.teardown_timeout
        self._errors: list[BaseException] = []

    async def run(self, *, status: str = "closed") -> None:
        """
        Tear down everything, collecting errors.

        Args:
            status: Run status written to the ledger afterwards.

        Raises:
            TeardownFailure: If any step failed. Every step still ran.
        """
        ctx = self._ctx
        logger.info("Tearing down %s", ctx.label)

        for handle in ctx.topology.relayers.values():
            await self._stop_relayer(handle)

        await asyncio.gather(*(self._stop_chain(handle) for handle in ctx.chains))

        if ctx.network_id is not None:
            if await self._attempt(
                f"remove network {ctx.network_id}", ctx.network.remove_network(ctx.network_id)
            ):
                ctx.release_resource("network", "network")

        if await self._attempt(f"sweep label {ctx.label}", ctx.network.remove_by_label(ctx.label)):
            _release_all(ctx.ledger, ctx.label)

        ctx.torn_down = True
        if ctx.ledger is not None:
            ctx.ledger.set_run_status(ctx.label, status)

        if self._errors:
            teardown_errors.inc(len(self._errors))
            raise TeardownFailure(self._errors)
        logger.info("Teardown of %s complete", ctx.label)

    async def _stop_relayer(self, handle: RelayerHandle) -> None:
        if handle.state in (RelayerState.DECLARED, RelayerState.STOPPED):
            return
        if await self._attempt(f"stop relayer {handle.name}", handle.relayer.stop_relaying()):
            self._ctx.release_resource("relayer", handle.name)
        handle.transition(RelayerState.STOPPED)

    async def _stop_chain(self, handle: ChainHandle) -> None:
        if handle.state is ChainState.STOPPED:
            return
        if await self._attempt(f"stop chain {handle.name}", handle.chain.stop()):
            self._ctx.release_resource("chain", handle.name)
        handle.transition(ChainState.STOPPED)

    async def _attempt(self, what: str, call: Awaitable[object]) -> bool:
        """Await one teardown call under the teardown timeout. Returns whether it succeeded."""
        try:
            await asyncio.wait_for(call, timeout=self._timeout)
        except TimeoutError:
            error = ResourceError(f"{what}: no response within {self._timeout}s")
            logger.warning("Teardown: %s", error)
            self._errors.append(error)
            return False
        except Exception as exc:
            logger.warning("Teardown: %s failed: %s", what, exc)
            exc.add_note(f"during teardown: {what}")
            self._errors.append(exc)
            return False
        return True


def _release_all(ledger: RunLedger | None, label: str) -> None:
    if ledger is None:
        return
    for resource in ledger.unreleased_resources(label):
        ledger.release_resource(label, resource.kind, resource.name)


async def cleanup_label(
    network: NetworkProvider,
    label: str,
    ledger: RunLedger | None = None,
) -> list[str]:
    """
    Remove every resource still registered under a label.

    Works without the topology that created them, e.g. from a new process
    after the test process crashed.

    Args:
        network: Provider the resources were created through.
        label: Correlation label of the abandoned run.
        ledger: Ledger to mark the run's resources released in.

    Returns:
        Identifiers of the removed resources.
    """
    if ledger is not None:
        for resource in ledger.unreleased_resources(label):
            logger.info(
                "Unreleased %s %s (%s) under %s", resource.kind, resource.name, resource.ref, label
            )

    removed = await network.remove_by_label(label)
    logger.info("Removed %d resource(s) under %s", len(removed), label)

    if ledger is not None:
        _release_all(ledger, label)
        if ledger.get_run(label) is not None:
            ledger.set_run_status(label, "closed")
    return removed
