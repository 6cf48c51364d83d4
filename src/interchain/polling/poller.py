"""
Consistency poller: block-bounded waits over one or more chains.

Chains are eventually consistent from the outside. A transaction included
in block N may not be queryable until N+1 on the same chain, and an artifact
created by a relayer shows up on the counterparty only after the relayer's
own transaction lands there. Every wait in this package is therefore
expressed in blocks, never in wall-clock time.

How a Poll Works
----------------
1. Read the starting height of every chain.
2. Evaluate the check against the current state. Success here costs no blocks.
3. Wait until every chain (or any chain, see `BudgetScope`) reaches
   `start + consumed`, where `consumed` grows by `cadence` per round.
4. Re-evaluate. Give up after the evaluation at `start + max_blocks`.

Targets are absolute heights taken from the starting heights, so a slow
check never shifts the budget.

Liveness
--------
A halted chain would make a block-bounded wait unbounded. Every wait also
watches for stalls: a chain whose height does not move for
`config.stall_timeout` seconds ends the wait with `DeadlineExceeded`.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from enum import Enum
from typing import TypeVar

from interchain.config import OrchestratorConfig
from interchain.ibc import Chain, ProposalResponse, ProposalStatus, WalletAmount
from interchain.metrics import poll_blocks
from interchain.types import DeadlineExceeded, TransientQueryError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Check = Callable[[], Awaitable[T | None]]
"""A condition probe. Returns a value on success, None for "not yet"."""


class BudgetScope(Enum):
    """
    How a block budget is measured when a wait spans several chains.

    Chains produce blocks at different rates, so "N blocks" is ambiguous
    across two chains. The scope picks the reading.
    """

    SLOWEST = "slowest"
    """The budget is spent once every chain advanced N blocks. The slower chain bounds the wait."""

    FASTEST = "fastest"
    """The budget is spent once any chain advanced N blocks."""


async def _read_heights(chains: Sequence[Chain]) -> list[int | None]:
    """Read every chain's height. A transient failure reads as None."""
    heights: list[int | None] = []
    for chain in chains:
        try:
            heights.append(await chain.height())
        except TransientQueryError as exc:
            logger.debug("Height of %s unavailable: %s", chain.config.chain_id, exc)
            heights.append(None)
    return heights


async def _start_heights(chains: Sequence[Chain], config: OrchestratorConfig) -> list[int]:
    """Read starting heights, retrying transient failures until the stall timeout."""
    deadline = time.monotonic() + config.stall_timeout
    while True:
        heights = await _read_heights(chains)
        if all(h is not None for h in heights):
            return [h for h in heights if h is not None]
        if time.monotonic() >= deadline:
            missing = [c.config.chain_id for c, h in zip(chains, heights, strict=True) if h is None]
            raise DeadlineExceeded(
                "height query",
                detail=f"no height from {', '.join(missing)} for {config.stall_timeout}s",
            )
        await asyncio.sleep(config.height_poll_interval)


async def _wait_for_heights(
    chains: Sequence[Chain],
    targets: Sequence[int],
    scope: BudgetScope,
    config: OrchestratorConfig,
) -> list[int]:
    """
    Wait until the chains reach absolute target heights.

    Args:
        chains: Chains to watch.
        targets: Target height per chain.
        scope: Whether all chains or any chain must reach its target.
        config: Poll interval and stall timeout.

    Returns:
        The last observed height of every chain.

    Raises:
        DeadlineExceeded: If the chains the wait depends on stopped producing blocks.
    """
    now = time.monotonic()
    last_seen: list[int | None] = [None] * len(chains)
    last_progress = [now] * len(chains)

    while True:
        heights = await _read_heights(chains)
        now = time.monotonic()

        for i, height in enumerate(heights):
            if height is not None and height != last_seen[i]:
                last_seen[i] = height
                last_progress[i] = now

        reached = [h is not None and h >= t for h, t in zip(last_seen, targets, strict=True)]
        if all(reached) or (scope is BudgetScope.FASTEST and any(reached)):
            return [h if h is not None else 0 for h in last_seen]

        pending = [i for i, done in enumerate(reached) if not done]
        stalled = [i for i in pending if now - last_progress[i] >= config.stall_timeout]

        # SLOWEST needs every chain; FASTEST only fails when nothing can finish.
        if stalled and (scope is BudgetScope.SLOWEST or len(stalled) == len(pending)):
            i = stalled[0]
            raise DeadlineExceeded(
                f"block production on {chains[i].config.chain_id}",
                detail=f"height stuck at {last_seen[i]} for {config.stall_timeout}s",
            )

        await asyncio.sleep(config.height_poll_interval)


async def poll_for_state(
    check: Check[T],
    chains: Sequence[Chain],
    max_blocks: int,
    *,
    cadence: int = 1,
    scope: BudgetScope = BudgetScope.SLOWEST,
    config: OrchestratorConfig | None = None,
    operation: str = "poll",
    start_heights: Sequence[int] | None = None,
) -> T:
    """
    Re-evaluate a check as blocks are produced, until it succeeds or the budget runs out.

    Args:
        check: Probe returning a value on success and None otherwise.
            A `TransientQueryError` counts as "not yet".
        chains: Chains whose blocks measure the budget.
        max_blocks: Block budget. Zero evaluates exactly once.
        cadence: Blocks to wait between evaluations.
        scope: How the budget is measured across several chains.
        config: Poll interval and stall timeout.
        operation: Description used in the deadline error.
        start_heights: Absolute heights the budget counts from.
            Defaults to the chains' current heights.

    Returns:
        The first non-None value returned by `check`.

    Raises:
        DeadlineExceeded: If the check still fails after `max_blocks` blocks,
            or a chain stops producing blocks.
        ValueError: If `max_blocks` is negative or `cadence` is not positive.
    """
    if max_blocks < 0:
        raise ValueError(f"max_blocks must be non-negative, got {max_blocks}")
    if cadence < 1:
        raise ValueError(f"cadence must be positive, got {cadence}")
    if not chains:
        raise ValueError("poll_for_state needs at least one chain")

    config = config or OrchestratorConfig()
    if start_heights is not None:
        start = list(start_heights)
    else:
        start = await _start_heights(chains, config)

    consumed = 0
    last_error: TransientQueryError | None = None

    while True:
        try:
            result = await check()
        except TransientQueryError as exc:
            last_error = exc
            result = None
            logger.debug("%s: transient error after %d block(s): %s", operation, consumed, exc)

        if result is not None:
            poll_blocks.observe(consumed)
            logger.debug("%s satisfied after %d block(s)", operation, consumed)
            return result

        if consumed >= max_blocks:
            break

        consumed = min(consumed + cadence, max_blocks)
        await _wait_for_heights(chains, [h + consumed for h in start], scope, config)

    poll_blocks.observe(consumed)
    detail = f"last error: {last_error}" if last_error is not None else None
    raise DeadlineExceeded(operation, max_blocks=max_blocks, detail=detail)


async def wait_for_blocks(
    n: int,
    *chains: Chain,
    scope: BudgetScope = BudgetScope.SLOWEST,
    config: OrchestratorConfig | None = None,
) -> list[int]:
    """
    Wait until the chains advanced `n` blocks.

    Returns:
        The heights observed when the wait completed.
    """
    if n < 0:
        raise ValueError(f"n must be non-negative, got {n}")
    config = config or OrchestratorConfig()
    start = await _start_heights(chains, config)
    return await _wait_for_heights(chains, [h + n for h in start], scope, config)


async def poll_for_balance(
    chain: Chain,
    max_blocks: int,
    amount: WalletAmount,
    *,
    config: OrchestratorConfig | None = None,
) -> int:
    """
    Wait until an address holds exactly `amount.amount` of `amount.denom`.

    Returns:
        The matching balance.
    """

    async def check() -> int | None:
        balance = await chain.get_balance(amount.address, amount.denom)
        return balance if balance == amount.amount else None

    return await poll_for_state(
        check,
        [chain],
        max_blocks,
        config=config,
        operation=f"balance {amount.amount}{amount.denom} for {amount.address}",
    )


async def poll_for_proposal_status(
    chain: Chain,
    start_height: int,
    max_height: int,
    proposal_id: int,
    status: ProposalStatus,
    *,
    config: OrchestratorConfig | None = None,
) -> ProposalResponse:
    """
    Wait until a governance proposal reaches `status`.

    The budget is the absolute height range [start_height, max_height].

    Returns:
        The proposal as queried when the status matched.

    Raises:
        DeadlineExceeded: If `max_height` is reached first.
    """
    if max_height < start_height:
        raise ValueError(f"max_height {max_height} is below start_height {start_height}")

    async def check() -> ProposalResponse | None:
        proposal = await chain.query_proposal(proposal_id)
        return proposal if proposal.status == status else None

    return await poll_for_state(
        check,
        [chain],
        max_height - start_height,
        config=config,
        operation=f"proposal {proposal_id} status {status.name}",
        start_heights=[start_height],
    )


async def race_blocks(
    work: Awaitable[T],
    chains: Sequence[Chain],
    max_blocks: int,
    *,
    scope: BudgetScope = BudgetScope.SLOWEST,
    config: OrchestratorConfig | None = None,
    operation: str = "operation",
) -> T:
    """
    Run an awaitable against a block-count deadline.

    When the chains advance `max_blocks` before the work completes, the work
    is cancelled and `DeadlineExceeded` is raised.
    """
    config = config or OrchestratorConfig()
    work_task: asyncio.Future[T] = asyncio.ensure_future(work)
    try:
        start = await _start_heights(chains, config)
    except BaseException:
        work_task.cancel()
        await asyncio.gather(work_task, return_exceptions=True)
        raise

    deadline_task = asyncio.create_task(
        _wait_for_heights(chains, [h + max_blocks for h in start], scope, config)
    )

    try:
        await asyncio.wait({work_task, deadline_task}, return_when=asyncio.FIRST_COMPLETED)

        if work_task.done():
            return work_task.result()

        # Surfaces a stall from the deadline watcher as-is.
        deadline_task.result()
        raise DeadlineExceeded(operation, max_blocks=max_blocks)
    finally:
        for task in (work_task, deadline_task):
            if not task.done():
                task.cancel()
        await asyncio.gather(work_task, deadline_task, return_exceptions=True)


async def wait_until_producing(
    chain: Chain,
    config: OrchestratorConfig,
    cancel: asyncio.Event | None = None,
) -> int | None:
    """
    Wait until a freshly started chain is producing blocks.

    Readiness takes two consecutive height observations where the second is
    strictly greater. A single read never counts, since a chain can report a
    height from genesis without ever producing a block.

    Returns:
        The height that proved production, or None if `cancel` was set first.

    Raises:
        DeadlineExceeded: If no block was produced within `config.startup_timeout` seconds.
    """
    chain_id = chain.config.chain_id
    deadline = time.monotonic() + config.startup_timeout
    previous: int | None = None

    while True:
        if cancel is not None and cancel.is_set():
            return None

        try:
            height = await chain.height()
        except TransientQueryError as exc:
            logger.debug("Waiting for %s: %s", chain_id, exc)
        else:
            if previous is not None and height > previous:
                return height
            previous = height

        if time.monotonic() >= deadline:
            raise DeadlineExceeded(
                f"block production on {chain_id}",
                detail=f"no new block within {config.startup_timeout}s (last height {previous})",
            )

        await asyncio.sleep(config.height_poll_interval)
