"""Tests for block-bounded polling."""

from __future__ import annotations

import asyncio
import inspect

import pytest

from interchain.ibc import ProposalResponse, ProposalStatus, WalletAmount
from interchain.polling import (
    BudgetScope,
    poll_for_balance,
    poll_for_proposal_status,
    poll_for_state,
    race_blocks,
    wait_for_blocks,
    wait_until_producing,
)
from interchain.types import DeadlineExceeded, TransientQueryError
from tests.interchain.helpers import MockChain, make_chain_config, make_fast_config

ADDRESS = "cosmos1qypqxpq9qcrsszg2pvxq6rs0zqg3yyc5lzv7xu"


@pytest.fixture
def chain() -> MockChain:
    """A chain starting at height 10."""
    return MockChain(make_chain_config("gaia"), start_height=10)


class TestPollForState:
    """Tests for the generic poll."""

    async def test_satisfied_check_costs_no_blocks(self, chain: MockChain) -> None:
        """A check that already holds returns after the starting height read."""
        calls = 0

        async def check() -> str:
            nonlocal calls
            calls += 1
            return "done"

        result = await poll_for_state(check, [chain], 20, config=make_fast_config())

        assert result == "done"
        assert calls == 1
        assert chain.height_reads == 1

    async def test_unsatisfied_check_uses_exact_budget(self, chain: MockChain) -> None:
        """A check that never holds is evaluated once per block, at start through start+N."""
        observed: list[int] = []

        async def check() -> None:
            observed.append(chain.current)
            return None

        with pytest.raises(DeadlineExceeded) as exc_info:
            await poll_for_state(check, [chain], 5, config=make_fast_config())

        start = observed[0]
        assert observed == [start + k for k in range(6)]
        assert exc_info.value.max_blocks == 5

    async def test_zero_budget_evaluates_once(self, chain: MockChain) -> None:
        """Zero blocks means a single evaluation and no waiting."""
        calls = 0

        async def check() -> None:
            nonlocal calls
            calls += 1
            return None

        with pytest.raises(DeadlineExceeded):
            await poll_for_state(check, [chain], 0, config=make_fast_config())
        assert calls == 1

    async def test_cadence(self, chain: MockChain) -> None:
        """Evaluations happen every `cadence` blocks, the last one at the budget."""
        observed: list[int] = []

        async def check() -> None:
            observed.append(chain.current)
            return None

        with pytest.raises(DeadlineExceeded):
            await poll_for_state(check, [chain], 5, cadence=2, config=make_fast_config())

        start = observed[0]
        assert [h - start for h in observed] == [0, 2, 4, 5]

    async def test_transient_errors_count_as_not_yet(self, chain: MockChain) -> None:
        """A transient failure is retried on the next block."""
        attempts = 0

        async def check() -> int | None:
            nonlocal attempts
            attempts += 1
            if attempts < 3:
                raise TransientQueryError("not indexed yet")
            return attempts

        assert await poll_for_state(check, [chain], 10, config=make_fast_config()) == 3

    async def test_last_transient_error_reported(self, chain: MockChain) -> None:
        """A deadline reached through transient errors names the last one."""

        async def check() -> None:
            raise TransientQueryError("still syncing")

        with pytest.raises(DeadlineExceeded) as exc_info:
            await poll_for_state(check, [chain], 2, config=make_fast_config())
        assert "still syncing" in str(exc_info.value)

    async def test_other_errors_propagate(self, chain: MockChain) -> None:
        """Only transient errors are swallowed."""

        async def check() -> None:
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await poll_for_state(check, [chain], 5, config=make_fast_config())

    async def test_invalid_arguments(self, chain: MockChain) -> None:
        """Negative budgets, zero cadence and no chains are rejected."""

        async def check() -> int:
            return 1

        with pytest.raises(ValueError):
            await poll_for_state(check, [chain], -1)
        with pytest.raises(ValueError):
            await poll_for_state(check, [chain], 1, cadence=0)
        with pytest.raises(ValueError):
            await poll_for_state(check, [], 1)

    async def test_halted_chain_ends_the_wait(self, chain: MockChain) -> None:
        """A chain that stops producing blocks raises instead of hanging."""
        chain.halted = True

        async def check() -> None:
            return None

        config = make_fast_config(stall_timeout=0.05, height_poll_interval=0.005)
        with pytest.raises(DeadlineExceeded) as exc_info:
            await poll_for_state(check, [chain], 5, config=config)
        assert "block production" in str(exc_info.value)


class TestBudgetScope:
    """Tests for block budgets spanning chains with different rates."""

    async def test_slowest_waits_for_every_chain(self) -> None:
        """Under SLOWEST, every chain advances the full budget."""
        fast = MockChain(make_chain_config("fast"), blocks_per_read=5)
        slow = MockChain(make_chain_config("slow"))
        start_fast, start_slow = fast.current, slow.current

        heights = await wait_for_blocks(
            10, fast, slow, scope=BudgetScope.SLOWEST, config=make_fast_config()
        )

        assert heights[0] >= start_fast + 10
        assert heights[1] >= start_slow + 10

    async def test_fastest_returns_on_first_chain(self) -> None:
        """Under FASTEST, the first chain to advance ends the wait."""
        fast = MockChain(make_chain_config("fast"), blocks_per_read=5)
        slow = MockChain(make_chain_config("slow"))

        heights = await wait_for_blocks(
            10, fast, slow, scope=BudgetScope.FASTEST, config=make_fast_config()
        )

        assert heights[0] >= 10
        assert heights[1] < 10

    async def test_fastest_tolerates_one_halted_chain(self) -> None:
        """A halted chain does not fail a FASTEST wait while another can finish."""
        live = MockChain(make_chain_config("live"))
        halted = MockChain(make_chain_config("halted"))
        halted.halted = True

        config = make_fast_config(stall_timeout=10.0)
        heights = await wait_for_blocks(3, live, halted, scope=BudgetScope.FASTEST, config=config)
        assert heights[0] >= 3

    async def test_slowest_fails_on_one_halted_chain(self) -> None:
        """Under SLOWEST, one halted chain is enough to end the wait."""
        live = MockChain(make_chain_config("live"))
        halted = MockChain(make_chain_config("halted"))
        halted.halted = True

        config = make_fast_config(stall_timeout=0.05, height_poll_interval=0.005)
        with pytest.raises(DeadlineExceeded):
            await wait_for_blocks(1000, live, halted, scope=BudgetScope.SLOWEST, config=config)


class TestPollForBalance:
    """Tests for balance polling."""

    async def test_matching_balance_returns_immediately(self, chain: MockChain) -> None:
        """A balance that already matches returns without waiting."""
        chain.balances[(ADDRESS, "stake")] = 100
        amount = WalletAmount(address=ADDRESS, denom="stake", amount=100)

        assert await poll_for_balance(chain, 20, amount, config=make_fast_config()) == 100
        assert chain.height_reads == 1

    async def test_balance_arriving_later(self, chain: MockChain) -> None:
        """The poll notices a balance credited a few blocks in."""
        amount = WalletAmount(address=ADDRESS, denom="stake", amount=7)
        credit_at = chain.current + 3
        original_height = chain.height

        async def height() -> int:
            value = await original_height()
            if value >= credit_at:
                chain.balances[(ADDRESS, "stake")] = 7
            return value

        chain.height = height  # type: ignore[method-assign]
        assert await poll_for_balance(chain, 20, amount, config=make_fast_config()) == 7

    async def test_never_matching_balance(self, chain: MockChain) -> None:
        """A balance that never matches exhausts the budget."""
        chain.balances[(ADDRESS, "stake")] = 99
        amount = WalletAmount(address=ADDRESS, denom="stake", amount=100)

        with pytest.raises(DeadlineExceeded) as exc_info:
            await poll_for_balance(chain, 3, amount, config=make_fast_config())
        assert exc_info.value.max_blocks == 3


class TestPollForProposalStatus:
    """Tests for governance proposal polling."""

    @staticmethod
    def proposal(status: ProposalStatus) -> ProposalResponse:
        return ProposalResponse(
            proposal_id=1,
            title="Upgrade",
            status=status,
            submit_height=10,
            voting_end_height=20,
        )

    async def test_status_reached(self, chain: MockChain) -> None:
        """Returns the proposal once it has the wanted status."""
        chain.proposals[1] = self.proposal(ProposalStatus.PASSED)

        response = await poll_for_proposal_status(
            chain, 10, 30, 1, ProposalStatus.PASSED, config=make_fast_config()
        )
        assert response.status is ProposalStatus.PASSED

    async def test_max_height_reached_first(self, chain: MockChain) -> None:
        """The budget is the absolute range from start to max height."""
        chain.proposals[1] = self.proposal(ProposalStatus.VOTING_PERIOD)

        with pytest.raises(DeadlineExceeded) as exc_info:
            await poll_for_proposal_status(
                chain, 10, 15, 1, ProposalStatus.PASSED, config=make_fast_config()
            )
        assert exc_info.value.max_blocks == 5

    async def test_invalid_range(self, chain: MockChain) -> None:
        """Max height below start height is a caller error."""
        with pytest.raises(ValueError):
            await poll_for_proposal_status(chain, 10, 5, 1, ProposalStatus.PASSED)


class TestRaceBlocks:
    """Tests for running work against a block deadline."""

    async def test_work_finishing_first(self, chain: MockChain) -> None:
        """The work's result is returned."""

        async def work() -> str:
            return "ok"

        assert await race_blocks(work(), [chain], 5, config=make_fast_config()) == "ok"

    async def test_work_outlasting_budget_is_cancelled(self, chain: MockChain) -> None:
        """Hanging work is cancelled once the chains advanced the budget."""
        cancelled = asyncio.Event()

        async def work() -> None:
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                cancelled.set()
                raise

        with pytest.raises(DeadlineExceeded) as exc_info:
            await race_blocks(work(), [chain], 5, config=make_fast_config(), operation="hang")

        assert cancelled.is_set()
        assert exc_info.value.operation == "hang"

    async def test_work_errors_propagate(self, chain: MockChain) -> None:
        """An error raised by the work is not masked."""

        async def work() -> None:
            raise KeyError("missing")

        with pytest.raises(KeyError):
            await race_blocks(work(), [chain], 5, config=make_fast_config())

    async def test_work_closed_when_heights_unreadable(self, chain: MockChain) -> None:
        """Work is cancelled, not left unawaited, when the start heights cannot be read."""
        chain.failures.add("height", RuntimeError("rpc gone"))

        async def work() -> str:
            return "never"

        pending = work()
        with pytest.raises(RuntimeError, match="rpc gone"):
            await race_blocks(pending, [chain], 5, config=make_fast_config())

        assert inspect.getcoroutinestate(pending) == inspect.CORO_CLOSED


class TestWaitUntilProducing:
    """Tests for chain readiness."""

    async def test_two_increasing_reads(self, chain: MockChain) -> None:
        """Readiness needs a second, higher height."""
        height = await wait_until_producing(chain, make_fast_config())
        assert height == 12
        assert chain.height_reads == 2

    async def test_transient_errors_retried(self, chain: MockChain) -> None:
        """Height query failures while the node boots are tolerated."""
        chain.failures.add("height", TransientQueryError("rpc down"), TransientQueryError("boot"))
        assert await wait_until_producing(chain, make_fast_config()) is not None

    async def test_no_blocks_times_out(self, chain: MockChain) -> None:
        """A chain stuck at genesis fails readiness."""
        chain.halted = True
        config = make_fast_config(startup_timeout=0.05, height_poll_interval=0.005)

        with pytest.raises(DeadlineExceeded) as exc_info:
            await wait_until_producing(chain, config)
        assert "gaia-1" in str(exc_info.value)

    async def test_cancel_signal(self, chain: MockChain) -> None:
        """A set cancel signal ends the wait with None."""
        cancel = asyncio.Event()
        cancel.set()
        assert await wait_until_producing(chain, make_fast_config(), cancel) is None
        assert chain.height_reads == 0
