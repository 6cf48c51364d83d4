"""
Governance proposals on a running chain.

Proposals are bounded by an absolute height range, so the waits here are
given as [submit height, voting end + margin] rather than a block count.
"""

from __future__ import annotations

import pytest

from interchain import Interchain, get_and_fund_test_users, poll_for_proposal_status
from interchain.ibc import ProposalStatus
from interchain.types import DeadlineExceeded, TransactionError

from tests.interop.helpers import assert_balance_within, interop_config

# Mark all tests in this module as interop tests.
pytestmark = pytest.mark.interop

USER_FUNDS = 5_000_000
MARGIN_BLOCKS = 5


@pytest.mark.timeout(60)
async def test_proposal_passes_with_votes(sim_interchain: Interchain) -> None:
    """Two yes votes carry a proposal once its voting period ends."""
    gaia = sim_interchain.get_chain("gaia")
    alice, bob = (
        (await get_and_fund_test_users("alice", USER_FUNDS, gaia))[0],
        (await get_and_fund_test_users("bob", USER_FUNDS, gaia))[0],
    )
    await assert_balance_within(gaia, bob.address, "uatom", USER_FUNDS, max_blocks=5)

    await gaia.execute_tx(alice.key_name, "gov", "submit-proposal", "raise the block size")
    proposal = await gaia.query_proposal(1)
    assert proposal.status is ProposalStatus.VOTING_PERIOD

    for user in (alice, bob):
        await gaia.execute_tx(user.key_name, "gov", "vote", "1", "yes")

    passed = await poll_for_proposal_status(
        gaia,
        proposal.submit_height,
        proposal.voting_end_height + MARGIN_BLOCKS,
        1,
        ProposalStatus.PASSED,
        config=interop_config(),
    )
    assert passed.yes_votes == 2
    assert passed.no_votes == 0


@pytest.mark.timeout(60)
async def test_unvoted_proposal_is_rejected(sim_interchain: Interchain) -> None:
    """Waiting for PASSED on a proposal nobody voted for runs out of blocks."""
    gaia = sim_interchain.get_chain("gaia")
    (user,) = await get_and_fund_test_users("user", USER_FUNDS, gaia)
    await assert_balance_within(gaia, user.address, "uatom", USER_FUNDS, max_blocks=5)

    await gaia.execute_tx(user.key_name, "gov", "submit-proposal", "nobody cares")
    proposal = await gaia.query_proposal(1)
    end = proposal.voting_end_height + MARGIN_BLOCKS

    with pytest.raises(DeadlineExceeded):
        await poll_for_proposal_status(
            gaia, proposal.submit_height, end, 1, ProposalStatus.PASSED, config=interop_config()
        )

    rejected = await gaia.query_proposal(1)
    assert rejected.status is ProposalStatus.REJECTED


@pytest.mark.timeout(60)
async def test_late_vote_refused(sim_interchain: Interchain) -> None:
    """Votes cast after the voting period are refused by the chain."""
    gaia = sim_interchain.get_chain("gaia")
    (user,) = await get_and_fund_test_users("user", USER_FUNDS, gaia)
    await assert_balance_within(gaia, user.address, "uatom", USER_FUNDS, max_blocks=5)

    await gaia.execute_tx(user.key_name, "gov", "submit-proposal", "too late")
    proposal = await gaia.query_proposal(1)
    await poll_for_proposal_status(
        gaia,
        proposal.submit_height,
        proposal.voting_end_height + MARGIN_BLOCKS,
        1,
        ProposalStatus.REJECTED,
        config=interop_config(),
    )

    with pytest.raises(TransactionError):
        await gaia.execute_tx(user.key_name, "gov", "vote", "1", "yes")
