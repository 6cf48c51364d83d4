"""Block-bounded waits over eventually consistent chains."""

from .poller import (
    BudgetScope,
    poll_for_balance,
    poll_for_proposal_status,
    poll_for_state,
    race_blocks,
    wait_for_blocks,
    wait_until_producing,
)

__all__ = [
    "BudgetScope",
    "poll_for_balance",
    "poll_for_proposal_status",
    "poll_for_state",
    "race_blocks",
    "wait_for_blocks",
    "wait_until_producing",
]
