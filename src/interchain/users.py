"""Funded test users."""

from __future__ import annotations

import asyncio
import logging
import secrets

from interchain.ibc import FAUCET_KEY_NAME, Chain, Wallet, WalletAmount
from interchain.keys import generate_key_entry

logger = logging.getLogger(__name__)


async def get_and_fund_test_users(key_prefix: str, amount: int, *chains: Chain) -> list[Wallet]:
    """
    Create one funded wallet per chain.

    The key is generated here and imported into the chain's keyring; the
    funds come from the chain's faucet key. Users on different chains are
    funded concurrently.

    Args:
        key_prefix: Prefix of the generated key names.
        amount: Funds per user, in each chain's native denom.
        chains: Chains to create a user on.

    Returns:
        One wallet per chain, in the order the chains were given.
    """

    async def fund(chain: Chain) -> Wallet:
        config = chain.config
        key_name = f"{key_prefix}-{config.chain_id}-{secrets.token_hex(2)}"
        key = generate_key_entry(key_name, config.bech32_prefix)

        await chain.import_key(key_name, key)
        await chain.send_funds(
            FAUCET_KEY_NAME,
            WalletAmount(address=key.address, denom=config.denom, amount=amount),
        )
        logger.info("Funded %s with %d%s on %s", key.address, amount, config.denom, config.chain_id)
        return Wallet(key_name=key_name, address=key.address, chain_id=config.chain_id)

    async with asyncio.TaskGroup() as tg:
        tasks = [tg.create_task(fund(chain)) for chain in chains]
    return [task.result() for task in tasks]
