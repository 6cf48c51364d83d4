"""
Denomination traces for tokens that crossed a channel.

A token sent from chain A over `transfer/channel-0` arrives on chain B under a
derived denom. The derivation is deterministic so tests can predict it:

    path   = "transfer/channel-0/uatom"
    denom  = "ibc/" + upper(hex(sha256(path)))

Tokens returning over the same channel strip the leading hop.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

IBC_DENOM_PREFIX = "ibc/"


def prefixed_denom(port_id: str, channel_id: str, base_denom: str) -> str:
    """Prefix a denom (or full trace path) with one more hop."""
    return f"{port_id}/{channel_id}/{base_denom}"


@dataclass(frozen=True, slots=True)
class DenomTrace:
    """
    The hops a token took plus its original denom.

    `path` is "port/channel" pairs joined by "/", empty for native tokens.
    """

    path: str
    base_denom: str

    @classmethod
    def parse(cls, full_path: str) -> DenomTrace:
        """
        Split a full trace ("transfer/channel-0/uatom") into path and base denom.

        Hops come in pairs. A trailing odd segment belongs to the base denom.
        """
        parts = full_path.split("/")
        if len(parts) < 3:
            return cls(path="", base_denom=full_path)

        hops = (len(parts) - 1) // 2 * 2
        return cls(path="/".join(parts[:hops]), base_denom="/".join(parts[hops:]))

    @property
    def full_path(self) -> str:
        """Path and base denom joined back together."""
        if not self.path:
            return self.base_denom
        return f"{self.path}/{self.base_denom}"

    def is_native(self) -> bool:
        """A trace with no hops names a token native to the chain."""
        return not self.path

    def ibc_denom(self) -> str:
        """The on-chain denom: the base denom itself for native tokens, otherwise a hash."""
        if self.is_native():
            return self.base_denom
        digest = hashlib.sha256(self.full_path.encode()).hexdigest().upper()
        return f"{IBC_DENOM_PREFIX}{digest}"

    def has_prefix(self, port_id: str, channel_id: str) -> bool:
        """Whether the first hop of this trace is the given port and channel."""
        return self.path == f"{port_id}/{channel_id}" or self.path.startswith(
            f"{port_id}/{channel_id}/"
        )

    def strip_first_hop(self) -> DenomTrace:
        """The trace one hop closer to the token's origin."""
        remaining = self.path.split("/")[2:]
        return DenomTrace(path="/".join(remaining), base_denom=self.base_denom)


def ibc_denom(port_id: str, channel_id: str, base_denom: str) -> str:
    """The denom a native token receives after one hop over `port_id/channel_id`."""
    return DenomTrace.parse(prefixed_denom(port_id, channel_id, base_denom)).ibc_denom()
