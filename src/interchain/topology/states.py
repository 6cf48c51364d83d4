"""Lifecycle state machines for chains, relayers and links."""

from __future__ import annotations

from enum import Enum, IntEnum, auto


class HandshakeState(IntEnum):
    """
    Handshake progress of one link.

    State Machine Diagram
    ---------------------
    ::

        UNSET --> CLIENT_CREATED --> CONNECTION_CREATED --> CHANNEL_CREATED

    Progress is monotonic and one step at a time. There is no way back:
    a failed step leaves the link where it was, and a completed step is
    never repeated.

    The values are ordered, so `state >= HandshakeState.CLIENT_CREATED`
    reads as "clients exist".
    """

    UNSET = 0
    """Nothing created yet. The path may or may not be registered with the relayer."""

    CLIENT_CREATED = 1
    """A light client of each chain exists on the other and is queryable."""

    CONNECTION_CREATED = 2
    """Both connection ends exist on top of the clients."""

    CHANNEL_CREATED = 3
    """Both channel ends exist. Packets can be relayed."""

    def can_transition_to(self, target: HandshakeState) -> bool:
        """
        Check if transition to target state is valid.

        Only the immediate successor is reachable.

        Args:
            target: The proposed target state.

        Returns:
            True if the transition is allowed by the state machine rules.
        """
        return target == self + 1

    @property
    def label(self) -> str:
        """Lowercase, dash-separated name (e.g. "client-created")."""
        return self.name.lower().replace("_", "-")


class ChainState(Enum):
    """
    Lifecycle of a chain handle.

    ::

        DECLARED --> INITIALIZED --> STARTED
           |              |             |
           +--------------+-------------+--> STOPPED

    Only a STARTED chain may be queried or sent transactions.
    """

    DECLARED = auto()
    INITIALIZED = auto()
    STARTED = auto()
    STOPPED = auto()

    def can_transition_to(self, target: ChainState) -> bool:
        """Check if transition to target state is valid."""
        return target in _CHAIN_TRANSITIONS.get(self, set())


class RelayerState(Enum):
    """
    Lifecycle of a relayer handle.

    ::

        DECLARED --> INITIALIZED --> CONFIGURED <--> RELAYING
           |              |              |              |
           +--------------+--------------+--------------+--> STOPPED
    """

    DECLARED = auto()
    INITIALIZED = auto()
    CONFIGURED = auto()
    RELAYING = auto()
    STOPPED = auto()

    def can_transition_to(self, target: RelayerState) -> bool:
        """Check if transition to target state is valid."""
        return target in _RELAYER_TRANSITIONS.get(self, set())


_CHAIN_TRANSITIONS: dict[ChainState, set[ChainState]] = {
    ChainState.DECLARED: {ChainState.INITIALIZED, ChainState.STOPPED},
    ChainState.INITIALIZED: {ChainState.STARTED, ChainState.STOPPED},
    ChainState.STARTED: {ChainState.STOPPED},
}
"""Valid chain lifecycle transitions."""

_RELAYER_TRANSITIONS: dict[RelayerState, set[RelayerState]] = {
    RelayerState.DECLARED: {RelayerState.INITIALIZED, RelayerState.STOPPED},
    RelayerState.INITIALIZED: {RelayerState.CONFIGURED, RelayerState.STOPPED},
    RelayerState.CONFIGURED: {RelayerState.RELAYING, RelayerState.STOPPED},
    RelayerState.RELAYING: {RelayerState.CONFIGURED, RelayerState.STOPPED},
}
"""Valid relayer lifecycle transitions."""
