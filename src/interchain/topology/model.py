"""
Topology model: the chains, relayers and links a test declares.

Declaration is pure bookkeeping. Nothing here touches a network or a process;
the Build Orchestrator consumes the finished declaration exactly once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from interchain.ibc import (
    Chain,
    ChannelOptions,
    ChannelPair,
    ClientOptions,
    ClientPair,
    ConnectionPair,
    Relayer,
)
from interchain.types import (
    DeclarationError,
    DuplicateParticipant,
    DuplicatePath,
    HandshakeOrderError,
    TopologySealed,
    UnknownParticipant,
)

from .states import ChainState, HandshakeState, RelayerState

logger = logging.getLogger(__name__)

HandshakeResult = ClientPair | ConnectionPair | ChannelPair
"""Recorded result of a confirmed handshake step."""


@dataclass(slots=True, eq=False)
class ChainHandle:
    """A declared chain and its lifecycle state."""

    name: str
    """Logical name, unique within the topology."""

    chain: Chain
    """Capability adapter for the chain's protocol family."""

    state: ChainState = ChainState.DECLARED
    """Lifecycle state, advanced by the orchestrator."""

    @property
    def family(self) -> str:
        """Protocol family tag of the chain."""
        return self.chain.config.type

    @property
    def chain_id(self) -> str:
        """On-chain identifier."""
        return self.chain.config.chain_id

    def transition(self, target: ChainState) -> None:
        """
        Move to a new lifecycle state.

        Raises:
            ValueError: If the transition is not allowed.
        """
        if target == self.state:
            return
        if not self.state.can_transition_to(target):
            raise ValueError(f"Chain {self.name}: invalid transition {self.state} -> {target}")
        self.state = target


@dataclass(slots=True, eq=False)
class RelayerHandle:
    """A declared relayer and the paths it bridges."""

    name: str
    """Logical name, unique within the topology."""

    relayer: Relayer
    """Capability adapter for the relayer implementation."""

    paths: list[str] = field(default_factory=list)
    """Path names of every link assigned to this relayer, in declaration order."""

    state: RelayerState = RelayerState.DECLARED
    """Lifecycle state, advanced by the orchestrator."""

    def transition(self, target: RelayerState) -> None:
        """
        Move to a new lifecycle state.

        Raises:
            ValueError: If the transition is not allowed.
        """
        if target == self.state:
            return
        if not self.state.can_transition_to(target):
            raise ValueError(f"Relayer {self.name}: invalid transition {self.state} -> {target}")
        self.state = target


@dataclass(slots=True, eq=False)
class Link:
    """
    A named pairing of two chains bridged by one relayer.

    Owns the handshake progress of the path. Results are recorded only once
    a step is confirmed on both chains.
    """

    path_name: str
    """Path name, unique within the topology."""

    chain_a: ChainHandle
    chain_b: ChainHandle
    relayer: RelayerHandle

    client_options: ClientOptions | None = None
    """Caller-supplied client options. None selects protocol defaults."""

    channel_options: ChannelOptions | None = None
    """Caller-supplied channel options. None selects an unordered transfer channel."""

    path_generated: bool = False
    """Whether the path was registered with the relayer."""

    state: HandshakeState = HandshakeState.UNSET
    """Handshake progress."""

    clients: ClientPair | None = None
    connections: ConnectionPair | None = None
    channels: ChannelPair | None = None

    def involves(self, chain: ChainHandle) -> bool:
        """Whether the chain is one of the link's two ends."""
        return chain is self.chain_a or chain is self.chain_b

    def advance(self, target: HandshakeState, result: HandshakeResult) -> None:
        """
        Record a confirmed step and move to its state.

        Raises:
            HandshakeOrderError: If `target` is not the immediate successor.
        """
        if not self.state.can_transition_to(target):
            raise HandshakeOrderError(self.path_name, target.label, self.state.label)

        match target:
            case HandshakeState.CLIENT_CREATED:
                assert isinstance(result, ClientPair)
                self.clients = result
            case HandshakeState.CONNECTION_CREATED:
                assert isinstance(result, ConnectionPair)
                self.connections = result
            case HandshakeState.CHANNEL_CREATED:
                assert isinstance(result, ChannelPair)
                self.channels = result

        self.state = target
        logger.debug("Link %s advanced to %s", self.path_name, target.label)


@dataclass(slots=True)
class Topology:
    """
    Every declared chain, relayer and link.

    The shape is fixed once `seal` is called at the start of Build. Runtime
    state inside the handles keeps changing afterwards.
    """

    chains: dict[str, ChainHandle] = field(default_factory=dict)
    """Chains by name, in declaration order."""

    relayers: dict[str, RelayerHandle] = field(default_factory=dict)
    """Relayers by name, in declaration order."""

    links: dict[str, Link] = field(default_factory=dict)
    """Links by path name, in declaration order."""

    sealed: bool = False
    """Set when Build begins."""

    def add_chain(self, chain: Chain, name: str | None = None) -> ChainHandle:
        """
        Declare a chain.

        Args:
            chain: Capability adapter for the chain.
            name: Logical name. Defaults to the chain config's name.

        Raises:
            TopologySealed: If Build already began.
            DuplicateParticipant: If the name or chain id is already declared.
        """
        self._check_open("add a chain")
        name = name or chain.config.name

        if name in self.chains:
            raise DuplicateParticipant("chain", name)
        if any(h.chain_id == chain.config.chain_id for h in self.chains.values()):
            raise DuplicateParticipant("chain id", chain.config.chain_id)

        handle = ChainHandle(name=name, chain=chain)
        self.chains[name] = handle
        return handle

    def add_relayer(self, relayer: Relayer, name: str) -> RelayerHandle:
        """
        Declare a relayer.

        Raises:
            TopologySealed: If Build already began.
            DuplicateParticipant: If the name is already declared.
        """
        self._check_open("add a relayer")
        if name in self.relayers:
            raise DuplicateParticipant("relayer", name)

        handle = RelayerHandle(name=name, relayer=relayer)
        self.relayers[name] = handle
        return handle

    def add_link(
        self,
        chain_a: str,
        chain_b: str,
        relayer: str,
        path_name: str,
        *,
        client_options: ClientOptions | None = None,
        channel_options: ChannelOptions | None = None,
    ) -> Link:
        """
        Declare a link between two previously declared chains.

        Args:
            chain_a: Name of the first chain.
            chain_b: Name of the second chain.
            relayer: Name of the relayer bridging them.
            path_name: Path name, unique within the topology.
            client_options: Options for client creation.
            channel_options: Options for channel creation.

        Raises:
            TopologySealed: If Build already began.
            DuplicatePath: If the path name is already declared.
            UnknownParticipant: If a chain or the relayer was never added.
            DeclarationError: If both ends are the same chain.
        """
        self._check_open("add a link")
        if path_name in self.links:
            raise DuplicatePath(path_name)

        for chain_name in (chain_a, chain_b):
            if chain_name not in self.chains:
                raise UnknownParticipant("chain", chain_name, path_name=path_name)
        if relayer not in self.relayers:
            raise UnknownParticipant("relayer", relayer, path_name=path_name)
        if chain_a == chain_b:
            raise DeclarationError(f"Link {path_name!r} connects chain {chain_a!r} to itself")

        relayer_handle = self.relayers[relayer]
        link = Link(
            path_name=path_name,
            chain_a=self.chains[chain_a],
            chain_b=self.chains[chain_b],
            relayer=relayer_handle,
            client_options=client_options,
            channel_options=channel_options,
        )
        self.links[path_name] = link
        relayer_handle.paths.append(path_name)
        return link

    def seal(self) -> None:
        """Fix the topology's shape. Idempotent."""
        self.sealed = True

    def chain(self, name: str) -> ChainHandle:
        """Look up a chain handle by name."""
        try:
            return self.chains[name]
        except KeyError:
            raise UnknownParticipant("chain", name) from None

    def relayer(self, name: str) -> RelayerHandle:
        """Look up a relayer handle by name."""
        try:
            return self.relayers[name]
        except KeyError:
            raise UnknownParticipant("relayer", name) from None

    def link(self, path_name: str) -> Link:
        """Look up a link by path name."""
        try:
            return self.links[path_name]
        except KeyError:
            raise UnknownParticipant("path", path_name) from None

    def links_for(self, relayer_name: str) -> list[Link]:
        """Links assigned to a relayer, in declaration order."""
        return [self.links[p] for p in self.relayer(relayer_name).paths]

    def chains_for(self, relayer_name: str) -> list[ChainHandle]:
        """Chains a relayer touches, each once, in first-use order."""
        seen: dict[str, ChainHandle] = {}
        for link in self.links_for(relayer_name):
            seen.setdefault(link.chain_a.name, link.chain_a)
            seen.setdefault(link.chain_b.name, link.chain_b)
        return list(seen.values())

    def _check_open(self, operation: str) -> None:
        if self.sealed:
            raise TopologySealed(operation)
