"""
Handshake sequencer: drives one link from UNSET to CHANNEL_CREATED.

Steps
-----
::

    generate_path --> create_clients --> create_connections --> create_channel

Each step:

1. Refuses to run before its predecessor completed (`HandshakeOrderError`).
2. Returns the recorded result if the link is already past it.
3. Adopts artifacts that already exist on both chains, if enabled.
4. Otherwise calls the relayer, racing a budget of blocks of the slower chain.
5. Confirms the artifacts are queryable on both chains before advancing.

The link state only moves after step 5, so a failed step leaves the link
exactly where it was and the step can be re-issued.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from typing import TypeVar

from interchain.config import OrchestratorConfig
from interchain.ibc import (
    DEFAULT_TRUSTING_PERIOD,
    Chain,
    ChannelOptions,
    ChannelPair,
    ClientOptions,
    ClientPair,
    ConnectionPair,
)
from interchain.metrics import handshake_steps
from interchain.polling import poll_for_state, race_blocks, wait_for_blocks
from interchain.storage import RunLedger
from interchain.topology import HandshakeResult, HandshakeState, Link
from interchain.types import (
    DeadlineExceeded,
    HandshakeError,
    HandshakeOrderError,
    HandshakeRejection,
    ProtocolRejection,
    TransientQueryError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

GENERATE_PATH = "generate-path"
CREATE_CLIENTS = "create-clients"
CREATE_CONNECTIONS = "create-connections"
CREATE_CHANNEL = "create-channel"


class HandshakeSequencer:
    """
    Runs the handshake steps of one link, in order.

    Safe to drive step by step (the manual flow after a build that skipped
    path creation) or end to end with `run`.
    """

    def __init__(
        self,
        link: Link,
        config: OrchestratorConfig,
        *,
        cancel: asyncio.Event | None = None,
        ledger: RunLedger | None = None,
        label: str | None = None,
    ) -> None:
        """
        Initialize the sequencer.

        Args:
            link: The link to drive. Its state is updated in place.
            config: Step budget, back-off cap and adoption switch.
            cancel: Shared cancel signal, checked before each step of `run`.
            ledger: Ledger to record confirmed steps in.
            label: Correlation label of the run, required with a ledger.
        """
        self.link = link
        self.config = config
        self._cancel = cancel
        self._ledger = ledger
        self._label = label

    @property
    def path_name(self) -> str:
        """Path name of the link."""
        return self.link.path_name

    @property
    def _chains(self) -> list[Chain]:
        return [self.link.chain_a.chain, self.link.chain_b.chain]

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    async def generate_path(self) -> None:
        """Register the path with the relayer."""
        link = self.link
        if link.path_generated:
            handshake_steps.labels(step=GENERATE_PATH, outcome="recorded").inc()
            return

        with self._translate_errors(GENERATE_PATH):
            await self._call_relayer(
                GENERATE_PATH,
                lambda: link.relayer.relayer.generate_path(
                    link.path_name, link.chain_a.chain_id, link.chain_b.chain_id
                ),
            )

        link.path_generated = True
        handshake_steps.labels(step=GENERATE_PATH, outcome="created").inc()
        logger.info("Path %s generated on relayer %s", link.path_name, link.relayer.name)

    async def create_clients(self, options: ClientOptions | None = None) -> ClientPair:
        """
        Create a light client of each chain on the other.

        Args:
            options: Client options. Defaults to the link's options, then to
                protocol defaults with the chain's trusting period.
        """
        link = self.link
        if link.state >= HandshakeState.CLIENT_CREATED:
            assert link.clients is not None
            handshake_steps.labels(step=CREATE_CLIENTS, outcome="recorded").inc()
            return link.clients
        if not link.path_generated:
            raise HandshakeOrderError(link.path_name, CREATE_CLIENTS, "path-not-generated")

        opts = self._client_options(options)
        result = await self._run_step(
            CREATE_CLIENTS,
            HandshakeState.CLIENT_CREATED,
            find=self._find_clients,
            create=lambda: link.relayer.relayer.create_clients(link.path_name, opts),
        )
        assert isinstance(result, ClientPair)
        return result

    async def create_connections(self) -> ConnectionPair:
        """Open a connection over the link's clients."""
        link = self.link
        if link.state >= HandshakeState.CONNECTION_CREATED:
            assert link.connections is not None
            handshake_steps.labels(step=CREATE_CONNECTIONS, outcome="recorded").inc()
            return link.connections
        if link.state < HandshakeState.CLIENT_CREATED:
            raise HandshakeOrderError(link.path_name, CREATE_CONNECTIONS, link.state.label)

        result = await self._run_step(
            CREATE_CONNECTIONS,
            HandshakeState.CONNECTION_CREATED,
            find=self._find_connections,
            create=lambda: link.relayer.relayer.create_connections(link.path_name),
        )
        assert isinstance(result, ConnectionPair)
        return result

    async def create_channel(self, options: ChannelOptions | None = None) -> ChannelPair:
        """
        Open a channel over the link's connection.

        Args:
            options: Channel options. Defaults to the link's options, then to
                an unordered transfer channel.
        """
        link = self.link
        if link.state >= HandshakeState.CHANNEL_CREATED:
            assert link.channels is not None
            handshake_steps.labels(step=CREATE_CHANNEL, outcome="recorded").inc()
            return link.channels
        if link.state < HandshakeState.CONNECTION_CREATED:
            raise HandshakeOrderError(link.path_name, CREATE_CHANNEL, link.state.label)

        opts = options or link.channel_options or ChannelOptions()
        result = await self._run_step(
            CREATE_CHANNEL,
            HandshakeState.CHANNEL_CREATED,
            find=lambda expected: self._find_channels(opts, expected),
            create=lambda: link.relayer.relayer.create_channel(link.path_name, opts),
        )
        assert isinstance(result, ChannelPair)
        return result

    async def run(self) -> ChannelPair:
        """
        Run every remaining step.

        Raises:
            HandshakeError: If the cancel signal is set before a step starts,
                or a step fails.
            DeadlineExceeded: If a step exhausts its block budget.
        """
        steps: list[tuple[str, Callable[[], Awaitable[object]]]] = [
            (GENERATE_PATH, self.generate_path),
            (CREATE_CLIENTS, self.create_clients),
            (CREATE_CONNECTIONS, self.create_connections),
            (CREATE_CHANNEL, self.create_channel),
        ]
        for step, action in steps:
            if self._cancel is not None and self._cancel.is_set():
                raise HandshakeError(self.path_name, step, "cancelled before start")
            await action()

        assert self.link.channels is not None
        return self.link.channels

    # -------------------------------------------------------------------------
    # Step machinery
    # -------------------------------------------------------------------------

    async def _run_step(
        self,
        step: str,
        target: HandshakeState,
        find: Callable[[HandshakeResult | None], Awaitable[HandshakeResult | None]],
        create: Callable[[], Awaitable[HandshakeResult]],
    ) -> HandshakeResult:
        """Adopt or create the step's artifacts, confirm them, then advance the link."""
        outcome = "created"

        with self._translate_errors(step):
            existing: HandshakeResult | None = None
            if self.config.adopt_existing_artifacts:
                existing = await self._call_relayer(step, lambda: find(None))

            if existing is not None:
                outcome = "adopted"
                confirmed = existing
                logger.info("Link %s: adopting existing artifacts for %s", self.path_name, step)
            else:
                reported = await self._call_relayer(step, create)
                confirmed = await poll_for_state(
                    lambda: find(reported),
                    self._chains,
                    self.config.handshake_step_blocks,
                    config=self.config,
                    operation=f"[{self.path_name}] confirm {step}",
                )

        self.link.advance(target, confirmed)
        if self._ledger is not None and self._label is not None:
            self._ledger.record_handshake(self._label, self.path_name, target.label)

        handshake_steps.labels(step=step, outcome=outcome).inc()
        logger.info("Link %s: %s confirmed (%s)", self.path_name, target.label, outcome)
        return confirmed

    async def _call_relayer(self, step: str, call: Callable[[], Awaitable[T]]) -> T:
        """
        Call the relayer under the step budget, retrying transient failures.

        Back-off doubles from one block up to `config.max_backoff_blocks`.
        """
        backoff = 1

        async def attempt() -> T:
            nonlocal backoff
            while True:
                try:
                    return await call()
                except TransientQueryError as exc:
                    logger.warning(
                        "Link %s: %s hit a transient error, retrying in %d block(s): %s",
                        self.path_name,
                        step,
                        backoff,
                        exc,
                    )
                    await wait_for_blocks(backoff, *self._chains, config=self.config)
                    backoff = min(backoff * 2, self.config.max_backoff_blocks)

        return await race_blocks(
            attempt(),
            self._chains,
            self.config.handshake_step_blocks,
            config=self.config,
            operation=f"[{self.path_name}] {step}",
        )

    @contextmanager
    def _translate_errors(self, step: str) -> Iterator[None]:
        """Turn adapter failures into terminal link errors."""
        try:
            yield
        except DeadlineExceeded:
            handshake_steps.labels(step=step, outcome="timeout").inc()
            raise
        except HandshakeError:
            raise
        except ProtocolRejection as exc:
            handshake_steps.labels(step=step, outcome="rejected").inc()
            raise HandshakeRejection(
                self.path_name, step, exc.message, chain_id=exc.chain_id
            ) from exc
        except Exception as exc:
            handshake_steps.labels(step=step, outcome="rejected").inc()
            raise HandshakeRejection(self.path_name, step, f"{type(exc).__name__}: {exc}") from exc

    def _client_options(self, options: ClientOptions | None) -> ClientOptions:
        opts = options or self.link.client_options or ClientOptions()
        if opts.trusting_period:
            return opts
        trusting_period = (
            self.link.chain_a.chain.config.trusting_period
            or self.link.chain_b.chain.config.trusting_period
            or DEFAULT_TRUSTING_PERIOD
        )
        return opts.copy(trusting_period=trusting_period)

    # -------------------------------------------------------------------------
    # Artifact queries
    # -------------------------------------------------------------------------

    async def _find_clients(self, expected: HandshakeResult | None) -> ClientPair | None:
        """
        Clients on both chains tracking each other.

        With an expected pair, only those exact client ids count.
        """
        link = self.link
        relayer = link.relayer.relayer
        a_id, b_id = link.chain_a.chain_id, link.chain_b.chain_id

        on_a = [c for c in await relayer.get_clients(a_id) if c.counterparty_chain_id == b_id]
        on_b = [c for c in await relayer.get_clients(b_id) if c.counterparty_chain_id == a_id]

        if isinstance(expected, ClientPair):
            on_a = [c for c in on_a if c.client_id == expected.a.client_id]
            on_b = [c for c in on_b if c.client_id == expected.b.client_id]

        if not on_a or not on_b:
            return None
        return ClientPair(a=on_a[0], b=on_b[0])

    async def _find_connections(self, expected: HandshakeResult | None) -> ConnectionPair | None:
        """Connection ends on the recorded clients that point at each other."""
        link = self.link
        assert link.clients is not None
        relayer = link.relayer.relayer

        on_a = [
            c
            for c in await relayer.get_connections(link.chain_a.chain_id)
            if c.client_id == link.clients.a.client_id
        ]
        on_b = {
            c.connection_id: c
            for c in await relayer.get_connections(link.chain_b.chain_id)
            if c.client_id == link.clients.b.client_id
        }

        if isinstance(expected, ConnectionPair):
            on_a = [c for c in on_a if c.connection_id == expected.a.connection_id]

        for end_a in on_a:
            end_b = on_b.get(end_a.counterparty_connection_id)
            if end_b is not None and end_b.counterparty_connection_id == end_a.connection_id:
                return ConnectionPair(a=end_a, b=end_b)
        return None

    async def _find_channels(
        self,
        options: ChannelOptions,
        expected: HandshakeResult | None,
    ) -> ChannelPair | None:
        """Channel ends on the recorded connections bound to the requested ports."""
        link = self.link
        assert link.connections is not None
        relayer = link.relayer.relayer

        on_a = [
            c
            for c in await relayer.get_channels(link.chain_a.chain_id)
            if c.port_id == options.source_port
            and c.connection_hops[:1] == [link.connections.a.connection_id]
        ]
        on_b = {
            (c.port_id, c.channel_id): c
            for c in await relayer.get_channels(link.chain_b.chain_id)
            if c.connection_hops[:1] == [link.connections.b.connection_id]
        }

        if isinstance(expected, ChannelPair):
            on_a = [c for c in on_a if c.channel_id == expected.a.channel_id]

        for end_a in on_a:
            end_b = on_b.get((end_a.counterparty.port_id, end_a.counterparty.channel_id))
            if (
                end_b is not None
                and end_b.port_id == options.dest_port
                and end_b.counterparty.channel_id == end_a.channel_id
            ):
                return ChannelPair(a=end_a, b=end_b)
        return None
