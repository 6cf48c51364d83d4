"""
Exception hierarchy for interchain orchestration.

Errors fall into two groups:

- Orchestration errors, raised by the core: declaration problems, failed
  initialization, handshake failures, exhausted block budgets, teardown
  problems.
- Adapter conditions, raised by chain/relayer/network implementations and
  interpreted by the core (retry a transient query, stop on a rejection).
"""

from __future__ import annotations

from collections.abc import Sequence


class InterchainError(Exception):
    """
    Base exception for all interchain errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


# -----------------------------------------------------------------------------
# Declaration
# -----------------------------------------------------------------------------


class DeclarationError(InterchainError):
    """Raised when a topology declaration is invalid. Nothing has started yet."""


class DuplicatePath(DeclarationError):
    """
    Raised when a link reuses a path name already declared in the topology.

    Attributes:
        path_name: The repeated path name.
    """

    def __init__(self, path_name: str) -> None:
        self.path_name = path_name
        super().__init__(f"Path {path_name!r} is already declared")


class DuplicateParticipant(DeclarationError):
    """
    Raised when a chain or relayer name (or chain id) is declared twice.

    Attributes:
        kind: Either "chain" or "relayer".
        name: The repeated name.
    """

    def __init__(self, kind: str, name: str) -> None:
        self.kind = kind
        self.name = name
        super().__init__(f"{kind.capitalize()} {name!r} is already declared")


class UnknownParticipant(DeclarationError):
    """
    Raised when a link references a chain or relayer that was never added.

    Attributes:
        kind: Either "chain" or "relayer".
        name: Name of the missing participant.
        path_name: The link being declared, if any.
    """

    def __init__(self, kind: str, name: str, *, path_name: str | None = None) -> None:
        self.kind = kind
        self.name = name
        self.path_name = path_name

        msg = f"Unknown {kind} {name!r}"
        if path_name is not None:
            msg = f"{msg} in link {path_name!r}"
        super().__init__(msg)


class TopologySealed(DeclarationError):
    """Raised when a declaration is attempted after Build has begun."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"Cannot {operation}: topology shape is fixed once build starts")


# -----------------------------------------------------------------------------
# Build
# -----------------------------------------------------------------------------


class InitializationFailure(InterchainError):
    """
    Raised when a chain or relayer fails to reach its ready state.

    Fatal to Build. The partial topology is torn down before this propagates.

    Attributes:
        participant: Chain or relayer name.
        phase: Lifecycle phase that failed (e.g. "initialize", "start", "ready").
        detail: Additional context.
    """

    def __init__(self, participant: str, phase: str, detail: str | None = None) -> None:
        self.participant = participant
        self.phase = phase
        self.detail = detail

        msg = f"{participant} failed during {phase}"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)


class HandshakeError(InterchainError):
    """
    Base class for failures scoped to a single link.

    Attributes:
        path_name: The link the failure belongs to.
        step: The handshake step being attempted.
    """

    def __init__(self, path_name: str, step: str, message: str) -> None:
        self.path_name = path_name
        self.step = step
        super().__init__(f"[{path_name}] {step}: {message}")


class HandshakeRejection(HandshakeError):
    """
    Raised when the relayer reports a protocol-level rejection at a step.

    Terminal for the link; never retried. Sibling links are unaffected.

    Attributes:
        reason: The rejection reported by the relayer.
        chain_id: The chain the rejection was observed on, when known.
    """

    def __init__(
        self,
        path_name: str,
        step: str,
        reason: str,
        *,
        chain_id: str | None = None,
    ) -> None:
        self.reason = reason
        self.chain_id = chain_id

        msg = f"rejected: {reason}"
        if chain_id is not None:
            msg = f"{msg} (chain {chain_id})"
        super().__init__(path_name, step, msg)


class HandshakeOrderError(HandshakeError):
    """
    Raised when a step is attempted before its predecessor completed.

    Attributes:
        state: The link state at the time of the attempt.
    """

    def __init__(self, path_name: str, step: str, state: str) -> None:
        self.state = state
        super().__init__(path_name, step, f"not allowed from state {state}")


class HandshakeIncomplete(HandshakeError):
    """Raised when relaying is requested on a link without an established channel."""

    def __init__(self, path_name: str, state: str) -> None:
        self.state = state
        super().__init__(
            path_name,
            "start_relaying",
            f"channel not established (state {state})",
        )


class DeadlineExceeded(InterchainError):
    """
    Raised when a poll, handshake step or build exhausts its budget.

    Reported, never retried by the core. Callers may re-issue the operation.

    Attributes:
        operation: What was being waited for.
        max_blocks: The block budget, when the budget was block-based.
        detail: Additional context (heights observed, last transient error).
    """

    def __init__(
        self,
        operation: str,
        *,
        max_blocks: int | None = None,
        detail: str | None = None,
    ) -> None:
        self.operation = operation
        self.max_blocks = max_blocks
        self.detail = detail

        if max_blocks is not None:
            msg = f"{operation} not satisfied within {max_blocks} blocks"
        else:
            msg = f"{operation} exceeded its deadline"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)


class TeardownFailure(InterchainError):
    """
    Aggregate of every error collected during teardown.

    Never replaces the primary error of a failed build.

    Attributes:
        errors: The individual failures, in the order they were collected.
    """

    def __init__(self, errors: Sequence[BaseException]) -> None:
        self.errors = list(errors)
        details = "; ".join(f"{type(e).__name__}: {e}" for e in self.errors)
        super().__init__(f"Teardown finished with {len(self.errors)} error(s): {details}")


# -----------------------------------------------------------------------------
# Adapter conditions
# -----------------------------------------------------------------------------


class TransientQueryError(InterchainError):
    """
    Raised by an adapter when a query failed for a retryable reason.

    Typical case: the chain has not yet indexed an artifact created in the
    previous block. The core retries within the step or poll budget.
    """


class ProtocolRejection(InterchainError):
    """
    Raised by a relayer adapter when the counterparty protocol rejected a step.

    Attributes:
        chain_id: The chain that rejected, when known.
    """

    def __init__(self, message: str, *, chain_id: str | None = None) -> None:
        self.chain_id = chain_id
        super().__init__(message)


class TransactionError(InterchainError):
    """Raised by a chain adapter when a transaction is rejected."""


class ChainNotStarted(InterchainError):
    """
    Raised when chain state is queried before the chain reached Started.

    Attributes:
        chain: The chain name.
    """

    def __init__(self, chain: str) -> None:
        self.chain = chain
        super().__init__(f"Chain {chain!r} has not started")


class ResourceError(InterchainError):
    """Raised by a network provider when a network or process group is unusable."""
