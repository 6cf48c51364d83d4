"""
Abstract run ledger interface.

Defines the Protocol that all ledger implementations must follow.
Uses structural subtyping for flexibility.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True, slots=True)
class RunRecord:
    """A build run as stored in the ledger."""

    label: str
    test_name: str
    status: str
    created_at: float


@dataclass(frozen=True, slots=True)
class ResourceRecord:
    """A resource created under a label."""

    label: str
    kind: str
    """"network", "chain" or "relayer"."""

    name: str
    """Logical name (chain or relayer name, or "network")."""

    ref: str
    """Collaborator-side identifier (network id, chain id, ...)."""

    released: bool


class RunLedger(Protocol):
    """
    Protocol for recording what a build created.

    The ledger outlives the process, so resources of a run whose topology
    object was lost can still be found by label.

    Storage Organization
    --------------------
    - Runs: status per correlation label
    - Resources: what was created, and whether teardown released it
    - Handshakes: last confirmed handshake state per path
    """

    def record_run(self, label: str, test_name: str) -> None:
        """Register a run in status "building"."""
        ...

    def set_run_status(self, label: str, status: str) -> None:
        """Update a run's status ("ready", "failed", "closed")."""
        ...

    def get_run(self, label: str) -> RunRecord | None:
        """Retrieve a run by label."""
        ...

    def record_resource(self, label: str, kind: str, name: str, ref: str) -> None:
        """Register a resource as created (and not yet released)."""
        ...

    def release_resource(self, label: str, kind: str, name: str) -> None:
        """Mark a resource as released by teardown."""
        ...

    def unreleased_resources(self, label: str) -> list[ResourceRecord]:
        """Resources of a run that teardown has not released."""
        ...

    def record_handshake(self, label: str, path_name: str, state: str) -> None:
        """Store the last confirmed handshake state of a path."""
        ...

    def handshake_states(self, label: str) -> dict[str, str]:
        """Last confirmed handshake state of every path of a run."""
        ...

    def close(self) -> None:
        """Release the underlying storage."""
        ...
