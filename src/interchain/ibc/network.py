"""Process group / network collaborator interface."""

from __future__ import annotations

from typing import Protocol


class NetworkProvider(Protocol):
    """
    Protocol for the shared network namespace and label-keyed cleanup.

    Every resource a provider creates carries the correlation label, so a new
    process can find and remove a previous run's leftovers without the
    in-memory topology.
    """

    async def create_network(self, label: str) -> str:
        """Create the shared network for a run. Returns its identifier."""
        ...

    async def remove_network(self, network_id: str) -> None:
        """Remove a network created by `create_network`."""
        ...

    async def remove_by_label(self, label: str) -> list[str]:
        """
        Remove every process group and network still registered under `label`.

        Returns:
            Identifiers of the resources removed.
        """
        ...
