"""Build options and the report a successful build returns."""

from __future__ import annotations

import secrets
from pathlib import Path

from pydantic import Field

from interchain.config import OrchestratorConfig
from interchain.topology import HandshakeState
from interchain.types import StrictBaseModel


class BuildOptions(StrictBaseModel):
    """Caller-supplied parameters of one build."""

    test_name: str = "interchain"
    """Name of the test run. Also the prefix of the generated label."""

    label: str | None = None
    """
    Correlation label attached to every resource the build creates.

    Defaults to the test name plus a random suffix, so parallel runs of the
    same test never share a label.
    """

    skip_path_creation: bool = False
    """Start chains and configure relayers, but run no handshake."""

    deadline: float | None = Field(default=None, gt=0)
    """Seconds the whole build may take. None leaves only the per-wait budgets."""

    ledger_path: Path | None = None
    """SQLite run ledger. None disables the ledger."""

    config: OrchestratorConfig = Field(default_factory=OrchestratorConfig)
    """Budgets and defaults for this build."""

    def resolved_label(self) -> str:
        """The explicit label, or a fresh one derived from the test name."""
        return self.label or f"{self.test_name}-{secrets.token_hex(4)}"


class BuildReport(StrictBaseModel):
    """What a successful build produced."""

    label: str
    network_id: str
    links: dict[str, HandshakeState]
    """Final handshake state of every link, by path name."""

    elapsed: float
    """Seconds the build took."""
