"""
Orchestrator configuration.

Timeouts, budgets and funding amounts used by a build. A config value is passed
explicitly through `BuildOptions`; nothing here is process-global, so two
topologies built in the same process cannot interfere.

Environment overrides use the `INTERCHAIN_` prefix, e.g.
`INTERCHAIN_STARTUP_TIMEOUT=300`.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import Field

from interchain.types import StrictBaseModel

ENV_PREFIX = "INTERCHAIN_"
"""Prefix of environment variables read by `OrchestratorConfig.from_env`."""


class OrchestratorConfig(StrictBaseModel):
    """Budgets and defaults threaded through Build, handshakes, polls and teardown."""

    height_poll_interval: float = Field(default=0.25, ge=0)
    """Seconds between height reads while waiting for a block."""

    startup_timeout: float = Field(default=120.0, gt=0)
    """
    Seconds a chain may take to show block production after `start`.

    Wall-clock, because a chain that is not producing blocks has no height to
    measure a budget in.
    """

    stall_timeout: float = Field(default=60.0, gt=0)
    """
    Seconds a started chain may go without a new block before a wait gives up.

    Keeps every block-bounded wait finite when a chain halts.
    """

    handshake_step_blocks: int = Field(default=20, ge=1)
    """Budget of one handshake step, in blocks of the slower chain."""

    max_backoff_blocks: int = Field(default=4, ge=1)
    """Cap on the doubling back-off between transient retries, in blocks."""

    relayer_wallet_funds: int = Field(default=10_000_000, ge=0)
    """Genesis funds of every relayer wallet, in the chain's native denom."""

    adopt_existing_artifacts: bool = True
    """Adopt clients/connections/channels that already exist instead of recreating them."""

    teardown_timeout: float = Field(default=60.0, gt=0)
    """Seconds a single teardown call may take before it is reported as failed."""

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> OrchestratorConfig:
        """
        Build a config from `INTERCHAIN_*` environment variables.

        Unset variables keep their defaults. Values are validated like any
        other input.

        Raises:
            pydantic.ValidationError: If a variable holds an invalid value.
        """
        environ = os.environ if environ is None else environ
        overrides = {
            name: environ[ENV_PREFIX + name.upper()]
            for name in cls.model_fields
            if ENV_PREFIX + name.upper() in environ
        }
        return cls.model_validate(overrides)

    @classmethod
    def from_yaml_file(cls, path: Path | str) -> OrchestratorConfig:
        """
        Load configuration from a YAML file.

        Raises:
            FileNotFoundError: If the file does not exist.
            yaml.YAMLError: If the file is not valid YAML.
            pydantic.ValidationError: If the data fails validation.
        """
        path = Path(path)
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return cls.model_validate(data or {})

    @classmethod
    def from_yaml(cls, content: str) -> OrchestratorConfig:
        """Load configuration from a YAML string."""
        return cls.model_validate(yaml.safe_load(content) or {})
