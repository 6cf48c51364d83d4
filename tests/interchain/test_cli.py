"""Tests for the command-line interface."""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from interchain.cli import cli

TOPOLOGY = """
chains:
- type: sim
  name: gaia
  chain_id: gaia-1
  block_time: 0.02
- type: sim
  name: osmosis
  chain_id: osmosis-1
  bech32_prefix: osmo
  block_time: 0.02
relayers:
- name: rly
  type: sim
  options:
    poll_interval: 0.02
links:
- path: gaia-osmosis
  chain_a: gaia
  chain_b: osmosis
  relayer: rly
config:
  height_poll_interval: 0.005
  startup_timeout: 10
  stall_timeout: 5
  teardown_timeout: 5
"""


@pytest.fixture
def topology(tmp_path: Path) -> Path:
    """A two-chain simulated topology file."""
    path = tmp_path / "topology.yaml"
    path.write_text(TOPOLOGY, encoding="utf-8")
    return path


def label_from(output: str) -> str:
    """The run label printed by `run`."""
    for line in output.splitlines():
        if line.startswith("label: "):
            return line.removeprefix("label: ")
    raise AssertionError(f"No label in output:\n{output}")


class TestRun:
    """Tests for the run command."""

    def test_build_and_close(self, topology: Path) -> None:
        """The topology comes up with an open channel and is torn down."""
        result = CliRunner().invoke(cli, ["run", str(topology), "--blocks", "2"])

        assert result.exit_code == 0, result.output
        assert label_from(result.output).startswith("interchain-")
        assert "network: " in result.output
        assert "link gaia-osmosis: channel-created" in result.output
        assert "waited 2 block(s)" in result.output

    def test_skip_path_creation(self, topology: Path) -> None:
        """Links stay unset when no handshake runs."""
        result = CliRunner().invoke(cli, ["run", str(topology), "--skip-path-creation"])

        assert result.exit_code == 0, result.output
        assert "link gaia-osmosis: unset" in result.output

    def test_metrics(self, topology: Path) -> None:
        """Metrics are printed in Prometheus text format."""
        result = CliRunner().invoke(
            cli, ["run", str(topology), "--skip-path-creation", "--metrics"]
        )

        assert result.exit_code == 0, result.output
        assert "interchain_chains_started_total" in result.output

    def test_invalid_topology(self, tmp_path: Path) -> None:
        """A file that does not validate exits with status 1."""
        path = tmp_path / "bad.yaml"
        path.write_text("chains:\n- name: gaia\n", encoding="utf-8")

        result = CliRunner().invoke(cli, ["run", str(path)])

        assert result.exit_code == 1
        assert "Invalid topology file" in result.output

    def test_unparseable_topology(self, tmp_path: Path) -> None:
        """A file that is not YAML exits with status 1."""
        path = tmp_path / "bad.yaml"
        path.write_text("chains: [\n", encoding="utf-8")

        assert CliRunner().invoke(cli, ["run", str(path)]).exit_code == 1

    def test_failing_declaration(self, tmp_path: Path) -> None:
        """A link to an undeclared chain is reported as an error."""
        path = tmp_path / "topology.yaml"
        path.write_text(TOPOLOGY.replace("chain_b: osmosis", "chain_b: juno"), encoding="utf-8")

        result = CliRunner().invoke(cli, ["run", str(path)])

        assert result.exit_code == 1
        assert "Error: " in result.output
        assert "juno" in result.output

    def test_missing_file(self, tmp_path: Path) -> None:
        """Click rejects a path that does not exist."""
        result = CliRunner().invoke(cli, ["run", str(tmp_path / "missing.yaml")])
        assert result.exit_code == 2


class TestLedger:
    """Tests for the ledger command."""

    def test_closed_run(self, topology: Path, tmp_path: Path) -> None:
        """A run that closed cleanly leaves nothing unreleased."""
        db = tmp_path / "runs.db"
        runner = CliRunner()

        build = runner.invoke(
            cli, ["run", str(topology), "--ledger", str(db), "--test-name", "cli-test"]
        )
        assert build.exit_code == 0, build.output
        label = label_from(build.output)

        result = runner.invoke(cli, ["ledger", label, "--db", str(db)])

        assert result.exit_code == 0, result.output
        assert f"run {label} (cli-test): closed" in result.output
        assert "unreleased: none" in result.output
        assert "handshake gaia-osmosis: channel-created" in result.output

    def test_unknown_label(self, topology: Path, tmp_path: Path) -> None:
        """Asking for a label that never ran exits with status 1."""
        db = tmp_path / "runs.db"
        runner = CliRunner()
        runner.invoke(cli, ["run", str(topology), "--ledger", str(db), "--skip-path-creation"])

        result = runner.invoke(cli, ["ledger", "no-such-run", "--db", str(db)])

        assert result.exit_code == 1
        assert "No run labelled no-such-run" in result.output
