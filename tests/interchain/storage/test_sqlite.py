"""Tests for the SQLite run ledger."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest

from interchain.storage import RunLedger, SQLiteLedger


@pytest.fixture
def ledger() -> Generator[SQLiteLedger, None, None]:
    """Create an in-memory ledger for testing."""
    db = SQLiteLedger(":memory:")
    yield db
    db.close()


class TestRuns:
    """Tests for run records."""

    def test_record_and_get(self, ledger: SQLiteLedger) -> None:
        """A new run starts in status building."""
        ledger.record_run("run-1", "test_transfer")

        run = ledger.get_run("run-1")
        assert run is not None
        assert run.label == "run-1"
        assert run.test_name == "test_transfer"
        assert run.status == "building"
        assert run.created_at > 0

    def test_status_update(self, ledger: SQLiteLedger) -> None:
        """Status changes are persisted."""
        ledger.record_run("run-1", "test_transfer")
        ledger.set_run_status("run-1", "ready")

        run = ledger.get_run("run-1")
        assert run is not None
        assert run.status == "ready"

    def test_unknown_run(self, ledger: SQLiteLedger) -> None:
        """Unknown labels return None."""
        assert ledger.get_run("missing") is None


class TestResources:
    """Tests for resource tracking."""

    def test_unreleased_in_creation_order(self, ledger: SQLiteLedger) -> None:
        """Resources come back in the order they were recorded."""
        ledger.record_resource("run-1", "network", "network", "run-1-net-1")
        ledger.record_resource("run-1", "chain", "osmosis", "osmosis-1")
        ledger.record_resource("run-1", "chain", "gaia", "gaia-1")

        names = [r.name for r in ledger.unreleased_resources("run-1")]
        assert names == ["network", "osmosis", "gaia"]

    def test_release(self, ledger: SQLiteLedger) -> None:
        """Released resources drop out of the unreleased list."""
        ledger.record_resource("run-1", "chain", "gaia", "gaia-1")
        ledger.record_resource("run-1", "relayer", "rly", "rly")
        ledger.release_resource("run-1", "chain", "gaia")

        (remaining,) = ledger.unreleased_resources("run-1")
        assert (remaining.kind, remaining.name, remaining.ref) == ("relayer", "rly", "rly")
        assert not remaining.released

    def test_labels_are_separate(self, ledger: SQLiteLedger) -> None:
        """One run's resources never show up under another label."""
        ledger.record_resource("run-1", "chain", "gaia", "gaia-1")
        ledger.record_resource("run-2", "chain", "gaia", "gaia-1")
        ledger.release_resource("run-1", "chain", "gaia")

        assert ledger.unreleased_resources("run-1") == []
        assert len(ledger.unreleased_resources("run-2")) == 1

    def test_rerecording_revives(self, ledger: SQLiteLedger) -> None:
        """Recording a released resource again marks it live."""
        ledger.record_resource("run-1", "chain", "gaia", "gaia-1")
        ledger.release_resource("run-1", "chain", "gaia")
        ledger.record_resource("run-1", "chain", "gaia", "gaia-2")

        (resource,) = ledger.unreleased_resources("run-1")
        assert resource.ref == "gaia-2"


class TestHandshakes:
    """Tests for handshake progress records."""

    def test_last_state_wins(self, ledger: SQLiteLedger) -> None:
        """Only the latest confirmed state per path is kept."""
        ledger.record_handshake("run-1", "p2", "client-created")
        ledger.record_handshake("run-1", "p1", "client-created")
        ledger.record_handshake("run-1", "p1", "connection-created")

        assert ledger.handshake_states("run-1") == {
            "p1": "connection-created",
            "p2": "client-created",
        }
        assert ledger.handshake_states("run-2") == {}


class TestPersistence:
    """Tests for on-disk ledgers."""

    def test_survives_reopen(self, tmp_path: Path) -> None:
        """A second process sees what the first recorded."""
        path = tmp_path / "runs.db"
        with SQLiteLedger(path) as first:
            first.record_run("run-1", "test_transfer")
            first.record_resource("run-1", "network", "network", "run-1-net-1")

        with SQLiteLedger(str(path)) as second:
            run = second.get_run("run-1")
            assert run is not None
            assert [r.ref for r in second.unreleased_resources("run-1")] == ["run-1-net-1"]

    def test_satisfies_protocol(self, ledger: SQLiteLedger) -> None:
        """The SQLite ledger is usable wherever a RunLedger is expected."""
        as_protocol: RunLedger = ledger
        as_protocol.record_run("run-1", "t")
        assert as_protocol.get_run("run-1") is not None
