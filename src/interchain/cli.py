"""
Command-line interface.

Build a topology file over the simulated family and inspect the run ledger:

    interchain run topology.yaml --blocks 5
    interchain run topology.yaml --ledger runs.db --skip-path-creation
    interchain ledger my-test-1a2b3c4d --db runs.db
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import click
import yaml
from pydantic import ValidationError

from interchain.factory import InterchainSpec, build_interchain
from interchain.metrics import generate_metrics
from interchain.orchestrator import BuildOptions
from interchain.polling import wait_for_blocks
from interchain.sim import SimNetworkProvider
from interchain.storage import SQLiteLedger
from interchain.types import InterchainError


def setup_logging(verbose: bool) -> None:
    """Configure logging for the CLI."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """Orchestrate cross-chain test topologies."""
    setup_logging(verbose)


@cli.command()
@click.argument("topology", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--skip-path-creation", is_flag=True, help="Start chains but run no handshake.")
@click.option(
    "--ledger",
    "ledger_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="SQLite run ledger to record the build in.",
)
@click.option(
    "--blocks", type=click.IntRange(min=0), default=0, help="Blocks to wait before closing."
)
@click.option("--test-name", default="interchain", help="Name of the run.")
@click.option(
    "--metrics", "show_metrics", is_flag=True, help="Print Prometheus metrics at the end."
)
def run(
    topology: Path,
    skip_path_creation: bool,
    ledger_path: Path | None,
    blocks: int,
    test_name: str,
    show_metrics: bool,
) -> None:
    """
    Build TOPOLOGY over the simulated family, report link states, then tear down.

    Exits with status 1 when the topology file is invalid or the build fails.
    """
    try:
        spec = InterchainSpec.from_yaml_file(topology)
    except (yaml.YAMLError, ValidationError) as exc:
        click.echo(f"Invalid topology file {topology}: {exc}", err=True)
        sys.exit(1)

    options = BuildOptions(
        test_name=test_name,
        skip_path_creation=skip_path_creation,
        ledger_path=ledger_path,
        config=spec.config,
    )

    errors: list[Exception] = []
    try:
        asyncio.run(_run(spec, options, blocks))
    except InterchainError as exc:
        errors.append(exc)
    except ExceptionGroup as group:
        errors.extend(group.exceptions)
    finally:
        if show_metrics:
            click.echo(generate_metrics().decode())

    for error in errors:
        click.echo(f"Error: {error}", err=True)
    if errors:
        sys.exit(1)


async def _run(spec: InterchainSpec, options: BuildOptions, blocks: int) -> None:
    network = SimNetworkProvider()
    async with build_interchain(spec, network) as ic:
        report = await ic.build(options)
        click.echo(f"label: {report.label}")
        click.echo(f"network: {report.network_id}")
        for path_name, state in report.links.items():
            click.echo(f"link {path_name}: {state.label}")

        if blocks:
            chains = [ic.get_chain(name) for name in ic.topology.chains]
            heights = await wait_for_blocks(blocks, *chains, config=options.config)
            click.echo(f"waited {blocks} block(s), heights {heights}")


@cli.command()
@click.argument("label")
@click.option(
    "--db",
    "db_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="SQLite run ledger.",
)
def ledger(label: str, db_path: Path) -> None:
    """Show what the run LABEL recorded: status, unreleased resources, handshakes."""
    with SQLiteLedger(db_path) as db:
        run_record = db.get_run(label)
        if run_record is None:
            click.echo(f"No run labelled {label}", err=True)
            sys.exit(1)

        click.echo(f"run {run_record.label} ({run_record.test_name}): {run_record.status}")

        resources = db.unreleased_resources(label)
        if resources:
            click.echo("unreleased:")
            for resource in resources:
                click.echo(f"  {resource.kind} {resource.name} ({resource.ref})")
        else:
            click.echo("unreleased: none")

        for path_name, state in db.handshake_states(label).items():
            click.echo(f"handshake {path_name}: {state}")


if __name__ == "__main__":
    cli()
