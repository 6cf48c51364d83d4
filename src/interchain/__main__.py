"""
Entry point for `python -m interchain`.

See `interchain.cli` for the available commands.
"""

from interchain.cli import cli

if __name__ == "__main__":
    cli()
