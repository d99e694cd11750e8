"""repoast CLI entry point.

Orchestrator for the repoast command-line interface. Registers all
command modules and provides the main entry point.

Execution Context:
    CLI application - run via `python main.py` or `repoast` command

Dependencies:
    - click: CLI framework
    - repoast_core: Core library

Metadata:
    Version: 0.1.0
    Author: repoast Team
"""
from __future__ import annotations

import sys

import click

from repoast_cli.commands.show import show
from repoast_cli.commands.write import write


# ---- CLI Group ----------------------------------------------------------------------------------------------


@click.group()
@click.version_option(version="0.1.0", prog_name="repoast")
def cli() -> None:
    """repoast - Declarative repository fixtures.

    Materialize repository shorthand on disk and inspect repositories
    left behind by fixture-based tests.
    """
    pass


# ---- Register Commands --------------------------------------------------------------------------------------


cli.add_command(write)
cli.add_command(show)


# ---- Main Function ------------------------------------------------------------------------------------------


def main() -> int:
    """Main entry point for repoast CLI.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    try:
        cli()
        return 0
    except Exception as cli_error:
        click.echo(f"Error: {cli_error}", err=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
