"""repoast write command.

Materializes repository shorthand into real repositories on disk.

Execution Context:
    CLI command - invoked via `repoast write`

Dependencies:
    - click: CLI framework
    - rich: Terminal output
    - repoast_core: Shorthand parsing and repository writing

Metadata:
    Version: 0.1.0
    Author: repoast Team
"""
from __future__ import annotations

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from repoast_core.repo_ast_io import write_multi_rast
from repoast_core.repo_ast_io import write_rast
from repoast_core.shorthand import parse_multi_repo_shorthand
from repoast_core.shorthand import parse_repo_shorthand

console = Console()


# ---- Write Command ------------------------------------------------------------------------------------------


@click.command()
@click.option(
    "--multi",
    "-m",
    is_flag=True,
    help="Parse SHORTHAND as multi-repository shorthand (name=repo|...).",
)
@click.argument("shorthand")
@click.argument(
    "dest",
    type=click.Path(file_okay=False),
)
def write(
        shorthand: str,
        dest: str,
        multi: bool,
) -> None:
    """Create the repositories described by SHORTHAND under DEST.

    Prints the physical id assigned to every logical commit.

    Examples:
        repoast write "S:C2-1;Br master=2" /tmp/repo
        repoast write --multi "a=S|b=Ca" /tmp/repos
    """
    try:
        dest_path = Path(dest).resolve()

        if multi:
            written = write_multi_rast(parse_multi_repo_shorthand(shorthand), dest_path)
            commit_map = written.commit_map

            repos_table = Table(title="Repositories")
            repos_table.add_column("Name", style="cyan")
            repos_table.add_column("Path")
            for name, repo in written.repos.items():
                repos_table.add_row(name, str(repo.root))
            console.print(repos_table)
        else:
            written_repo = write_rast(parse_repo_shorthand(shorthand), dest_path)
            commit_map = written_repo.commit_map
            console.print(f"[green]Wrote repository at {written_repo.repo.root}[/green]")

        commits_table = Table(title="Commits")
        commits_table.add_column("Logical", style="cyan")
        commits_table.add_column("Physical", style="yellow")
        for physical, logical in sorted(commit_map.items(), key=lambda item: item[1]):
            commits_table.add_row(logical, physical)
        console.print(commits_table)

    except Exception as write_error:
        msg = f"Write failed: {write_error}"
        raise click.ClickException(msg) from write_error
