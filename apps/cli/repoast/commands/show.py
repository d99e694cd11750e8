"""repoast show command.

Prints the state of a repository as the fixture harness reads it.

Execution Context:
    CLI command - invoked via `repoast show`

Dependencies:
    - click: CLI framework
    - rich: Terminal output
    - repoast_core: Repository reading

Metadata:
    Version: 0.1.0
    Author: repoast Team
"""
from __future__ import annotations

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from repoast_core.repo_ast_io import read_rast
from repoast_core.repository import find_repository

console = Console()


def _format_changes(changes: dict[str, str | None]) -> str:
    return ", ".join(
        path if content is None else f"{path}={content}"
        for path, content in sorted(changes.items())
    )


# ---- Show Command -------------------------------------------------------------------------------------------


@click.command()
@click.argument(
    "path",
    type=click.Path(exists=True, file_okay=False),
    default=".",
    required=False,
)
def show(
        path: str,
) -> None:
    """Show the state of the repository at PATH.

    Lists HEAD, branches, refs, remotes, reachable commits and the
    uncommitted changes in the index and working tree.

    Example:
        repoast show /tmp/repoast-abc123/a
    """
    repo = find_repository(path)
    if not repo:
        raise click.ClickException("Not a repoast repository")

    try:
        ast = read_rast(repo)

        head_display = ast.current_branch_name or "(detached HEAD)"
        if ast.head is None:
            head_display = "(no HEAD)"
        console.print(Panel(
            f"[bold]HEAD:[/bold] [cyan]{head_display}[/cyan] {ast.head or ''}",
            title=str(repo.root),
            border_style="blue",
        ))

        refs_table = Table(title="Refs")
        refs_table.add_column("Ref", style="cyan")
        refs_table.add_column("Commit", style="yellow")
        for name, commit_id in sorted(ast.branches.items()):
            refs_table.add_row(f"heads/{name}", commit_id)
        for name, commit_id in sorted(ast.refs.items()):
            refs_table.add_row(name, commit_id)
        for remote_name, remote in sorted(ast.remotes.items()):
            for name, commit_id in sorted(remote.branches.items()):
                refs_table.add_row(f"remotes/{remote_name}/{name}", commit_id)
        console.print(refs_table)

        for remote_name, remote in sorted(ast.remotes.items()):
            console.print(f"Remote [cyan]{remote_name}[/cyan]: {remote.url}")

        commits_table = Table(title="Commits")
        commits_table.add_column("Commit", style="yellow")
        commits_table.add_column("Parents")
        commits_table.add_column("Message")
        commits_table.add_column("Changes")
        for commit_id, commit in sorted(ast.commits.items()):
            commits_table.add_row(
                commit_id,
                ", ".join(commit.parents),
                commit.message,
                _format_changes(commit.changes),
            )
        console.print(commits_table)

        if ast.index:
            console.print(f"[yellow]Staged:[/yellow] {_format_changes(ast.index)}")
        if ast.workdir:
            console.print(f"[yellow]Not staged:[/yellow] {_format_changes(ast.workdir)}")
        if not ast.index and not ast.workdir:
            console.print("[green]Working tree clean[/green]")

    except Exception as show_error:
        msg = f"Show failed: {show_error}"
        raise click.ClickException(msg) from show_error
