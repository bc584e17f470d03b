"""state command: show how far a pull request has been reviewed."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

console = Console()


@click.command("state")
@click.option("--repo", required=True, help="GitHub repository (owner/name).")
@click.option("--pr", "pr_number", type=int, required=True, help="Pull request number.")
@click.pass_context
def state_cmd(ctx, repo: str, pr_number: int):
    """Show the stored review state for a pull request.

    Reads from the configured state store (PR comment or SQLite).
    """
    from hunkwise_store.noop import NoOpStateStore

    store = ctx.obj.get("store") if ctx.obj else None
    if store is None or isinstance(store, NoOpStateStore):
        raise click.UsageError(
            "No state store configured. Set 'state_store: comment' or 'state_store: sqlite' in .hunkwise.yml "
            "and make sure a GitHub token is available."
        )

    state = store.load(repo, pr_number)
    if state is None:
        console.print(f"[yellow]PR #{pr_number} has not been reviewed yet.[/yellow]")
        return

    table = Table(title=f"Review state for {repo}#{pr_number}", show_header=True, header_style="bold cyan")
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Last reviewed commit", state.last_reviewed_commit_id)
    table.add_row("Reviewed at", state.timestamp[:19].replace("T", " "))
    table.add_row("Commits in last review", str(len(state.reviewed_commit_ids)))
    for commit_id in state.reviewed_commit_ids:
        table.add_row("", commit_id[:7])

    console.print(table)
