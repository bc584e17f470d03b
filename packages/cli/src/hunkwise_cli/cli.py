"""CLI entry point for hunkwise.

Commands:
  review   run an incremental AI review on a pull request
  state    show how far a pull request has been reviewed
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from hunkwise_cli.commands.review import review_cmd
from hunkwise_cli.commands.state import state_cmd

console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _build_store(config: dict):
    """Instantiate the configured review-state store from .hunkwise.yml settings.

    Store selection:
      state_store: comment → CommentStateStore (default; requires a GitHub token)
      state_store: sqlite  → SQLiteStateStore (state_path or .hunkwise.db)
      state_store: noop    → NoOpStateStore (every run is a full review)

    This factory lives in cli.py so neither hunkwise_core nor hunkwise_store
    know about the CLI config format.
    """
    from hunkwise_store.noop import NoOpStateStore

    store_type = config.get("state_store", "comment")

    if store_type == "comment":
        from hunkwise_store.comment import CommentStateStore

        token = config.get("github_token")
        if not token:
            console.print(
                "[yellow]The comment state store needs a GitHub token. Falling back to full reviews.[/yellow]"
            )
            return NoOpStateStore()
        return CommentStateStore(token=token, author=config.get("state_author"))

    if store_type == "sqlite":
        from hunkwise_store.sqlite import SQLiteStateStore

        return SQLiteStateStore(db_path=config.get("state_path", ".hunkwise.db"))

    return NoOpStateStore()


@click.group()
@click.version_option(
    version=importlib.metadata.version("hunkwise"),
    prog_name="hunkwise",
)
@click.option(
    "--config",
    "config_path",
    default=".hunkwise.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="HUNKWISE_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Incremental, diff-anchored AI review for GitHub pull requests."""
    from hunkwise_core.config import load_config
    from hunkwise_cli.auth import resolve_github_token

    _configure_logging(verbose)
    ctx.ensure_object(dict)

    config = load_config(config_path)

    # Resolve token early so all subcommands share the same resolution.
    token = resolve_github_token()
    if token:
        config["github_token"] = token

    store = _build_store(config)
    ctx.obj["store"] = store
    ctx.obj["config"] = config
    ctx.obj["config_path"] = config_path
    ctx.call_on_close(store.close)


main.add_command(review_cmd)
main.add_command(state_cmd)
