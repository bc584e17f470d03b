"""review command: run an incremental AI review on a pull request."""

from __future__ import annotations

import sys

import click
from rich.console import Console

from hunkwise_core.config import PROVIDERS, ConfigError, validate_config
from hunkwise_core.gh.pull_request import get_pull_requests, get_repo
from hunkwise_core.reviewer import run_review

console = Console()


@click.command("review")
@click.option("--repo", required=True, help="GitHub repository in owner/name format.")
@click.option(
    "--pr",
    "pr_number",
    type=int,
    default=None,
    help="Pull request number. Omit to list open PRs interactively.",
)
@click.option(
    "--provider",
    type=click.Choice(list(PROVIDERS)),
    default=None,
    help="AI model provider. Overrides config file.",
)
@click.option("--model", default=None, help="Model name. Defaults to the provider's default model.")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompts.")
@click.option(
    "--shadow",
    "-s",
    is_flag=True,
    help="Dry-run mode: print review comments without posting to GitHub.",
)
@click.option(
    "--full-review",
    "full_review",
    is_flag=True,
    help="Review the whole PR even if an earlier review state exists.",
)
@click.pass_context
def review_cmd(
    ctx,
    repo: str,
    pr_number: int | None,
    provider: str | None,
    model: str | None,
    yes: bool,
    shadow: bool,
    full_review: bool,
):
    """Review the commits pushed to a pull request since its last review.

    Packs the changed files into size-bounded chunks with surrounding code,
    asks the model for comments, keeps only those that land on lines in the
    diff, and posts them as one GitHub review.

    \b
    Required environment variables:
      GITHUB_TOKEN         GitHub personal access token (or use gh CLI)
      ANTHROPIC_API_KEY    Required when using --provider anthropic
      OPENAI_API_KEY       Required when using --provider openai
      OPENROUTER_API_KEY   Required when using --provider openrouter
    """
    from hunkwise_cli.auth import require_credentials

    config = dict(ctx.obj["config"])
    for key, value in (("provider", provider), ("model", model)):
        if value is not None:
            config[key] = value

    try:
        validate_config(config)
    except ConfigError as e:
        raise click.UsageError(str(e))
    require_credentials(config)

    this_repo = get_repo(repo, token=config["github_token"])

    if pr_number is None:
        prs = list(get_pull_requests(this_repo))
        if not prs:
            console.print("[yellow]No open pull requests found.[/yellow]")
            return
        console.print("\nOpen pull requests:")
        for pr in prs:
            console.print(f"  [bold]#{pr.number}[/bold]  {pr.title}")
        pr_number = click.prompt("\nEnter the pull request number", type=int)

    try:
        summary = run_review(
            repo=repo,
            pr_number=pr_number,
            config=config,
            state_store=ctx.obj.get("store"),
            auto_confirm=yes,
            shadow=shadow,
            force_full=full_review,
            repo_obj=this_repo,
        )
    except ValueError as e:
        raise click.ClickException(str(e))

    if summary is not None and summary.failed_chunks:
        console.print(f"[red]{len(summary.failed_chunks)} chunk(s) could not be reviewed.[/red]")
        sys.exit(1)
