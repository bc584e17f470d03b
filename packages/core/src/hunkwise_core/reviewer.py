"""Core PR review orchestration."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone

from github import GithubException
from rich.console import Console

from hunkwise_core import incremental
from hunkwise_core.chunker import build_chunks
from hunkwise_core.gh.pull_request import (
    already_commented,
    format_file_comment,
    get_commit_ids,
    get_diff,
    get_existing_review_comments,
    get_file_content,
    get_incremental_files,
    get_pull,
    get_repo,
    post_review,
)
from hunkwise_core.models import FileChange, PRContext, ReviewComment, TokenUsage
from hunkwise_core.orchestrator import FailedChunk, run_chunks
from hunkwise_core.providers import get_provider
from hunkwise_core.reconcile import reconcile
from hunkwise_core.utils.context import gather_repository_context
from hunkwise_core.utils.patch import get_patch_line_content

console = Console()
logger = logging.getLogger(__name__)


@dataclass
class ReviewSummary:
    """Result returned by run_review.

    Decoupled from hunkwise_store so hunkwise_core has no dependency on the store layer.
    """

    repo: str
    pr_number: int
    head_commit_id: str
    is_incremental: bool = False
    reviewed_files: list[str] = field(default_factory=list)
    skipped_files: list[str] = field(default_factory=list)
    comments: list[ReviewComment] = field(default_factory=list)
    dropped: int = 0
    usage: TokenUsage = field(default_factory=TokenUsage)
    cost: float | None = None
    failed_chunks: list[FailedChunk] = field(default_factory=list)
    posted: bool = False
    reviewed_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def total_comments(self) -> int:
        return len(self.comments)


def _format_elapsed(elapsed_seconds: float) -> str:
    elapsed_min = elapsed_seconds / 60
    if elapsed_min < 1:
        return f"{int(elapsed_seconds)}s"
    return f"{elapsed_min:.1f} min"


def build_summary_body(
    headline: str,
    comments: list[ReviewComment],
    reviewed_files: list[str],
    skipped_files: list[str],
    usage: TokenUsage,
    elapsed_seconds: float,
    model: str,
    cost: float | None = None,
    failed_chunks: list[FailedChunk] | None = None,
) -> str:
    """Build the top-level review body posted as the GitHub review description."""
    failed_chunks = failed_chunks or []
    lines = ["## Review summary\n", f"_{headline}_\n"]

    if not comments:
        lines.append("> No issues found in the reviewed changes.\n")

    lines.append(
        f"**{len(reviewed_files)}** file(s) reviewed"
        + (f", **{len(skipped_files)}** skipped" if skipped_files else "")
        + f" · **{len(comments)}** comment(s) · reviewed in {_format_elapsed(elapsed_seconds)}\n"
    )

    per_file: dict[str, int] = {}
    for c in comments:
        per_file[c.path] = per_file.get(c.path, 0) + 1
    if per_file:
        lines.append("| File | Comments |")
        lines.append("|------|:--------:|")
        for path in sorted(per_file):
            lines.append(f"| `{path}` | {per_file[path]} |")
        lines.append("")

    usage_line = f"Model `{model}` · {usage.input:,} input / {usage.output:,} output tokens"
    if cost is not None:
        usage_line += f" · ${cost:.4f}"
    lines.append(f"<sub>{usage_line}</sub>")

    if failed_chunks:
        lines.append("\n**Could not review:**")
        for failed in failed_chunks:
            lines.append(f"- chunk {failed.index} ({', '.join(f'`{f}`' for f in failed.files)}): {failed.error}")

    return "\n".join(lines)


def drop_already_posted(
    comments: list[ReviewComment],
    existing_review_comments: list,
    existing_issue_bodies: list[str],
) -> list[ReviewComment]:
    """Remove comments identical to one already on the PR, including repeats within this run."""
    kept: list[ReviewComment] = []
    seen: set[tuple] = set()
    for c in comments:
        key = (c.path, c.line, c.body.strip())
        if key in seen:
            continue
        if c.comment_type == "diff" and already_commented(existing_review_comments, c.path, c.line, c.body):
            logger.debug("Skipping duplicate comment for %s:%s", c.path, c.line)
            continue
        if c.comment_type == "file" and format_file_comment(c).strip() in existing_issue_bodies:
            logger.debug("Skipping duplicate file comment for %s", c.path)
            continue
        seen.add(key)
        kept.append(c)
    return kept


def print_shadow_comments(comments: list[ReviewComment], patches: dict[str, str | None]) -> None:
    """Print review comments to the terminal without posting to GitHub."""
    if not comments:
        console.print("[yellow]Shadow mode: no comments generated.[/yellow]")
        return
    console.print(f"\n[bold]Shadow review: {len(comments)} comment(s) (not posted)[/bold]\n")
    for c in comments:
        if c.comment_type == "file":
            console.print(f"[bold cyan]{c.path}[/bold cyan]  [dim]file-level[/dim]")
        else:
            where = f"lines {c.start_line}-{c.line}" if c.start_line else f"line {c.line}"
            console.print(f"[bold cyan]{c.path}[/bold cyan]  [bold]{where}[/bold]")
            code = get_patch_line_content(patches.get(c.path), c.line).strip()
            if code:
                console.print(f"  [dim]{code}[/dim]")
        console.print(f"  {c.body}")
        console.print()


def _pr_context(pr, existing_review_comments: list) -> PRContext:
    return PRContext(
        title=pr.title or "",
        author=getattr(pr.user, "login", "") or "",
        description=pr.body or "",
        existing_comments=[c.body for c in existing_review_comments if c.body],
    )


def _load_prior_state(state_store, repo: str, pr_number: int):
    if state_store is None:
        return None
    try:
        return state_store.load(repo, pr_number)
    except Exception as e:
        logger.warning("Could not load review state for %s#%d; reviewing the full diff: %s", repo, pr_number, e)
        return None


def _save_state(state_store, repo: str, state) -> None:
    if state_store is None:
        return
    try:
        state_store.save(repo, state)
    except Exception as e:
        logger.warning("Could not save review state for %s#%d: %s", repo, state.pr_number, e)
        console.print(f"[yellow]Warning: review state was not saved ({type(e).__name__}: {e})[/yellow]")


def run_review(
    repo: str,
    pr_number: int,
    config: dict,
    state_store=None,
    auto_confirm: bool = False,
    shadow: bool = False,
    force_full: bool = False,
    repo_obj=None,
    provider=None,
) -> ReviewSummary | None:
    """Run the full PR review pipeline and return a ReviewSummary.

    Returns None on early exits that do no review work: draft skip, no new
    commits, nothing reviewable, or a declined confirmation. Persists the next
    review state through ``state_store`` after a clean, posted review.
    """
    this_repo = repo_obj if repo_obj is not None else get_repo(repo, token=config["github_token"])

    try:
        this_pr = get_pull(this_repo, pr_number)
    except GithubException:
        raise ValueError(f"PR #{pr_number} not found in {repo}.")

    if this_pr.draft and not config.get("review_draft_prs", False):
        console.print(
            "[yellow]Skipping draft PR. Set review_draft_prs: true in .hunkwise.yml to review drafts.[/yellow]"
        )
        return None

    head_sha = this_pr.head.sha
    prior_state = None if force_full else _load_prior_state(state_store, repo, pr_number)

    diff = incremental.resolve(
        get_commit_ids(this_pr),
        prior_state,
        get_full_diff=lambda: get_diff(this_pr),
        get_compare_diff=lambda base: get_incremental_files(this_repo, base, head_sha),
    )
    if not diff.new_commit_ids:
        console.print("[yellow]No new commits since the last review. Nothing to do.[/yellow]")
        return None

    diff_files: list[FileChange] = sorted(diff.changed_files, key=lambda f: f.filename)
    repository_context = gather_repository_context(this_repo, head_sha)
    chunks, skipped = build_chunks(
        diff_files,
        config,
        get_content=lambda path: get_file_content(this_repo, path, head_sha),
        repository_context=repository_context,
    )
    reviewed_changes = [f for chunk in chunks for f in chunk.file_changes]
    headline = incremental.describe(diff, len(reviewed_changes))
    console.print(f"[cyan]{headline}[/cyan]")

    if not chunks:
        console.print("[yellow]Every changed file is ignored or has no diff. Nothing to review.[/yellow]")
        return None

    provider = provider if provider is not None else get_provider(config)
    model = config.get("model") or provider.DEFAULT_MODEL
    existing_review_comments = get_existing_review_comments(this_pr)

    review_start = time.monotonic()
    with console.status(f"Reviewing {len(reviewed_changes)} file(s) in {len(chunks)} chunk(s)..."):
        result = run_chunks(chunks, provider, model, config, _pr_context(this_pr, existing_review_comments))
    elapsed = time.monotonic() - review_start

    reconciled = reconcile(result.candidates, reviewed_changes)
    existing_issue_bodies = [(c.body or "").strip() for c in this_pr.get_issue_comments()]
    comments = drop_already_posted(reconciled.comments, existing_review_comments, existing_issue_bodies)

    summary = ReviewSummary(
        repo=repo,
        pr_number=pr_number,
        head_commit_id=head_sha,
        is_incremental=diff.is_incremental,
        reviewed_files=[f.filename for f in reviewed_changes],
        skipped_files=skipped,
        comments=comments,
        dropped=len(reconciled.dropped),
        usage=result.usage,
        cost=result.cost,
        failed_chunks=result.failed_chunks,
    )

    for failed in result.failed_chunks:
        console.print(f"[red]Chunk {failed.index} failed ({', '.join(failed.files)}): {failed.error}[/red]")

    if shadow:
        print_shadow_comments(comments, {f.filename: f.patch for f in reviewed_changes})
        console.print(f"[bold]Shadow review complete. {len(comments)} comment(s) would be posted.[/bold]")
        return summary

    if not auto_confirm:
        answer = input(f"Post {len(comments)} comment(s) to PR #{pr_number}? (y/n): ").strip().lower()
        if answer != "y":
            return None

    body = build_summary_body(
        headline,
        comments,
        summary.reviewed_files,
        skipped,
        result.usage,
        elapsed,
        model,
        cost=result.cost,
        failed_chunks=result.failed_chunks,
    )
    post_review(this_pr, comments, body)
    summary.posted = True
    console.print(
        f"\n[green]Review posted: {len(comments)} comment(s) across {len(reviewed_changes)} file(s).[/green]"
    )

    if result.failed_chunks:
        console.print("[yellow]Review state not advanced: some chunks failed and will be retried next run.[/yellow]")
    else:
        _save_state(state_store, repo, incremental.next_state(pr_number, head_sha, diff))

    return summary
