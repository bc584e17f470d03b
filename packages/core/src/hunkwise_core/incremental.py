"""Decide what changed since the last review of a pull request.

The persisted ReviewState remembers the head commit of the last successful
review. On the next run only the commits after it are reviewed, and the
changed files come from comparing that commit with the new head. If the
remembered commit is gone from the PR (force-push, rebase) the whole PR is
reviewed again.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from hunkwise_core.models import FileChange, IncrementalDiff, ReviewState

logger = logging.getLogger(__name__)


def resolve_commits(all_commit_ids: list[str], prior_state: ReviewState | None) -> tuple[list[str], str | None]:
    """Return ``(new_commit_ids, base_commit_id)``.

    ``base_commit_id`` is the last reviewed commit when the run can be
    incremental and None when the whole PR must be reviewed.
    """
    if prior_state is None:
        return list(all_commit_ids), None

    last = prior_state.last_reviewed_commit_id
    if last not in all_commit_ids:
        logger.warning(
            "Last reviewed commit %s is no longer part of PR #%d (history rewritten?); reviewing the full diff.",
            last[:7],
            prior_state.pr_number,
        )
        return list(all_commit_ids), None

    index = all_commit_ids.index(last)
    return list(all_commit_ids[index + 1 :]), last


def resolve(
    all_commit_ids: list[str],
    prior_state: ReviewState | None,
    get_full_diff: Callable[[], list[FileChange]],
    get_compare_diff: Callable[[str], list[FileChange]],
) -> IncrementalDiff:
    """Work out which commits and files need reviewing.

    No diff is fetched when there are no new commits.
    """
    new_commit_ids, base = resolve_commits(all_commit_ids, prior_state)

    if not new_commit_ids:
        logger.info("No new commits since %s", base[:7] if base else "the last review")
        return IncrementalDiff(new_commit_ids=[], changed_files=[], is_incremental=base is not None, base_commit_id=base)

    if base is None:
        return IncrementalDiff(new_commit_ids=new_commit_ids, changed_files=list(get_full_diff()))

    try:
        changed = list(get_compare_diff(base))
    except Exception as e:
        logger.warning("Could not compare %s with head (%s); falling back to a full review.", base[:7], e)
        return IncrementalDiff(new_commit_ids=list(all_commit_ids), changed_files=list(get_full_diff()))

    return IncrementalDiff(
        new_commit_ids=new_commit_ids,
        changed_files=changed,
        is_incremental=True,
        base_commit_id=base,
    )


def next_state(pr_number: int, head_commit_id: str, diff: IncrementalDiff) -> ReviewState:
    """Build the state to persist after a successful review of ``diff``."""
    return ReviewState(
        pr_number=pr_number,
        last_reviewed_commit_id=head_commit_id,
        reviewed_commit_ids=list(diff.new_commit_ids),
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


def describe(diff: IncrementalDiff, file_count: int | None = None) -> str:
    """One-line headline for the review summary and console output."""
    files = len(diff.changed_files) if file_count is None else file_count
    if not diff.new_commit_ids:
        return "No new commits since the last review."
    if diff.is_incremental:
        return (
            f"Incremental review: {len(diff.new_commit_ids)} new commit(s) since "
            f"`{diff.base_commit_id[:7]}`, {files} file(s) to review."
        )
    return f"Full review: {len(diff.new_commit_ids)} commit(s), {files} file(s) to review."
