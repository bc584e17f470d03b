"""CommentStateStore: review state kept on the pull request itself.

Why a PR comment as the default store:
- Zero infra: no database, no cache between CI jobs, no extra secret.
- Works with the GITHUB_TOKEN that GitHub Actions already injects.
- The state travels with the PR and is visible to anyone who can read it.

Data format: a single issue comment on the PR whose body contains
``<!-- HUNKWISE_REVIEW_STATE:{json}-->``. The marker is an HTML comment, so
GitHub renders only the human-readable line in front of it.
"""

from __future__ import annotations

import json
import logging
import re

from hunkwise_core.models import ReviewState
from hunkwise_store.base import BaseStateStore

logger = logging.getLogger(__name__)

MARKER_PREFIX = "<!-- HUNKWISE_REVIEW_STATE:"
MARKER_SUFFIX = "-->"
_MARKER_RE = re.compile(re.escape(MARKER_PREFIX) + r"(.*?)" + re.escape(MARKER_SUFFIX), re.DOTALL)


def encode_state(state: ReviewState) -> str:
    """Render the full comment body for a state."""
    return (
        f"_hunkwise reviewed this pull request up to `{state.last_reviewed_commit_id[:7]}`._\n"
        f"{MARKER_PREFIX}{json.dumps(state.to_dict())}{MARKER_SUFFIX}"
    )


def decode_state(body: str | None) -> ReviewState | None:
    """Extract the state from a comment body; None if absent or malformed."""
    match = _MARKER_RE.search(body or "")
    if not match:
        return None
    try:
        return ReviewState.from_dict(json.loads(match.group(1)))
    except (json.JSONDecodeError, ValueError) as e:
        logger.warning("Ignoring malformed review state comment: %s", e)
        return None


class CommentStateStore(BaseStateStore):
    """Stores one marker-delimited JSON blob in a PR thread comment.

    The comment is created on the first save and edited in place afterwards.
    When ``author`` is given only comments by that login are considered, so
    a user pasting the marker cannot steer the incremental review.
    """

    def __init__(self, token: str | None = None, github=None, author: str | None = None):
        if github is None:
            from github import Github

            github = Github(token)
        self._gh = github
        self._author = author

    def _find_comment(self, repo: str, pr_number: int):
        issue = self._gh.get_repo(repo).get_issue(pr_number)
        for comment in issue.get_comments():
            if self._author and getattr(comment.user, "login", None) != self._author:
                continue
            if MARKER_PREFIX in (comment.body or ""):
                return issue, comment
        return issue, None

    def load(self, repo: str, pr_number: int) -> ReviewState | None:
        _, comment = self._find_comment(repo, pr_number)
        if comment is None:
            return None
        return decode_state(comment.body)

    def save(self, repo: str, state: ReviewState) -> None:
        issue, comment = self._find_comment(repo, state.pr_number)
        body = encode_state(state)
        if comment is None:
            issue.create_comment(body)
            logger.debug("Created review state comment on %s#%d", repo, state.pr_number)
        else:
            comment.edit(body)
            logger.debug("Updated review state comment on %s#%d", repo, state.pr_number)
