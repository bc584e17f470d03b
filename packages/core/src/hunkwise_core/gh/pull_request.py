from __future__ import annotations

import logging

from github import Github, GithubException

from hunkwise_core.models import FileChange, ReviewComment

logger = logging.getLogger(__name__)


def get_repo(repo_name: str, token: str):
    return Github(token).get_repo(repo_name)


def get_pull(repo, pr_number: int):
    return repo.get_pull(pr_number)


def get_pull_requests(repo, state: str = "open"):
    return repo.get_pulls(state=state)


def to_file_change(file) -> FileChange:
    """Convert a PyGithub File into a FileChange."""
    return FileChange(
        filename=file.filename,
        status=file.status,
        additions=file.additions or 0,
        deletions=file.deletions or 0,
        patch=file.patch,
        previous_filename=getattr(file, "previous_filename", None),
    )


def get_diff(pr) -> list[FileChange]:
    return [to_file_change(f) for f in pr.get_files()]


def get_incremental_files(repo, base_sha: str, head_sha: str) -> list[FileChange]:
    """Return files changed between two commits using GitHub's compare API."""
    comparison = repo.compare(base_sha, head_sha)
    return [to_file_change(f) for f in comparison.files]


def get_commit_ids(pr) -> list[str]:
    """Return the PR's commit SHAs, oldest first."""
    return [commit.sha for commit in pr.get_commits()]


def get_file_content(repo, path: str, ref: str) -> str | None:
    """Return a file's text at ``ref``, or None if it cannot be fetched."""
    try:
        contents = repo.get_contents(path, ref=ref)
    except GithubException as e:
        logger.warning("Could not fetch %s at %s: %s", path, ref[:7], e)
        return None
    if isinstance(contents, list):
        # path is a directory
        return None
    return contents.decoded_content.decode("utf-8", errors="replace")


def get_existing_review_comments(pr) -> list:
    return list(pr.get_review_comments())


def already_commented(existing_comments, file_path: str, file_line: int | None, comment_text: str) -> bool:
    """Check whether an identical comment already exists on the PR for this file+line."""
    text = comment_text.strip()
    for c in existing_comments:
        # c.line is None for comments whose line no longer exists in the current diff
        # (e.g. after a force-push). Fall back to original_line in that case.
        comment_line = c.line if c.line is not None else getattr(c, "original_line", None)
        if c.path == file_path and comment_line == file_line and text in (c.body or "").strip():
            return True
    return False


def to_review_payload(comment: ReviewComment) -> dict:
    """Shape a diff comment for ``PullRequest.create_review(comments=...)``."""
    payload = {"path": comment.path, "line": comment.line, "side": "RIGHT", "body": comment.body}
    if comment.start_line is not None:
        payload["start_line"] = comment.start_line
        payload["start_side"] = "RIGHT"
    return payload


def format_file_comment(comment: ReviewComment) -> str:
    return f"**`{comment.path}`**\n\n{comment.body}"


def post_review(pr, comments: list[ReviewComment], body: str) -> None:
    """Post diff comments as one review and file-level comments on the PR thread."""
    diff_comments = [to_review_payload(c) for c in comments if c.comment_type == "diff"]
    if diff_comments:
        pr.create_review(body=body, event="COMMENT", comments=diff_comments)
    else:
        pr.create_review(body=body, event="COMMENT")
    for comment in comments:
        if comment.comment_type == "file":
            pr.create_issue_comment(format_file_comment(comment))
