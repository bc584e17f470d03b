"""Check candidate comments against the diff before anything is posted.

GitHub rejects a whole review when a single comment points at a line outside
the diff, and models do sometimes cite lines they were never shown. Every
candidate is checked here: diff-level comments must land on a line the diff
exposes, file-level comments must name a file that was reviewed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from hunkwise_core.models import CandidateComment, FileChange, ReviewComment
from hunkwise_core.utils.patch import get_valid_lines

logger = logging.getLogger(__name__)


@dataclass
class DroppedComment:
    candidate: CandidateComment
    reason: str


@dataclass
class ReconcileResult:
    comments: list[ReviewComment] = field(default_factory=list)
    dropped: list[DroppedComment] = field(default_factory=list)


def reconcile(
    candidates: list[CandidateComment],
    file_changes: list[FileChange],
    valid_line_sets: dict[str, set[int]] | None = None,
) -> ReconcileResult:
    """Keep the candidates that can be anchored; record why the rest were dropped."""
    reviewed = {f.filename for f in file_changes}
    if valid_line_sets is None:
        valid_line_sets = {f.filename: get_valid_lines(f.patch) for f in file_changes}

    result = ReconcileResult()

    def drop(candidate: CandidateComment, reason: str):
        logger.info("Dropping comment on %s (line %s): %s", candidate.file, candidate.line, reason)
        result.dropped.append(DroppedComment(candidate=candidate, reason=reason))

    for candidate in candidates:
        if candidate.file not in reviewed:
            drop(candidate, "file was not part of this review")
            continue

        if candidate.line is None and candidate.start_line is None:
            result.comments.append(ReviewComment(path=candidate.file, body=candidate.comment, comment_type="file"))
            continue

        anchor = candidate.line if candidate.line is not None else candidate.start_line
        valid = valid_line_sets.get(candidate.file) or set()
        if not valid:
            drop(candidate, "file has no commentable lines in the diff")
            continue
        if anchor not in valid:
            drop(candidate, f"line {anchor} is not part of the diff")
            continue

        start_line = candidate.start_line if candidate.line is not None else None
        if start_line is not None and (start_line >= anchor or start_line not in valid):
            logger.debug("Ignoring start_line %s for %s:%d", start_line, candidate.file, anchor)
            start_line = None

        result.comments.append(
            ReviewComment(
                path=candidate.file,
                body=candidate.comment,
                comment_type="diff",
                line=anchor,
                start_line=start_line,
            )
        )

    if result.dropped:
        logger.info("Dropped %d of %d candidate comment(s)", len(result.dropped), len(candidates))
    return result
