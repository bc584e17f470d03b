"""Data records shared across the review pipeline.

Everything here is a plain dataclass so the pipeline stages can pass values
between each other without importing PyGithub or any provider SDK.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass(frozen=True)
class FileChange:
    """One file touched by the pull request, as reported by the diff source."""

    filename: str
    status: str  # "added" | "modified" | "removed" | "renamed"
    additions: int = 0
    deletions: int = 0
    # Absent for binary files and for diffs GitHub considers too large.
    patch: str | None = None
    previous_filename: str | None = None


@dataclass(frozen=True)
class LineRange:
    """A new-file line span taken from one hunk header."""

    start: int
    end: int


@dataclass(frozen=True)
class ContextWindow:
    start: int
    end: int


@dataclass
class DiffChunk:
    """A batch of rendered file payloads sent to the model in one request."""

    content: str
    file_changes: list[FileChange] = field(default_factory=list)
    repository_context: object | None = None

    @property
    def size(self) -> int:
        return len(self.content.encode("utf-8"))

    @property
    def filenames(self) -> list[str]:
        return [f.filename for f in self.file_changes]


@dataclass
class ReviewState:
    """The persisted marker of how far a pull request has been reviewed."""

    pr_number: int
    last_reviewed_commit_id: str
    reviewed_commit_ids: list[str] = field(default_factory=list)
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> dict:
        return {
            "pr_number": self.pr_number,
            "last_reviewed_commit_id": self.last_reviewed_commit_id,
            "reviewed_commit_ids": list(self.reviewed_commit_ids),
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict) -> ReviewState:
        """Build a state from a decoded dict; raises ValueError on missing keys."""
        try:
            return cls(
                pr_number=int(data["pr_number"]),
                last_reviewed_commit_id=str(data["last_reviewed_commit_id"]),
                reviewed_commit_ids=[str(c) for c in data.get("reviewed_commit_ids") or []],
                timestamp=str(data.get("timestamp") or ""),
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"Malformed review state: {e}") from e


@dataclass
class IncrementalDiff:
    new_commit_ids: list[str] = field(default_factory=list)
    changed_files: list[FileChange] = field(default_factory=list)
    is_incremental: bool = False
    base_commit_id: str | None = None


@dataclass(frozen=True)
class CandidateComment:
    """A comment exactly as the model proposed it, before validation against the diff."""

    file: str
    comment: str
    line: int | None = None
    start_line: int | None = None


@dataclass(frozen=True)
class ReviewComment:
    """A comment that survived reconciliation and can be posted."""

    path: str
    body: str
    comment_type: str  # "diff" | "file"
    line: int | None = None
    start_line: int | None = None


@dataclass(frozen=True)
class TokenUsage:
    input: int = 0
    output: int = 0

    @property
    def total(self) -> int:
        return self.input + self.output

    def __add__(self, other: TokenUsage) -> TokenUsage:
        if not isinstance(other, TokenUsage):
            return NotImplemented
        return TokenUsage(input=self.input + other.input, output=self.output + other.output)


@dataclass
class ProviderResponse:
    text: str
    usage: TokenUsage | None = None
    # Only some providers (OpenRouter) report a per-request cost.
    cost: float | None = None


@dataclass
class PRContext:
    """Pull request metadata injected into the prompt."""

    title: str = ""
    author: str = ""
    description: str = ""
    existing_comments: list[str] = field(default_factory=list)
