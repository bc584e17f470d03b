"""No-op store: every run is a full review.

Using a NoOpStateStore rather than None lets the CLI always hand a store to
run_review without conditional checks.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from hunkwise_store.base import BaseStateStore

if TYPE_CHECKING:
    from hunkwise_core.models import ReviewState


class NoOpStateStore(BaseStateStore):
    """Remembers nothing, zero configuration required."""

    def load(self, repo: str, pr_number: int) -> ReviewState | None:
        return None

    def save(self, repo: str, state: ReviewState) -> None:
        pass  # intentional no-op
