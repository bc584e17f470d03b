"""Abstract review-state store interface.

Any storage backend (PR comment, SQLite, Postgres, S3) implements this
interface. The review pipeline only calls load() and save(), so backends are
swappable without touching hunkwise_core or the CLI commands.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hunkwise_core.models import ReviewState


class BaseStateStore(ABC):
    """Pluggable persistence for the per-PR review state.

    Implementations must be safe to call from CI environments where no
    interactive credentials are available: all auth happens via constructor
    arguments resolved at init time. Writes overwrite the previous state for
    the same (repo, pr_number); there is no locking, the last writer wins.
    """

    @abstractmethod
    def load(self, repo: str, pr_number: int) -> ReviewState | None:
        """Return the stored state for a PR, or None if it has never been reviewed."""

    @abstractmethod
    def save(self, repo: str, state: ReviewState) -> None:
        """Create or overwrite the state for ``state.pr_number``."""

    def close(self) -> None:
        """Release any resources held by the store (connections, file handles).

        Default is a no-op so callers can always call close() safely.
        """
