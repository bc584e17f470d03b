"""SQLiteStateStore: local file-based review state.

Useful for local runs and for CI jobs that cache a database file between
runs. One row per (repo, pr_number), overwritten on every save.
"""

from __future__ import annotations

import json
import logging
import sqlite3

from hunkwise_core.models import ReviewState
from hunkwise_store.base import BaseStateStore

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS review_state (
    repo                     TEXT NOT NULL,
    pr_number                INTEGER NOT NULL,
    last_reviewed_commit_id  TEXT NOT NULL,
    reviewed_commit_ids      TEXT DEFAULT '[]',
    timestamp                TEXT,
    PRIMARY KEY (repo, pr_number)
);
"""


class SQLiteStateStore(BaseStateStore):
    """Stores review state in a local SQLite database file.

    The database path defaults to `.hunkwise.db` in the current working
    directory. Configure via .hunkwise.yml: `state_path: /path/to/hunkwise.db`.
    """

    def __init__(self, db_path: str = ".hunkwise.db"):
        self._conn = sqlite3.connect(db_path)
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(_SCHEMA)
        self._conn.commit()

    def load(self, repo: str, pr_number: int) -> ReviewState | None:
        row = self._conn.execute(
            "SELECT * FROM review_state WHERE repo=? AND pr_number=?",
            (repo, pr_number),
        ).fetchone()
        if row is None:
            return None
        return ReviewState(
            pr_number=row["pr_number"],
            last_reviewed_commit_id=row["last_reviewed_commit_id"],
            reviewed_commit_ids=json.loads(row["reviewed_commit_ids"] or "[]"),
            timestamp=row["timestamp"] or "",
        )

    def save(self, repo: str, state: ReviewState) -> None:
        self._conn.execute(
            """
            INSERT INTO review_state
              (repo, pr_number, last_reviewed_commit_id, reviewed_commit_ids, timestamp)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT (repo, pr_number) DO UPDATE SET
              last_reviewed_commit_id = excluded.last_reviewed_commit_id,
              reviewed_commit_ids     = excluded.reviewed_commit_ids,
              timestamp               = excluded.timestamp
            """,
            (
                repo,
                state.pr_number,
                state.last_reviewed_commit_id,
                json.dumps(state.reviewed_commit_ids),
                state.timestamp,
            ),
        )
        self._conn.commit()
        logger.debug("Saved review state for %s#%d at %s", repo, state.pr_number, state.last_reviewed_commit_id[:7])

    def close(self) -> None:
        self._conn.close()
