"""Tests for hunkwise_store implementations."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

from hunkwise_core.models import ReviewState
from hunkwise_store.comment import MARKER_PREFIX, CommentStateStore, decode_state, encode_state
from hunkwise_store.noop import NoOpStateStore
from hunkwise_store.sqlite import SQLiteStateStore

HEAD = "c" * 40


def _make_state(pr_number=1, last=HEAD, reviewed=None):
    return ReviewState(
        pr_number=pr_number,
        last_reviewed_commit_id=last,
        reviewed_commit_ids=reviewed if reviewed is not None else ["a" * 40, last],
        timestamp="2026-03-01T12:00:00+00:00",
    )


# ---------------------------------------------------------------------------
# NoOpStateStore
# ---------------------------------------------------------------------------


class TestNoOpStateStore:
    def test_save_does_not_raise(self):
        NoOpStateStore().save("owner/repo", _make_state())

    def test_load_always_none(self):
        store = NoOpStateStore()
        store.save("owner/repo", _make_state())
        assert store.load("owner/repo", 1) is None


# ---------------------------------------------------------------------------
# SQLiteStateStore
# ---------------------------------------------------------------------------


class TestSQLiteStateStore:
    def test_save_and_load(self, tmp_path):
        store = SQLiteStateStore(db_path=str(tmp_path / "state.db"))
        state = _make_state()
        store.save("owner/repo", state)
        assert store.load("owner/repo", 1) == state
        store.close()

    def test_unknown_pr_returns_none(self, tmp_path):
        store = SQLiteStateStore(db_path=str(tmp_path / "state.db"))
        assert store.load("owner/repo", 99) is None
        store.close()

    def test_save_overwrites(self, tmp_path):
        store = SQLiteStateStore(db_path=str(tmp_path / "state.db"))
        store.save("owner/repo", _make_state(last="1" * 40, reviewed=["1" * 40]))
        store.save("owner/repo", _make_state(last="2" * 40, reviewed=["2" * 40]))

        loaded = store.load("owner/repo", 1)
        assert loaded.last_reviewed_commit_id == "2" * 40
        assert loaded.reviewed_commit_ids == ["2" * 40]
        count = store._conn.execute("SELECT COUNT(*) FROM review_state").fetchone()[0]
        assert count == 1
        store.close()

    def test_repos_and_prs_are_isolated(self, tmp_path):
        store = SQLiteStateStore(db_path=str(tmp_path / "state.db"))
        store.save("owner/repo-a", _make_state(pr_number=1, last="1" * 40))
        store.save("owner/repo-b", _make_state(pr_number=1, last="2" * 40))
        store.save("owner/repo-a", _make_state(pr_number=2, last="3" * 40))

        assert store.load("owner/repo-a", 1).last_reviewed_commit_id == "1" * 40
        assert store.load("owner/repo-b", 1).last_reviewed_commit_id == "2" * 40
        assert store.load("owner/repo-a", 2).last_reviewed_commit_id == "3" * 40
        store.close()

    def test_persists_across_connections(self, tmp_path):
        db_path = str(tmp_path / "state.db")
        first = SQLiteStateStore(db_path=db_path)
        first.save("owner/repo", _make_state())
        first.close()

        second = SQLiteStateStore(db_path=db_path)
        assert second.load("owner/repo", 1).last_reviewed_commit_id == HEAD
        second.close()


# ---------------------------------------------------------------------------
# Comment marker encoding
# ---------------------------------------------------------------------------


class TestStateMarker:
    def test_encoded_body_is_decodable(self):
        state = _make_state()
        body = encode_state(state)
        assert body.startswith("_hunkwise reviewed this pull request up to `ccccccc`._")
        assert decode_state(body) == state

    def test_decode_ignores_surrounding_text(self):
        payload = json.dumps(_make_state().to_dict())
        body = f"Some notes\n{MARKER_PREFIX}{payload}-->\nmore text"
        assert decode_state(body).last_reviewed_commit_id == HEAD

    def test_missing_marker(self):
        assert decode_state("Looks good to me!") is None
        assert decode_state(None) is None

    def test_malformed_json(self):
        assert decode_state(f"{MARKER_PREFIX}{{not json-->") is None

    def test_missing_fields(self):
        assert decode_state(f'{MARKER_PREFIX}{{"pr_number": 1}}-->') is None


# ---------------------------------------------------------------------------
# CommentStateStore
# ---------------------------------------------------------------------------


def _comment(body, login="hunkwise-bot"):
    c = MagicMock()
    c.body = body
    c.user.login = login
    return c


@pytest.fixture
def github():
    gh = MagicMock()
    issue = gh.get_repo.return_value.get_issue.return_value
    issue.get_comments.return_value = []
    return gh


def _issue(github):
    return github.get_repo.return_value.get_issue.return_value


class TestCommentStateStore:
    def test_load_without_comment(self, github):
        store = CommentStateStore(github=github)
        assert store.load("owner/repo", 5) is None
        github.get_repo.assert_called_once_with("owner/repo")
        github.get_repo.return_value.get_issue.assert_called_once_with(5)

    def test_load_finds_marker_comment(self, github):
        state = _make_state(pr_number=5)
        _issue(github).get_comments.return_value = [_comment("LGTM", "alice"), _comment(encode_state(state))]
        assert CommentStateStore(github=github).load("owner/repo", 5) == state

    def test_first_save_creates_comment(self, github):
        state = _make_state(pr_number=5)
        CommentStateStore(github=github).save("owner/repo", state)
        _issue(github).create_comment.assert_called_once_with(encode_state(state))

    def test_later_save_edits_comment(self, github):
        existing = _comment(encode_state(_make_state(pr_number=5, last="1" * 40)))
        _issue(github).get_comments.return_value = [existing]
        state = _make_state(pr_number=5)

        CommentStateStore(github=github).save("owner/repo", state)

        existing.edit.assert_called_once_with(encode_state(state))
        _issue(github).create_comment.assert_not_called()

    def test_author_filter(self, github):
        forged = _comment(encode_state(_make_state(pr_number=5, last="f" * 40)), login="mallory")
        _issue(github).get_comments.return_value = [forged]

        store = CommentStateStore(github=github, author="hunkwise-bot")
        assert store.load("owner/repo", 5) is None

    def test_malformed_marker_loads_none(self, github):
        _issue(github).get_comments.return_value = [_comment(f"{MARKER_PREFIX}garbage-->")]
        assert CommentStateStore(github=github).load("owner/repo", 5) is None
