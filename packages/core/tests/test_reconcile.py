"""Tests for reconciling candidate comments against the diff."""

from hunkwise_core.models import CandidateComment, FileChange, ReviewComment
from hunkwise_core.reconcile import reconcile

PATCH = "@@ -1,2 +1,4 @@\n a\n+b\n+c\n d"  # valid lines {1, 2, 3, 4}
FILES = [
    FileChange(filename="src/a.py", status="modified", patch=PATCH),
    FileChange(filename="src/empty.py", status="modified", patch=None),
]


def test_diff_comment_on_valid_line_kept():
    result = reconcile([CandidateComment(file="src/a.py", line=2, comment="x")], FILES)
    assert result.comments == [ReviewComment(path="src/a.py", body="x", comment_type="diff", line=2)]
    assert result.dropped == []


def test_diff_comment_outside_diff_dropped():
    result = reconcile([CandidateComment(file="src/a.py", line=99, comment="x")], FILES)
    assert result.comments == []
    assert len(result.dropped) == 1
    assert "99" in result.dropped[0].reason


def test_file_level_comment_on_reviewed_file_kept():
    result = reconcile([CandidateComment(file="src/a.py", comment="general")], FILES)
    assert result.comments == [ReviewComment(path="src/a.py", body="general", comment_type="file")]


def test_unknown_file_dropped():
    result = reconcile(
        [
            CandidateComment(file="src/other.py", comment="general"),
            CandidateComment(file="src/other.py", line=1, comment="x"),
        ],
        FILES,
    )
    assert result.comments == []
    assert len(result.dropped) == 2


def test_file_without_valid_lines_rejects_diff_comments():
    result = reconcile([CandidateComment(file="src/empty.py", line=1, comment="x")], FILES)
    assert result.comments == []
    assert len(result.dropped) == 1


def test_file_without_valid_lines_accepts_file_comments():
    result = reconcile([CandidateComment(file="src/empty.py", comment="x")], FILES)
    assert len(result.comments) == 1


def test_range_comment_kept_when_both_ends_valid():
    result = reconcile([CandidateComment(file="src/a.py", start_line=2, line=4, comment="x")], FILES)
    assert result.comments[0].start_line == 2
    assert result.comments[0].line == 4


def test_range_end_decides_validity():
    result = reconcile([CandidateComment(file="src/a.py", start_line=2, line=40, comment="x")], FILES)
    assert result.comments == []


def test_invalid_range_start_degrades_to_single_line():
    result = reconcile(
        [
            CandidateComment(file="src/a.py", start_line=4, line=3, comment="reversed"),
            CandidateComment(file="src/a.py", start_line=-5, line=3, comment="outside"),
        ],
        FILES,
    )
    assert [c.start_line for c in result.comments] == [None, None]
    assert [c.line for c in result.comments] == [3, 3]


def test_start_line_alone_anchors_the_comment():
    result = reconcile([CandidateComment(file="src/a.py", start_line=3, comment="x")], FILES)
    assert result.comments == [ReviewComment(path="src/a.py", body="x", comment_type="diff", line=3)]


def test_explicit_valid_line_sets_override_patch():
    result = reconcile(
        [CandidateComment(file="src/a.py", line=50, comment="x")],
        FILES,
        valid_line_sets={"src/a.py": {50}},
    )
    assert len(result.comments) == 1


def test_every_kept_diff_comment_is_on_a_valid_line():
    candidates = [CandidateComment(file="src/a.py", line=n, comment=str(n)) for n in range(-2, 10)]
    result = reconcile(candidates, FILES)
    assert {c.line for c in result.comments} == {1, 2, 3, 4}
    assert len(result.comments) + len(result.dropped) == len(candidates)


def test_comment_after_increment_swap_kept():
    files = [FileChange(filename="src/loop.c", status="modified", patch="@@ -1,3 +1,3 @@\n a\n---i;\n+++i;\n b")]
    result = reconcile([CandidateComment(file="src/loop.c", line=3, comment="off by one?")], files)
    assert result.comments == [ReviewComment(path="src/loop.c", body="off by one?", comment_type="diff", line=3)]
    assert result.dropped == []
