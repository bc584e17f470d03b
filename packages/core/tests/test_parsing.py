"""Tests for model response parsing."""

import json

from hunkwise_core.models import CandidateComment
from hunkwise_core.parsing import parse_response, to_candidate

VALID = json.dumps([{"file": "a.ts", "line": 5, "comment": "x"}])


class TestParseResponse:
    def test_fenced_json(self):
        raw = '```json\n[{"file":"a.ts","line":5,"comment":"x"}]\n```'
        assert parse_response(raw) == [CandidateComment(file="a.ts", line=5, comment="x")]

    def test_bare_json(self):
        assert parse_response(VALID) == [CandidateComment(file="a.ts", line=5, comment="x")]

    def test_plain_fence_without_language(self):
        assert len(parse_response(f"```\n{VALID}\n```")) == 1

    def test_prose_around_array(self):
        raw = 'Here you go: [{"file":"a.ts","comment":"ok"}] thanks'
        assert parse_response(raw) == [CandidateComment(file="a.ts", comment="ok")]

    def test_fragment_extraction_when_array_is_broken(self):
        raw = 'Findings:\n{"file": "a.py", "line": 3, "comment": "one"},\n{"file": "b.py", "comment": "two"}\n(truncated'
        result = parse_response(raw)
        assert result == [
            CandidateComment(file="a.py", line=3, comment="one"),
            CandidateComment(file="b.py", comment="two"),
        ]

    def test_unparseable_fragments_discarded(self):
        raw = '{"file": "a.py", "comment": "ok"} and {"file": broken}'
        assert parse_response(raw) == [CandidateComment(file="a.py", comment="ok")]

    def test_fragment_quoting_code_with_braces(self):
        raw = (
            'Notes:\n{"file": "a.ts", "line": 4, "comment": "Wrap it: `if (x) { run(); }`"}\n'
            '{"file": "b.ts", "comment": "fine"} (cut off'
        )
        assert parse_response(raw) == [
            CandidateComment(file="a.ts", line=4, comment="Wrap it: `if (x) { run(); }`"),
            CandidateComment(file="b.ts", comment="fine"),
        ]

    def test_fragments_inside_wrapper_object(self):
        raw = '{"review": {"file": "a.py", "comment": "ok"}} hope this helps'
        assert parse_response(raw) == [CandidateComment(file="a.py", comment="ok")]

    def test_garbage_returns_empty(self):
        assert parse_response("I could not find any problems, great job!") == []

    def test_empty_input_returns_empty(self):
        assert parse_response("") == []
        assert parse_response(None) == []

    def test_empty_array(self):
        assert parse_response("[]") == []

    def test_object_instead_of_array_is_not_a_list(self):
        # A bare object is no list, so the fragment step picks it up.
        assert parse_response('{"file": "a.py", "comment": "ok"}') == [CandidateComment(file="a.py", comment="ok")]

    def test_preserves_code_blocks_inside_comments(self):
        payload = json.dumps([{"file": "a.py", "line": 5, "comment": "Use this:\n```python\nfoo()\n```"}])
        result = parse_response(f"```json\n{payload}\n```")
        assert "```python" in result[0].comment

    def test_invalid_objects_dropped_individually(self):
        raw = json.dumps(
            [
                {"file": "a.py", "line": 1, "comment": "good"},
                {"file": "", "comment": "no file"},
                {"file": "a.py"},
                {"file": "a.py", "line": "7", "comment": "string line"},
                {"file": "a.py", "line": True, "comment": "bool line"},
                "not an object",
                {"file": "b.py", "start_line": 2, "line": 4, "comment": "range"},
            ]
        )
        assert parse_response(raw) == [
            CandidateComment(file="a.py", line=1, comment="good"),
            CandidateComment(file="b.py", line=4, start_line=2, comment="range"),
        ]

    def test_null_line_means_file_level(self):
        raw = json.dumps([{"file": "a.py", "line": None, "comment": "general"}])
        assert parse_response(raw) == [CandidateComment(file="a.py", comment="general")]

    def test_output_is_deterministic(self):
        raw = 'noise [{"file":"a.ts","line":1,"comment":"x"}] noise'
        assert parse_response(raw) == parse_response(raw)


class TestToCandidate:
    def test_strips_whitespace(self):
        assert to_candidate({"file": " a.py ", "comment": " hi "}) == CandidateComment(file="a.py", comment="hi")

    def test_rejects_non_dict(self):
        assert to_candidate(["a.py"]) is None
