"""Unified-diff helpers working in new-file line coordinates.

GitHub's review API anchors comments with ``line`` + ``side=RIGHT``, so every
function here maps patch text to line numbers in the new version of the file.
Only context (' ') and added ('+') lines exist on that side; removed lines
have no new-file line number and are never valid anchors.
"""

from __future__ import annotations

import re

from hunkwise_core.models import LineRange

_HUNK_HEADER_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")


def _walk(patch_text: str | None):
    """Yield ``(new_line_number, text)`` for each context or added line.

    Lines before the first hunk header, lines following a malformed header,
    '\\ No newline at end of file' markers and file headers are skipped. Inside
    a hunk only the first character counts, so "---i;" is a removal and
    "+++i;" an addition.
    """
    if not patch_text:
        return
    cursor: int | None = None
    for line in patch_text.splitlines():
        if line.startswith("@@"):
            match = _HUNK_HEADER_RE.match(line)
            cursor = int(match.group(3)) if match else None
        elif line.startswith("diff ") or line.startswith("index "):
            cursor = None
        elif cursor is None or line.startswith("\\"):
            pass
        elif line.startswith("+") or line.startswith(" "):
            yield cursor, line[1:]
            cursor += 1


def get_valid_lines(patch_text: str | None) -> set[int]:
    """Return the set of new-file line numbers visible in the patch."""
    return {line_no for line_no, _ in _walk(patch_text)}


def get_touched_ranges(patch_text: str | None) -> list[LineRange]:
    """Return one new-file LineRange per valid hunk header.

    A hunk with a zero new-side count (pure deletion) still yields a one-line
    range at its position so the surrounding code can be shown.
    """
    ranges: list[LineRange] = []
    if not patch_text:
        return ranges
    for line in patch_text.splitlines():
        match = _HUNK_HEADER_RE.match(line)
        if not match:
            continue
        start = int(match.group(3))
        count = int(match.group(4)) if match.group(4) is not None else 1
        start = max(start, 1)
        ranges.append(LineRange(start=start, end=max(start, start + count - 1)))
    return ranges


def get_patch_line_content(patch_text: str | None, target_line: int) -> str:
    """Return the source content of a specific new-file line number from a patch."""
    for line_no, text in _walk(patch_text):
        if line_no == target_line:
            return text
    return ""
