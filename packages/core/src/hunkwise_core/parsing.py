"""Turn a model's free-text reply into candidate comments.

Models are asked for a bare JSON array but routinely wrap it in markdown
fences, add a sentence before or after it, or emit something that is almost
JSON. Parsing is therefore a chain of progressively looser attempts; each
one runs only if the previous did not produce a list. ``parse_response``
never raises: the worst case is an empty list and a logged warning.
"""

from __future__ import annotations

import json
import logging
import re

from hunkwise_core.models import CandidateComment

logger = logging.getLogger(__name__)

_DECODER = json.JSONDecoder()

_PREVIEW_CHARS = 200


def _strip_fences(raw: str) -> str:
    # Only the outer ```json ... ``` fence; backticks inside comment strings stay.
    cleaned = re.sub(r"^```(?:json)?\s*", "", raw.strip())
    return re.sub(r"\s*```$", "", cleaned.strip())


def _load_list(text: str) -> list | None:
    try:
        value = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return None
    return value if isinstance(value, list) else None


def _bracketed(raw: str) -> str | None:
    start = raw.find("[")
    end = raw.rfind("]")
    if start == -1 or end <= start:
        return None
    return raw[start : end + 1]


def _fragments(raw: str) -> list | None:
    """Decode every standalone JSON object that names a file.

    Each "{" is tried as the start of an object; a successful decode skips past
    the whole object, so braces quoted inside a comment do not split it.
    """
    found = []
    index = raw.find("{")
    while index != -1:
        try:
            value, end = _DECODER.raw_decode(raw, index)
        except json.JSONDecodeError:
            index = raw.find("{", index + 1)
            continue
        if isinstance(value, dict) and "file" in value:
            found.append(value)
            index = raw.find("{", end)
        else:
            # A wrapper object; look inside it.
            index = raw.find("{", index + 1)
    return found or None


def _optional_int(value) -> tuple[bool, int | None]:
    if value is None:
        return True, None
    if isinstance(value, bool) or not isinstance(value, int):
        return False, None
    return True, value


def to_candidate(item) -> CandidateComment | None:
    """Validate one decoded object; return None when it is not a usable comment."""
    if not isinstance(item, dict):
        return None
    file = item.get("file")
    comment = item.get("comment")
    if not isinstance(file, str) or not file.strip():
        return None
    if not isinstance(comment, str) or not comment.strip():
        return None
    ok_line, line = _optional_int(item.get("line"))
    ok_start, start_line = _optional_int(item.get("start_line"))
    if not (ok_line and ok_start):
        return None
    return CandidateComment(file=file.strip(), comment=comment.strip(), line=line, start_line=start_line)


def parse_response(raw: str | None) -> list[CandidateComment]:
    """Parse a model reply into candidate comments, tolerating malformed output."""
    if not raw or not raw.strip():
        logger.warning("Model returned an empty response.")
        return []

    items = _load_list(_strip_fences(raw))
    if items is None:
        bracketed = _bracketed(raw)
        if bracketed is not None:
            items = _load_list(bracketed)
            if items is not None:
                logger.debug("Parsed response via bracket extraction.")
    if items is None:
        items = _fragments(raw)
        if items is not None:
            logger.debug("Parsed %d comment object(s) via fragment extraction.", len(items))
    if items is None:
        logger.warning("Could not parse model response as JSON: %s", raw[:_PREVIEW_CHARS])
        return []

    candidates = []
    for item in items:
        candidate = to_candidate(item)
        if candidate is None:
            logger.warning("Dropping invalid comment object: %s", str(item)[:_PREVIEW_CHARS])
            continue
        candidates.append(candidate)
    return candidates
