"""Pack rendered per-file payloads into size-bounded chunks.

One chunk becomes one model request. A file's payload (header, context
window, diff) is never split, so a single file larger than the budget gets a
chunk of its own rather than being truncated.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from hunkwise_core.expander import expand_context
from hunkwise_core.models import DiffChunk, FileChange
from hunkwise_core.utils.code import is_code_file, is_excluded
from hunkwise_core.utils.patch import get_touched_ranges

logger = logging.getLogger(__name__)

DEFAULT_MAX_CHUNK_BYTES = 60_000


@dataclass
class FilePayload:
    file: FileChange
    content: str

    @property
    def size(self) -> int:
        return len(self.content.encode("utf-8"))


def render_file_payload(file: FileChange, context: str | None = None) -> str:
    """Render one file's section of a chunk: header, optional context, then the diff."""
    parts = [f"\n--- File: {file.filename} ({file.status})\n"]
    if file.previous_filename:
        parts.append(f"Renamed from: {file.previous_filename}\n")
    if context:
        parts.append(f"\n### Surrounding code (new-file line numbers):\n```\n{context}\n```\n")
    parts.append(f"\n### Diff:\n{file.patch or ''}\n")
    return "".join(parts)


def plan_chunks(
    payloads: list[FilePayload],
    max_bytes: int = DEFAULT_MAX_CHUNK_BYTES,
    repository_context=None,
) -> list[DiffChunk]:
    """Greedily pack payloads, smallest first, into chunks of at most ``max_bytes``.

    The ordering is stable, so equal-sized payloads keep their input order.
    """
    chunks: list[DiffChunk] = []
    current: list[FilePayload] = []
    current_size = 0

    def close():
        chunks.append(
            DiffChunk(
                content="".join(p.content for p in current),
                file_changes=[p.file for p in current],
                repository_context=repository_context,
            )
        )

    for payload in sorted(payloads, key=lambda p: p.size):
        size = payload.size
        if size > max_bytes:
            logger.warning(
                "%s is %d bytes, over the %d byte chunk budget; sending it on its own.",
                payload.file.filename,
                size,
                max_bytes,
            )
        if current and current_size + size > max_bytes:
            close()
            current, current_size = [], 0
        current.append(payload)
        current_size += size

    if current:
        close()
    return chunks


def build_chunks(
    files: list[FileChange],
    config: dict,
    get_content: Callable[[str], str | None],
    repository_context=None,
) -> tuple[list[DiffChunk], list[str]]:
    """Filter, expand and pack the changed files.

    Returns ``(chunks, skipped_filenames)``. ``get_content`` fetches a file's
    text at the PR head; when it returns None the file is sent diff-only.
    """
    ignore_patterns = config.get("ignore_patterns") or []
    payloads: list[FilePayload] = []
    skipped: list[str] = []

    for file in files:
        if is_excluded(file.filename, ignore_patterns) or not is_code_file(file.filename):
            logger.debug("Skipping ignored file %s", file.filename)
            skipped.append(file.filename)
            continue
        if not file.patch:
            # Binary or oversized on GitHub's side: nothing to anchor comments to.
            logger.debug("Skipping %s: no patch available", file.filename)
            skipped.append(file.filename)
            continue

        context = None
        if file.status != "removed":
            full_text = get_content(file.filename)
            if full_text is None:
                logger.info("No content for %s; reviewing the diff alone.", file.filename)
            context = expand_context(
                full_text,
                get_touched_ranges(file.patch),
                file.filename,
                status=file.status,
                has_patch=bool(file.patch),
                small_file_threshold=config.get("small_file_threshold", 300),
                context_radius=config.get("context_radius", 150),
                boundary_lookback=config.get("boundary_lookback", 50),
            )

        payloads.append(FilePayload(file=file, content=render_file_payload(file, context)))

    max_bytes = config.get("max_chunk_bytes", DEFAULT_MAX_CHUNK_BYTES)
    chunks = plan_chunks(payloads, max_bytes, repository_context)
    logger.info("Planned %d chunk(s) for %d file(s)", len(chunks), len(payloads))
    return chunks, skipped
