"""Language-aware context windows around the changed lines of a file.

A diff alone rarely tells the model enough: a three-line hunk inside a long
function hides the function's signature, its early returns and the block it
closes. For small files the whole file is sent. For larger files a window of
``context_radius`` lines around the touched ranges is cut, then nudged to
declaration and block boundaries so the model sees complete units of code.

Boundary detection is pluggable. Each language registers a BoundaryStrategy
(declaration patterns + block style) for its file extensions; unknown
extensions fall back to a generic strategy.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from hunkwise_core.models import ContextWindow, LineRange

logger = logging.getLogger(__name__)

DEFAULT_SMALL_FILE_THRESHOLD = 300
DEFAULT_CONTEXT_RADIUS = 150
DEFAULT_BOUNDARY_LOOKBACK = 50

# Lines kept after the line that closes the enclosing brace block.
BRACE_TRAILING_MARGIN = 1

BLOCK_BRACE = "brace"
BLOCK_INDENT = "indent"
BLOCK_NONE = "none"


@dataclass(frozen=True)
class BoundaryStrategy:
    name: str
    declaration_patterns: tuple[re.Pattern, ...] = field(default_factory=tuple)
    block_style: str = BLOCK_NONE

    def is_declaration(self, line: str) -> bool:
        return any(p.search(line) for p in self.declaration_patterns)


def _patterns(*sources: str) -> tuple[re.Pattern, ...]:
    return tuple(re.compile(s) for s in sources)


GENERIC = BoundaryStrategy(
    name="generic",
    declaration_patterns=_patterns(
        r"^\s*(?:export\s+)?(?:async\s+)?function\s+\w+",
        r"^\s*(?:export\s+)?class\s+\w+",
        r"^\s*def\s+\w+",
    ),
)

TYPESCRIPT = BoundaryStrategy(
    name="typescript",
    declaration_patterns=_patterns(
        r"^\s*(?:export\s+)?(?:default\s+)?(?:async\s+)?function\s*\*?\s*\w+",
        r"^\s*(?:export\s+)?(?:default\s+)?(?:abstract\s+)?class\s+\w+",
        r"^\s*(?:export\s+)?(?:interface|type|enum)\s+\w+",
        r"^\s*(?:export\s+)?(?:const|let|var)\s+\w+\s*(?::[^=]+)?=\s*(?:async\s+)?(?:\([^)]*\)|\w+)\s*=>",
        r"^\s*(?:public|private|protected|static|async|\s)*\w+\s*\([^)]*\)\s*(?::\s*[^{]+)?\{\s*$",
    ),
    block_style=BLOCK_BRACE,
)

PYTHON = BoundaryStrategy(
    name="python",
    declaration_patterns=_patterns(
        r"^\s*(?:async\s+)?def\s+\w+",
        r"^\s*class\s+\w+",
        r"^\s*@\w+",
    ),
    block_style=BLOCK_INDENT,
)

GO = BoundaryStrategy(
    name="go",
    declaration_patterns=_patterns(
        r"^func\s+(?:\([^)]*\)\s*)?\w+",
        r"^type\s+\w+\s+(?:struct|interface)",
    ),
    block_style=BLOCK_BRACE,
)

JVM = BoundaryStrategy(
    name="jvm",
    declaration_patterns=_patterns(
        r"^\s*(?:public|private|protected|internal|static|final|abstract|override|open|suspend|\s)*"
        r"(?:class|interface|enum|record|object|fun)\s+\w+",
        r"^\s*(?:public|private|protected|internal|static|final|abstract|synchronized|override|async|\s)+"
        r"[\w<>\[\],\s]+\s+\w+\s*\([^)]*\)\s*(?:throws\s+[\w.,\s]+)?\{?\s*$",
    ),
    block_style=BLOCK_BRACE,
)

C_FAMILY = BoundaryStrategy(
    name="c",
    declaration_patterns=_patterns(
        r"^(?:static\s+|inline\s+|extern\s+)*[A-Za-z_][\w\s\*:<>,]*\s\**\w+(?:::\w+)*\s*\([^;]*\)\s*(?:const\s*)?\{?\s*$",
        r"^\s*(?:class|struct|namespace|enum)\s+\w+",
    ),
    block_style=BLOCK_BRACE,
)

RUST = BoundaryStrategy(
    name="rust",
    declaration_patterns=_patterns(
        r"^\s*(?:pub(?:\([^)]*\))?\s+)?(?:async\s+)?(?:unsafe\s+)?fn\s+\w+",
        r"^\s*(?:pub(?:\([^)]*\))?\s+)?(?:struct|enum|trait|mod)\s+\w+",
        r"^\s*impl\b",
    ),
    block_style=BLOCK_BRACE,
)

RUBY = BoundaryStrategy(
    name="ruby",
    declaration_patterns=_patterns(r"^\s*def\s+[\w.?!]+", r"^\s*(?:class|module)\s+\w+"),
)

PHP = BoundaryStrategy(
    name="php",
    declaration_patterns=_patterns(
        r"^\s*(?:public|private|protected|static|abstract|final|\s)*function\s+\w+",
        r"^\s*(?:abstract\s+|final\s+)?(?:class|interface|trait)\s+\w+",
    ),
    block_style=BLOCK_BRACE,
)

SWIFT = BoundaryStrategy(
    name="swift",
    declaration_patterns=_patterns(
        r"^\s*(?:public|private|internal|fileprivate|open|static|override|\s)*func\s+\w+",
        r"^\s*(?:public|private|internal|final|\s)*(?:class|struct|enum|protocol|extension)\s+\w+",
    ),
    block_style=BLOCK_BRACE,
)

_REGISTRY: dict[str, BoundaryStrategy] = {}


def register_strategy(strategy: BoundaryStrategy, extensions: list[str] | tuple[str, ...]) -> None:
    """Register ``strategy`` for each extension (with or without the leading dot)."""
    for ext in extensions:
        ext = ext.lower()
        _REGISTRY[ext if ext.startswith(".") else f".{ext}"] = strategy


def strategy_for(filename: str) -> BoundaryStrategy:
    return _REGISTRY.get(Path(filename).suffix.lower(), GENERIC)


register_strategy(TYPESCRIPT, (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs"))
register_strategy(PYTHON, (".py", ".pyi"))
register_strategy(GO, (".go",))
register_strategy(JVM, (".java", ".kt", ".kts", ".scala", ".cs"))
register_strategy(C_FAMILY, (".c", ".h", ".cc", ".cpp", ".cxx", ".hpp", ".hh"))
register_strategy(RUST, (".rs",))
register_strategy(RUBY, (".rb",))
register_strategy(PHP, (".php",))
register_strategy(SWIFT, (".swift",))


def _indent_of(line: str) -> int:
    return len(line) - len(line.lstrip())


def compute_window(
    lines: list[str],
    touched_ranges: list[LineRange],
    strategy: BoundaryStrategy,
    context_radius: int = DEFAULT_CONTEXT_RADIUS,
    boundary_lookback: int = DEFAULT_BOUNDARY_LOOKBACK,
) -> ContextWindow:
    """Compute the 1-based inclusive window to show for the touched ranges."""
    total = len(lines)
    touched_start = min(total, max(1, min(r.start for r in touched_ranges)))
    touched_end = max(touched_start, min(total, max(r.end for r in touched_ranges)))

    raw_start = max(1, touched_start - context_radius)
    raw_end = min(total, touched_end + context_radius)

    start = raw_start
    for line_no in range(raw_start, max(1, raw_start - boundary_lookback) - 1, -1):
        if strategy.is_declaration(lines[line_no - 1]):
            start = line_no
            break

    end = raw_end
    scan_limit = min(total, raw_end + boundary_lookback)

    if strategy.block_style == BLOCK_BRACE:
        depth = 0
        for line_no in range(start, scan_limit + 1):
            text = lines[line_no - 1]
            depth += text.count("{") - text.count("}")
            if line_no > touched_end and depth <= 0 and "}" in text:
                end = min(total, line_no + BRACE_TRAILING_MARGIN)
                break

    elif strategy.block_style == BLOCK_INDENT:
        base_indent = None
        for line_no in range(start, scan_limit + 1):
            text = lines[line_no - 1]
            if not text.strip():
                continue
            if base_indent is None:
                base_indent = _indent_of(text)
                continue
            if line_no > touched_end and _indent_of(text) <= base_indent:
                end = line_no - 1
                break

    end = max(start, min(end, total))
    return ContextWindow(start=start, end=end)


def expand_context(
    full_text: str | None,
    touched_ranges: list[LineRange],
    filename: str,
    status: str = "modified",
    has_patch: bool = True,
    small_file_threshold: int = DEFAULT_SMALL_FILE_THRESHOLD,
    context_radius: int = DEFAULT_CONTEXT_RADIUS,
    boundary_lookback: int = DEFAULT_BOUNDARY_LOOKBACK,
) -> str | None:
    """Return the context to show for a changed file, or None when there is none.

    Small files come back whole and unmodified. Larger files come back as a
    window with every line prefixed by its absolute line number (``"N: text"``)
    so the model can cite new-file line numbers directly.
    """
    if status == "removed" or not has_patch or not full_text or not touched_ranges:
        return None

    lines = full_text.splitlines()
    if len(lines) <= small_file_threshold:
        return full_text

    strategy = strategy_for(filename)
    window = compute_window(lines, touched_ranges, strategy, context_radius, boundary_lookback)
    logger.debug(
        "Context window for %s (%s): lines %d-%d of %d",
        filename,
        strategy.name,
        window.start,
        window.end,
        len(lines),
    )
    return "\n".join(f"{n}: {lines[n - 1]}" for n in range(window.start, window.end + 1))
