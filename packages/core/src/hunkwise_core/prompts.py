"""Prompt construction for a single chunk review."""

from __future__ import annotations

import re
from datetime import datetime, timezone

from hunkwise_core.config import load_review_prompt
from hunkwise_core.models import DiffChunk, PRContext
from hunkwise_core.utils.context import build_context_section

_CATEGORY_KEYWORDS = {
    "security": ("security", "vulnerability", "injection", "authentication", "authorization", "sanitize", "validate"),
    "performance": ("performance", "bottleneck", "optimization", "memory", "cache", "efficiency"),
    "architecture": ("architecture", "design pattern", "coupling", "cohesion", "separation", "abstraction"),
    "code quality": ("code quality", "maintainability", "readability", "naming", "complexity", "duplication"),
}

_ADDRESSED_PATTERNS = [
    re.compile(r"already implemented", re.IGNORECASE),
    re.compile(r"already exists", re.IGNORECASE),
    re.compile(r"(?:validation|error handling|optimization).*already", re.IGNORECASE),
]

_RECENT = 5


def _preview(text: str, limit: int) -> str:
    text = text.strip()
    return text if len(text) <= limit else text[:limit] + "..."


def categorize_comments(comments: list[str]) -> dict:
    """Split earlier review comments into addressed, per-category and recent buckets."""
    categories: dict[str, list[str]] = {name: [] for name in _CATEGORY_KEYWORDS}
    categories["other"] = []
    addressed: list[str] = []

    for comment in comments:
        if any(p.search(comment) for p in _ADDRESSED_PATTERNS):
            addressed.append(comment)
            continue
        lowered = comment.lower()
        for name, keywords in _CATEGORY_KEYWORDS.items():
            if any(k in lowered for k in keywords):
                categories[name].append(comment)
                break
        else:
            categories["other"].append(comment)

    return {"addressed": addressed, "categories": categories, "recent": comments[-_RECENT:]}


def build_pr_section(pr_context: PRContext | None) -> str:
    if pr_context is None:
        return ""

    lines = ["", "## Pull Request Context", ""]
    lines.append(f"**Title:** {pr_context.title}")
    lines.append(f"**Author:** {pr_context.author}")
    if pr_context.description and pr_context.description.strip():
        lines.append(f"**Description:** {pr_context.description.strip()}")

    if pr_context.existing_comments:
        buckets = categorize_comments(pr_context.existing_comments)
        lines += ["", "## Previous Review Context", ""]
        if buckets["addressed"]:
            lines.append("**Already addressed:**")
            for i, comment in enumerate(buckets["addressed"][:2], 1):
                lines.append(f"{i}. {_preview(comment, 150)}")
            lines.append("")
        non_empty = [(name, items) for name, items in buckets["categories"].items() if items]
        if non_empty:
            lines.append("**Previous feedback (do not repeat similar comments):**")
            for name, items in non_empty[:3]:
                lines.append(f"- **{name.title()}**: {_preview(items[0], 120)}")
            lines.append("")
        lines.append(f"**Recent comments** ({len(buckets['recent'])} most recent):")
        for i, comment in enumerate(buckets["recent"][:3], 1):
            lines.append(f"{i}. {_preview(comment, 150)}")
        if len(pr_context.existing_comments) > _RECENT:
            lines.append(f"... and {len(pr_context.existing_comments) - _RECENT} more previous comments")

    return "\n".join(lines) + "\n"


_OUTPUT_FORMAT = """
Review the code changes below and return at most {max_comments} of your most impactful insights.

Each insight is one of:
1. A single-line comment: "file", "line" (new-file line number) and "comment".
2. A multi-line comment: "file", "start_line", "line" (last line of the range) and "comment".
3. A file-level comment: "file" and "comment" only.

Only cite line numbers of added or unchanged lines shown in the diff; numbers in the
surrounding-code blocks are new-file line numbers.

Respond with **only** a JSON array, for example:
[
  {{"file": "src/auth.py", "line": 42, "comment": "`token` may be None here."}},
  {{"file": "src/auth.py", "start_line": 50, "line": 58, "comment": "This loop re-reads the file."}},
  {{"file": "src/auth.py", "comment": "Consider splitting this module."}}
]

If there is nothing worth raising, return: []
Do not return any text outside the JSON array."""


def build_review_prompt(config: dict, chunk: DiffChunk, pr_context: PRContext | None = None) -> str:
    """Assemble the full prompt for one chunk."""
    base = load_review_prompt(config).replace("{{DATE}}", datetime.now(timezone.utc).strftime("%Y-%m-%d"))
    if config.get("custom_prompt"):
        base = f"{base}\n\nAdditional instructions: {config['custom_prompt']}"

    return (
        base
        + build_context_section(chunk.repository_context)
        + build_pr_section(pr_context)
        + _OUTPUT_FORMAT.format(max_comments=config.get("max_comments", 8))
        + "\n\n## Changes\n"
        + chunk.content
    )
