"""Repository-wide context injected into every review prompt.

Fetched once per run from the git tree at the PR's head commit, so the
structural picture the model gets belongs to the same snapshot as the diff.
Everything here is best effort: a failed fetch means a prompt without this
section, never a failed review.
"""

from __future__ import annotations

import json
import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import PurePosixPath

from github import GithubException

logger = logging.getLogger(__name__)

# A monorepo with tens of thousands of files adds nothing past a few hundred paths.
_REPO_MAP_LINE_LIMIT = 300

_TOP_LANGUAGES = 5
_KEY_DIRECTORY_LIMIT = 15
_NOISE_DIRECTORIES = ("node_modules", ".git", "__pycache__", ".venv")

_MAX_CONTEXT_CHARS = 20_000


@dataclass
class RepositoryContext:
    total_files: int = 0
    # Extension (".py") to file count.
    languages: dict[str, int] = field(default_factory=dict)
    directories: list[str] = field(default_factory=list)
    # name / version / description from package.json, when the repo has one.
    package_info: dict[str, str] | None = None
    repo_map: str = ""


def build_repo_map(tree) -> str:
    """Return a flat list of all tracked file paths, capped at _REPO_MAP_LINE_LIMIT lines."""
    lines = [f.path for f in tree.tree if f.type == "blob"]
    if len(lines) > _REPO_MAP_LINE_LIMIT:
        overflow = len(lines) - _REPO_MAP_LINE_LIMIT
        return "\n".join(lines[:_REPO_MAP_LINE_LIMIT]) + f"\n... [{overflow} more files not shown]"
    return "\n".join(lines)


def summarize_tree(tree) -> RepositoryContext:
    """Count files per extension and list the directories of a git tree."""
    languages: Counter[str] = Counter()
    directories: list[str] = []
    total = 0
    for entry in tree.tree:
        if entry.type == "tree":
            directories.append(entry.path)
        elif entry.type == "blob":
            total += 1
            suffix = PurePosixPath(entry.path).suffix
            if suffix:
                languages[suffix] += 1
    return RepositoryContext(
        total_files=total,
        languages=dict(languages),
        directories=directories,
        repo_map=build_repo_map(tree),
    )


def fetch_package_info(repo, head_sha: str) -> dict[str, str] | None:
    try:
        raw = repo.get_contents("package.json", ref=head_sha).decoded_content.decode("utf-8", errors="replace")
    except GithubException:
        return None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.debug("package.json at %s is not valid JSON", head_sha[:7])
        return None
    if not isinstance(data, dict):
        return None
    return {key: str(data[key]) for key in ("name", "version", "description") if data.get(key)}


def gather_repository_context(repo, head_sha: str) -> RepositoryContext | None:
    """Collect the repository context for a run, or None if the tree cannot be fetched."""
    try:
        tree = repo.get_git_tree(head_sha, recursive=True)
    except Exception as e:
        logger.warning("Could not fetch repo tree; repository context will be skipped: %s", e)
        return None
    ctx = summarize_tree(tree)
    ctx.package_info = fetch_package_info(repo, head_sha)
    return ctx


def build_context_section(ctx: RepositoryContext | None) -> str:
    """Render repository context as a prompt section ("" when there is none)."""
    if ctx is None:
        return ""

    lines = ["## Repository Context", ""]

    if ctx.package_info:
        lines.append("### Project Information")
        lines.append(f"- Name: {ctx.package_info.get('name', 'Unknown')}")
        lines.append(f"- Version: {ctx.package_info.get('version', 'Unknown')}")
        if ctx.package_info.get("description"):
            lines.append(f"- Description: {ctx.package_info['description']}")
        lines.append("")

    lines.append("### Repository Structure")
    lines.append(f"- Total Files: {ctx.total_files}")
    top = sorted(ctx.languages.items(), key=lambda kv: kv[1], reverse=True)[:_TOP_LANGUAGES]
    if top:
        lines.append("- Main Languages: " + ", ".join(f"{ext} ({count})" for ext, count in top))
    key_dirs = [d for d in ctx.directories if not any(n in d.split("/") for n in _NOISE_DIRECTORIES)]
    if key_dirs:
        lines.append("- Key Directories: " + ", ".join(key_dirs[:_KEY_DIRECTORY_LIMIT]))

    rendered = "\n".join(lines)
    if ctx.repo_map:
        with_map = rendered + f"\n\n### File Tree\n```\n{ctx.repo_map}\n```"
        # The file tree is the first thing to go when the section gets too big.
        if len(with_map) <= _MAX_CONTEXT_CHARS:
            rendered = with_map
    return "\n\n" + rendered + "\n"
