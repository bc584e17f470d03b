import fnmatch
from pathlib import PurePosixPath

_BINARY_KINDS = {
    "image": (".png", ".jpg", ".jpeg", ".gif", ".svg", ".ico", ".webp", ".bmp"),
    "document": (".pdf",),
    "font": (".woff", ".woff2", ".ttf", ".eot", ".otf"),
    "media": (".mp4", ".mp3", ".wav", ".ogg"),
    "archive": (".zip", ".tar", ".gz", ".rar", ".7z", ".jar"),
    "native": (".exe", ".dll", ".so", ".dylib"),
    # yarn.lock, poetry.lock, Cargo.lock
    "lockfile": (".lock",),
}

NON_CODE_EXTENSIONS = frozenset(ext for group in _BINARY_KINDS.values() for ext in group)


def is_code_file(file_name: str) -> bool:
    """False for assets, archives, binaries and lock files; the model cannot review those."""
    return PurePosixPath(file_name.lower()).suffix not in NON_CODE_EXTENSIONS


def _directory_of(pattern: str) -> str | None:
    """Return the directory a pattern names ("dist/", "dist/**", "dist"), or None for globs."""
    directory = pattern[:-3] if pattern.endswith("/**") else pattern.rstrip("/")
    if not directory or any(ch in directory for ch in "*?["):
        return None
    return directory


def is_excluded(filename: str, patterns: list[str]) -> bool:
    """Return True if filename matches any ignore pattern.

    A pattern matches when it globs the full path ("src/generated/*.py"), globs
    the basename ("*.lock") or names a directory anywhere in the path
    ("migrations/", "node_modules/**").
    """
    basename = filename.rsplit("/", 1)[-1]
    parents = filename.split("/")[:-1]
    for pattern in patterns:
        if fnmatch.fnmatch(filename, pattern) or fnmatch.fnmatch(basename, pattern):
            return True
        directory = _directory_of(pattern)
        if directory is None:
            continue
        depth = directory.count("/") + 1
        windows = ("/".join(parents[i : i + depth]) for i in range(len(parents) - depth + 1))
        if directory in windows:
            return True
    return False
