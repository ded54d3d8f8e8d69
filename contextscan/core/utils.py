"""Core utility functions for contextscan."""

import os
from pathlib import Path


def normalize_root(root_folder: str | Path) -> Path:
    """Return an absolute, normalized root path without resolving symlinks.

    Cache keys are built from this path, so it must be absolute even when the
    caller passes a relative folder.
    """
    return Path(os.path.abspath(os.fspath(root_folder)))


def relative_posix(path: Path, root: Path) -> str | None:
    """Get the root-relative POSIX form of ``path``.

    Args:
        path: Absolute path to convert
        root: Scan root

    Returns:
        Relative path with forward slashes, "" for the root itself, or None
        when ``path`` is not under ``root``
    """
    try:
        rel = path.relative_to(root)
    except ValueError:
        return None
    if rel == Path("."):
        return ""
    return rel.as_posix()


def file_modified_timestamp(stat_result: os.stat_result) -> str:
    """Format a modification time as whole epoch seconds.

    Times before the epoch format as an empty string.
    """
    mtime = stat_result.st_mtime
    if mtime < 0:
        return ""
    return str(int(mtime))


def display_name(path: Path) -> str:
    """Short name for progress display: the last component, or the full path."""
    return path.name or str(path)


def count_lines(text: str) -> int:
    """Count physical lines.

    A trailing line terminator does not start a new line, and a final line
    without a terminator is still counted. Only ``\\n`` separates lines, so
    ``\\r\\n`` files count the same as ``\\n`` files.
    """
    if not text:
        return 0
    count = text.count("\n")
    if not text.endswith("\n"):
        count += 1
    return count
