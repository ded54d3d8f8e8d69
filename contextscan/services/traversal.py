"""Recursive directory traversal producing scan candidates.

Single-threaded and depth-first. Ignored directories are pruned, so nothing
below them is ever visited. File contents are never read here.
"""

import os
from collections.abc import Callable
from pathlib import Path

from loguru import logger

from contextscan.core.cancellation import CancellationToken
from contextscan.core.config.scan_config import DEFAULT_MAX_DEPTH
from contextscan.core.types import CandidatePath
from contextscan.utils.ignore_patterns import IgnoreMatcher


class Traverser:
    """Depth-bounded, cancellation-aware walk from a project root."""

    def __init__(
        self,
        matcher: IgnoreMatcher,
        cancel_token: CancellationToken,
        max_depth: int = DEFAULT_MAX_DEPTH,
        on_directory: Callable[[Path], None] | None = None,
    ):
        """Initialize the traverser.

        Args:
            matcher: Compiled ignore rules for the root
            cancel_token: Polled before every node and every directory entry
            max_depth: Nodes deeper than this below the root are not visited
            on_directory: Called with each directory about to be enumerated
        """
        self.matcher = matcher
        self.cancel_token = cancel_token
        self.max_depth = max_depth
        self.on_directory = on_directory
        self.enumeration_errors = 0

    def gather(self, root: Path) -> list[CandidatePath]:
        """Collect every non-ignored path under ``root``, the root included."""
        collected: list[CandidatePath] = []
        seen: set[Path] = set()
        self._gather(root, collected, seen, depth=0)
        logger.debug(f"Traversal of {root} found {len(collected)} candidates")
        return collected

    def _gather(
        self,
        path: Path,
        collected: list[CandidatePath],
        seen: set[Path],
        depth: int,
    ) -> None:
        if self.cancel_token.is_cancelled:
            return

        if depth > self.max_depth:
            logger.debug(f"Depth limit reached at {path}")
            return

        is_directory = path.is_dir()
        if self.matcher.is_ignored(path, is_directory):
            return

        if path not in seen:
            seen.add(path)
            collected.append(CandidatePath(path, is_directory))

        if not is_directory:
            return

        if self.on_directory is not None:
            self.on_directory(path)

        for child in self._list_children(path):
            if self.cancel_token.is_cancelled:
                return
            self._gather(child, collected, seen, depth + 1)

    def _list_children(self, directory: Path) -> list[Path]:
        """List a directory's entries sorted by name; errors yield no children."""
        try:
            with os.scandir(directory) as entries:
                names = sorted(entry.name for entry in entries)
        except OSError as e:
            self.enumeration_errors += 1
            logger.warning(f"Failed to read directory {directory}: {e}")
            return []
        return [directory / name for name in names]


def gather_candidates(
    root: Path,
    matcher: IgnoreMatcher,
    cancel_token: CancellationToken,
    max_depth: int = DEFAULT_MAX_DEPTH,
    on_directory: Callable[[Path], None] | None = None,
) -> list[CandidatePath]:
    """Convenience wrapper around ``Traverser(...).gather(root)``."""
    return Traverser(matcher, cancel_token, max_depth, on_directory).gather(root)
