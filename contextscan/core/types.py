"""Shared enums and lightweight value types for the scanning pipeline."""

from enum import Enum
from pathlib import Path
from typing import NamedTuple


class MatchResult(Enum):
    """Outcome of evaluating ignore rules against a single path."""

    NOT_MATCHED = "not_matched"
    IGNORED = "ignored"
    WHITELISTED = "whitelisted"

    @property
    def is_ignored(self) -> bool:
        return self is MatchResult.IGNORED


class ScanState(Enum):
    """Lifecycle of a single scan run.

    IDLE -> RUNNING -> {COMPLETED, CANCELLED, FAILED} -> IDLE
    """

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ScanState.COMPLETED, ScanState.CANCELLED, ScanState.FAILED)


class CandidatePath(NamedTuple):
    """A path that survived ignore filtering during traversal. Never persisted."""

    path: Path
    is_directory: bool

    @property
    def key(self) -> str:
        """Absolute path string used as the cache key."""
        return str(self.path)
