"""Parallel per-file statistics with cache staleness checks.

# FILE_CONTEXT: Fork-join stage between traversal and cache persistence
# ROLE: Decides per file whether cached stats can be reused, recomputes otherwise
# CONCURRENCY: One thread per work item slot; the only shared mutable state is
#              the lock-guarded results buffer. No completion order is defined.
# STALENESS: (no cached entry) or (mtime string differs) or (size differs)
"""

import os
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from contextscan.core.cancellation import CancellationToken
from contextscan.core.config.scan_config import DEFAULT_MAX_FILE_SIZE_BYTES
from contextscan.core.models import CacheEntry
from contextscan.core.types import CandidatePath
from contextscan.core.utils import count_lines, file_modified_timestamp
from contextscan.utils.tokens import TokenCounterProtocol

from .progress import ProgressReporter


@dataclass
class StatsResult:
    """Outcome of the statistics stage."""

    # New or changed entries to upsert, in completion order
    changed: list[tuple[str, CacheEntry]] = field(default_factory=list)
    # Empty and oversized files: true size, zero counts, never persisted
    transient: dict[str, CacheEntry] = field(default_factory=dict)
    processed: int = 0
    reused: int = 0
    read_errors: int = 0
    cancelled: bool = False


class _StageState:
    """Mutable state shared by the workers of one ``compute`` call."""

    def __init__(self, total: int):
        self.total = total
        self.lock = threading.Lock()
        self.result = StatsResult()

    def next_count(self) -> int:
        with self.lock:
            self.result.processed += 1
            return self.result.processed

    def add_changed(self, path: str, entry: CacheEntry, read_error: bool = False) -> None:
        with self.lock:
            self.result.changed.append((path, entry))
            if read_error:
                self.result.read_errors += 1

    def add_transient(self, path: str, entry: CacheEntry) -> None:
        with self.lock:
            self.result.transient[path] = entry

    def add_reused(self) -> None:
        with self.lock:
            self.result.reused += 1


class StatsComputer:
    """Computes line and token counts for candidate files, reusing fresh cache entries."""

    def __init__(
        self,
        token_counter: TokenCounterProtocol,
        max_file_size_bytes: int = DEFAULT_MAX_FILE_SIZE_BYTES,
        max_workers: int | None = None,
    ):
        """Initialize the stats computer.

        Args:
            token_counter: Tokenizer collaborator used for stale files
            max_file_size_bytes: Files above this size are never read
            max_workers: Thread pool size (None lets the executor decide)
        """
        self.token_counter = token_counter
        self.max_file_size_bytes = max_file_size_bytes
        self.max_workers = max_workers

    def compute(
        self,
        candidates: list[CandidatePath],
        cache_map: dict[str, CacheEntry],
        cancel_token: CancellationToken,
        reporter: ProgressReporter | None = None,
    ) -> StatsResult:
        """Process every candidate in parallel.

        ``cache_map`` is only read here; persistence happens afterwards in one
        transaction owned by the caller.

        Returns:
            StatsResult with ``cancelled`` set when cancellation was observed
        """
        state = _StageState(len(candidates))
        if not candidates:
            return state.result

        with ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="contextscan-stats"
        ) as executor:
            futures = [
                executor.submit(
                    self._process_item, candidate, cache_map, cancel_token, reporter, state
                )
                for candidate in candidates
            ]
            for future in as_completed(futures):
                future.result()
                if cancel_token.is_cancelled:
                    logger.info("Cancellation observed during statistics stage")
                    executor.shutdown(wait=False, cancel_futures=True)
                    break

        state.result.cancelled = cancel_token.is_cancelled
        logger.debug(
            f"Statistics stage: {len(state.result.changed)} updated, "
            f"{state.result.reused} reused, {state.result.read_errors} unreadable"
        )
        return state.result

    def _process_item(
        self,
        candidate: CandidatePath,
        cache_map: dict[str, CacheEntry],
        cancel_token: CancellationToken,
        reporter: ProgressReporter | None,
        state: _StageState,
    ) -> None:
        if cancel_token.is_cancelled:
            return

        count = state.next_count()
        if reporter is not None:
            reporter.report_item(candidate.path, count, state.total)

        if candidate.is_directory:
            return

        try:
            stat_result = os.stat(candidate.path)
        except OSError as e:
            logger.debug(f"Failed to read metadata for {candidate.path}: {e}")
            return

        path_key = candidate.key
        size = stat_result.st_size
        last_modified = file_modified_timestamp(stat_result)

        if size == 0 or size > self.max_file_size_bytes:
            state.add_transient(path_key, CacheEntry(last_modified=last_modified, size=size))
            return

        cached = cache_map.get(path_key)
        if cached is not None and not cached.is_stale(last_modified, size):
            state.add_reused()
            return

        try:
            content = self._read_text(candidate.path)
        except (OSError, UnicodeDecodeError) as e:
            # Recording the miss stops the file from being re-read every scan
            logger.debug(f"Failed to read {candidate.path}: {e}")
            state.add_changed(
                path_key, CacheEntry(last_modified=last_modified, size=size), read_error=True
            )
            return

        entry = CacheEntry(
            last_modified=last_modified,
            size=size,
            line_count=count_lines(content),
            token_count=self.token_counter.count_tokens(content),
        )
        state.add_changed(path_key, entry)

    @staticmethod
    def _read_text(path: Path) -> str:
        with open(path, encoding="utf-8", newline="") as f:
            return f.read()
