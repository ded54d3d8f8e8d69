"""Scan orchestrator for contextscan - sequences one cancellable scan.

# FILE_CONTEXT: Composition of matcher -> traversal -> stats -> persistence -> tree
# ROLE: Owns the scan state machine, the per-scan cancellation token and the
#       single commit boundary for cache maintenance
# CONCURRENCY: Traversal and persistence run on the calling thread; only the
#              statistics stage fans out to worker threads
# TERMINAL STATUS: exactly one of "done", "cancelled", "failed: <message>"
"""

import asyncio
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from loguru import logger
from rich.progress import Progress

from contextscan.core.cancellation import CancellationToken
from contextscan.core.config.scan_config import ScanConfig
from contextscan.core.exceptions import (
    ContextScanError,
    RootValidationError,
    ScanInProgressError,
)
from contextscan.core.models import CacheEntry, FileNode
from contextscan.core.types import ScanState
from contextscan.core.utils import normalize_root
from contextscan.providers.database.duckdb import (
    DuckDBCacheRepository,
    DuckDBConnectionManager,
    DuckDBSettingsRepository,
)
from contextscan.utils.ignore_patterns import IgnoreMatcher, merge_ignore_patterns
from contextscan.utils.tokens import TokenCounter, TokenCounterProtocol

from .progress import ProgressCallback, ProgressReporter
from .stats_processor import StatsComputer, StatsResult
from .traversal import Traverser
from .tree_builder import build_tree

STATUS_DONE = "done"
STATUS_CANCELLED = "cancelled"
STATUS_FAILED_PREFIX = "failed: "

# Failure messages are truncated before being reported
MAX_STATUS_MESSAGE_CHARS = 150

StatusCallback = Callable[[str], None]


@dataclass
class ScanOutcome:
    """Result of one scan run."""

    state: ScanState
    status_message: str
    tree: FileNode | None = None
    error: str | None = None
    stats: dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.state is ScanState.COMPLETED


def format_failure_status(message: str) -> str:
    return f"{STATUS_FAILED_PREFIX}{message[:MAX_STATUS_MESSAGE_CHARS]}"


class ScanOrchestrator:
    """Runs scans against one shared DuckDB connection.

    # CLASS_CONTEXT: One instance per connection; scans are serialized
    # RELATIONSHIP: Uses -> IgnoreMatcher, Traverser, StatsComputer,
    #               DuckDBCacheRepository, DuckDBSettingsRepository, build_tree
    """

    def __init__(
        self,
        connection_manager: DuckDBConnectionManager,
        config: ScanConfig | None = None,
        token_counter: TokenCounterProtocol | None = None,
        on_progress: ProgressCallback | None = None,
        on_complete: StatusCallback | None = None,
        progress: Progress | None = None,
    ):
        """Initialize scan orchestrator.

        Args:
            connection_manager: Shared database connection for cache and settings
            config: Scan configuration (defaults apply when omitted)
            token_counter: Tokenizer collaborator; defaults to the configured tiktoken encoding
            on_progress: Receives throttled ScanProgress events
            on_complete: Receives the terminal status string of every scan
            progress: Optional Rich Progress instance for progress display
        """
        self.config = config or ScanConfig()
        self.connection_manager = connection_manager
        self.cache_repository = DuckDBCacheRepository(connection_manager)
        self.settings_repository = DuckDBSettingsRepository(connection_manager)
        self.token_counter = token_counter or TokenCounter(self.config.tokenizer_encoding)
        self.on_progress = on_progress
        self.on_complete = on_complete
        self.progress = progress

        self._state = ScanState.IDLE
        self._state_lock = threading.Lock()
        self._cancel_token = CancellationToken()

    @property
    def state(self) -> ScanState:
        return self._state

    def cancel(self) -> None:
        """Request cancellation of the running scan."""
        logger.info("Scan cancellation requested")
        self._cancel_token.cancel()

    async def scan_async(
        self, root_folder: str | Path, ignore_patterns: list[str] | None = None
    ) -> ScanOutcome:
        """Run ``scan`` on a worker thread so the event loop stays responsive."""
        return await asyncio.to_thread(self.scan, root_folder, ignore_patterns)

    def scan(
        self, root_folder: str | Path, ignore_patterns: list[str] | None = None
    ) -> ScanOutcome:
        """Scan a project root.

        Args:
            root_folder: Project root directory
            ignore_patterns: Project-specific patterns, applied after the
                global defaults; falls back to the configured list

        Returns:
            ScanOutcome in state COMPLETED, CANCELLED or FAILED

        Raises:
            ScanInProgressError: If another scan is running on this orchestrator
        """
        with self._state_lock:
            if self._state is ScanState.RUNNING:
                raise ScanInProgressError("A scan is already running")
            self._state = ScanState.RUNNING
            cancel_token = CancellationToken()
            self._cancel_token = cancel_token

        if ignore_patterns is None:
            ignore_patterns = self.config.ignore_patterns

        try:
            try:
                outcome = self._run(Path(root_folder), ignore_patterns, cancel_token)
            except ContextScanError as e:
                logger.error(f"Scan process failed: {e}")
                status = format_failure_status(str(e))
                outcome = ScanOutcome(state=ScanState.FAILED, status_message=status, error=str(e))
            except Exception as e:
                logger.exception(f"Scan process failed unexpectedly: {e}")
                message = f"{type(e).__name__}: {e}"
                outcome = ScanOutcome(
                    state=ScanState.FAILED,
                    status_message=format_failure_status(message),
                    error=message,
                )

            self._state = outcome.state
            self._emit_complete(outcome.status_message)
            return outcome
        finally:
            self._state = ScanState.IDLE

    def _run(
        self, root_folder: Path, ignore_patterns: list[str], cancel_token: CancellationToken
    ) -> ScanOutcome:
        root = normalize_root(root_folder)
        if not root.is_dir():
            raise RootValidationError(f"Root folder is not a valid directory: {root_folder}")

        logger.info(f"Starting scan of {root}")

        # Phase 1: Load cache and global settings (store errors are fatal)
        cache_map = self.cache_repository.load()
        global_patterns = self.settings_repository.get_default_ignore_patterns()

        # Phase 2: Compile ignore rules, global defaults first
        patterns = merge_ignore_patterns(global_patterns, ignore_patterns)
        matcher = IgnoreMatcher(root, patterns, case_sensitive=self.config.case_sensitive)

        reporter = ProgressReporter(
            self.on_progress, self.config.progress_interval_seconds, self.progress
        )
        reporter.report_status(root, " Enumerating files...", 0, 1)

        # Phase 3: Sequential traversal
        traverser = Traverser(
            matcher,
            cancel_token,
            max_depth=self.config.max_depth,
            on_directory=reporter.report_enumeration,
        )
        candidates = traverser.gather(root)
        valid_paths = [candidate.key for candidate in candidates]
        stats: dict[str, Any] = {
            "candidates": len(candidates),
            "patterns": len(matcher.rules),
            "enumeration_errors": traverser.enumeration_errors,
        }

        if cancel_token.is_cancelled:
            removed = self.cache_repository.cleanup_only(valid_paths, cache_map)
            stats["removed"] = removed
            logger.info("Scan cancelled after file enumeration")
            return ScanOutcome(state=ScanState.CANCELLED, status_message=STATUS_CANCELLED, stats=stats)

        if not candidates:
            stats["removed"] = self.cache_repository.cleanup_only(valid_paths, cache_map)
            logger.info("No valid files or folders found after applying filters")
            return ScanOutcome(
                state=ScanState.COMPLETED,
                status_message=STATUS_DONE,
                tree=build_tree(root, [], {}),
                stats=stats,
            )

        # Phase 4: Parallel statistics
        reporter.start_stage("Computing file statistics", total=len(candidates))
        computer = StatsComputer(
            self.token_counter,
            max_file_size_bytes=self.config.max_file_size_bytes,
            max_workers=self.config.max_workers,
        )
        result = computer.compute(candidates, cache_map, cancel_token, reporter)
        stats.update(self._stats_summary(result))

        if result.cancelled or cancel_token.is_cancelled:
            logger.info("Scan cancelled during file processing; partial stats discarded")
            return ScanOutcome(state=ScanState.CANCELLED, status_message=STATUS_CANCELLED, stats=stats)

        # Phase 5: Single commit boundary
        stats["removed"] = self.cache_repository.apply_scan_results(
            valid_paths, cache_map, result.changed
        )

        # Phase 6: Tree assembly; transient entries carry sizes of unread files
        tree_stats: dict[str, CacheEntry] = {**cache_map, **result.transient}
        tree = build_tree(root, candidates, tree_stats, cancel_token)

        # Committed results stay; a partial tree is never reported as done
        if cancel_token.is_cancelled:
            logger.info("Scan cancelled during tree assembly")
            return ScanOutcome(state=ScanState.CANCELLED, status_message=STATUS_CANCELLED, stats=stats)

        logger.info(
            f"Scan finished: {len(candidates)} items, {len(result.changed)} updated, "
            f"{result.reused} reused"
        )
        return ScanOutcome(
            state=ScanState.COMPLETED, status_message=STATUS_DONE, tree=tree, stats=stats
        )

    @staticmethod
    def _stats_summary(result: StatsResult) -> dict[str, int]:
        return {
            "processed": result.processed,
            "updated": len(result.changed),
            "reused": result.reused,
            "read_errors": result.read_errors,
            "unread": len(result.transient),
        }

    def _emit_complete(self, status: str) -> None:
        if self.on_complete is None:
            return
        try:
            self.on_complete(status)
        except Exception as e:
            logger.warning(f"Failed to emit scan completion status: {e}")
