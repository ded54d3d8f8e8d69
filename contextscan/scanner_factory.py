"""Scanner factory module - composition root for ScanOrchestrator instances.

CREATION SEQUENCE:
1. Resolve the database location from Config
2. Connect DuckDB and create the cache/settings schema
3. Build the tokenizer from the scan configuration
4. Inject everything into a ScanOrchestrator

Callers own the returned orchestrator's connection manager and should call
``orchestrator.connection_manager.disconnect()`` when finished.
"""

from rich.progress import Progress

from contextscan.core.config import Config
from contextscan.providers.database.duckdb import DuckDBConnectionManager
from contextscan.services.progress import ProgressCallback
from contextscan.services.scan_orchestrator import ScanOrchestrator, StatusCallback
from contextscan.utils.tokens import TokenCounter


def create_scan_orchestrator(
    config: Config,
    on_progress: ProgressCallback | None = None,
    on_complete: StatusCallback | None = None,
    progress: Progress | None = None,
) -> ScanOrchestrator:
    """Create a ScanOrchestrator with a connected database.

    Args:
        config: Application configuration; ``config.database.path`` must be set
        on_progress: Receives throttled progress events
        on_complete: Receives each scan's terminal status
        progress: Optional Rich Progress instance for progress display

    Returns:
        Ready-to-use ScanOrchestrator

    Raises:
        ValueError: If the database path is not configured
    """
    connection_manager = DuckDBConnectionManager(config.database.get_db_path())
    connection_manager.connect()

    return ScanOrchestrator(
        connection_manager,
        config=config.scan,
        token_counter=TokenCounter(config.scan.tokenizer_encoding),
        on_progress=on_progress,
        on_complete=on_complete,
        progress=progress,
    )
