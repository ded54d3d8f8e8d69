"""DuckDB connection and schema management for contextscan."""

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import duckdb
from loguru import logger

from contextscan.core.exceptions import CacheStoreError

CACHE_TABLE = "scan_file_cache"
SETTINGS_TABLE = "app_settings"


class DuckDBConnectionManager:
    """Manages the DuckDB connection, schema creation, and transactions.

    The connection is shared process-wide by every database consumer. DuckDB
    connections are not safe for concurrent writers, so all access goes through
    one re-entrant lock.
    """

    def __init__(self, db_path: Path | str):
        """Initialize DuckDB connection manager.

        Args:
            db_path: Path to DuckDB database file or ":memory:" for in-memory database
        """
        self._db_path = db_path
        self.connection: Any | None = None
        self._lock = threading.RLock()

    @property
    def db_path(self) -> Path | str:
        """Database connection path or identifier."""
        return self._db_path

    @property
    def is_connected(self) -> bool:
        """Check if database connection is active."""
        return self.connection is not None

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def connect(self) -> None:
        """Establish database connection and initialize schema."""
        logger.info(f"Connecting to DuckDB database: {self.db_path}")

        # Ensure parent directory exists for file-based databases
        if isinstance(self.db_path, Path):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with self._lock:
                self.connection = duckdb.connect(str(self.db_path))
                self.create_schema()
            logger.info("DuckDB connection established")
        except Exception as e:
            logger.error(f"DuckDB connection failed: {e}")
            self.connection = None
            raise

    def disconnect(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self.connection is None:
                return
            try:
                self.connection.close()
            except Exception as e:
                logger.warning(f"Error closing DuckDB connection: {e}")
            finally:
                self.connection = None
        logger.debug("DuckDB connection closed")

    def create_schema(self) -> None:
        """Create the cache and settings tables if they don't exist."""
        conn = self.require_connection()
        conn.execute(f"""
            CREATE TABLE IF NOT EXISTS {CACHE_TABLE} (
                file_path VARCHAR PRIMARY KEY,
                last_modified VARCHAR NOT NULL,
                size UBIGINT NOT NULL,
                lines UBIGINT NOT NULL,
                tokens UBIGINT NOT NULL
            )
        """)
        conn.execute(f"""
            CREATE TABLE IF NOT EXISTS {SETTINGS_TABLE} (
                setting_key VARCHAR PRIMARY KEY,
                setting_value VARCHAR
            )
        """)
        logger.debug("DuckDB schema initialized")

    def require_connection(self) -> Any:
        """Get the live connection.

        Raises:
            CacheStoreError: If the database is not connected
        """
        if self.connection is None:
            raise CacheStoreError("No database connection")
        return self.connection

    def execute(self, query: str, params: list[Any] | None = None) -> Any:
        """Execute a statement under the connection lock."""
        with self._lock:
            conn = self.require_connection()
            try:
                if params:
                    return conn.execute(query, params)
                return conn.execute(query)
            except duckdb.Error as e:
                raise CacheStoreError(str(e)) from e

    def fetchall(self, query: str, params: list[Any] | None = None) -> list[tuple]:
        with self._lock:
            return self.execute(query, params).fetchall()

    @contextmanager
    def transaction(self) -> Iterator[Any]:
        """Run a block inside one exclusive transaction.

        The lock is held for the whole block. Any exception rolls the
        transaction back and is re-raised as CacheStoreError.
        """
        with self._lock:
            conn = self.require_connection()
            try:
                conn.execute("BEGIN TRANSACTION")
            except duckdb.Error as e:
                raise CacheStoreError(f"Begin transaction failed: {e}") from e

            try:
                yield conn
                conn.execute("COMMIT")
            except Exception as e:
                try:
                    conn.execute("ROLLBACK")
                    logger.info("Transaction rolled back due to error")
                except duckdb.Error as rollback_error:
                    logger.error(f"Rollback failed: {rollback_error}")
                if isinstance(e, CacheStoreError):
                    raise
                raise CacheStoreError(str(e)) from e
