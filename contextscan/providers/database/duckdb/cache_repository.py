"""DuckDB cache repository for contextscan - persisted per-file statistics."""

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from loguru import logger

from contextscan.core.exceptions import CacheStoreError
from contextscan.core.models import CacheEntry

from .connection_manager import CACHE_TABLE

if TYPE_CHECKING:
    from .connection_manager import DuckDBConnectionManager


class DuckDBCacheRepository:
    """Repository for the path -> CacheEntry table.

    Keys are absolute path strings. Writes happen only inside a transaction
    opened through ``apply_scan_results`` or ``cleanup_only``.
    """

    def __init__(self, connection_manager: "DuckDBConnectionManager"):
        """Initialize cache repository with connection manager.

        Args:
            connection_manager: DuckDB connection manager instance
        """
        self.connection_manager = connection_manager

    def load(self) -> dict[str, CacheEntry]:
        """Load every cached entry.

        Raises:
            CacheStoreError: If the query fails
        """
        try:
            rows = self.connection_manager.fetchall(
                f"SELECT file_path, last_modified, size, lines, tokens FROM {CACHE_TABLE}"
            )
        except CacheStoreError as e:
            logger.error(f"Failed to load cache entries: {e}")
            raise

        cache_map = {
            row[0]: CacheEntry(
                last_modified=row[1],
                size=int(row[2]),
                line_count=int(row[3]),
                token_count=int(row[4]),
            )
            for row in rows
        }
        logger.debug(f"Loaded {len(cache_map)} cache entries")
        return cache_map

    def get(self, path: str) -> CacheEntry | None:
        rows = self.connection_manager.fetchall(
            f"SELECT last_modified, size, lines, tokens FROM {CACHE_TABLE} WHERE file_path = ?",
            [path],
        )
        if not rows:
            return None
        last_modified, size, lines, tokens = rows[0]
        return CacheEntry(
            last_modified=last_modified,
            size=int(size),
            line_count=int(lines),
            token_count=int(tokens),
        )

    def count(self) -> int:
        rows = self.connection_manager.fetchall(f"SELECT COUNT(*) FROM {CACHE_TABLE}")
        return int(rows[0][0]) if rows else 0

    def upsert(self, conn: Any, path: str, entry: CacheEntry) -> None:
        """Insert or update one entry on an open transaction connection."""
        conn.execute(
            f"""
            INSERT INTO {CACHE_TABLE} (file_path, last_modified, size, lines, tokens)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT (file_path) DO UPDATE SET
                last_modified = excluded.last_modified,
                size = excluded.size,
                lines = excluded.lines,
                tokens = excluded.tokens
            """,
            [path, entry.last_modified, entry.size, entry.line_count, entry.token_count],
        )

    def cleanup_removed(
        self,
        conn: Any,
        valid_paths: Iterable[str],
        cache_map: dict[str, CacheEntry],
    ) -> int:
        """Delete cached entries whose paths are no longer valid candidates.

        The removal is mirrored into ``cache_map``.

        Returns:
            Number of entries removed
        """
        valid_set = set(valid_paths)
        to_remove = [path for path in cache_map if path not in valid_set]

        for path in to_remove:
            conn.execute(f"DELETE FROM {CACHE_TABLE} WHERE file_path = ?", [path])
            del cache_map[path]

        if to_remove:
            logger.debug(f"Removed {len(to_remove)} stale cache entries")
        return len(to_remove)

    def cleanup_only(
        self, valid_paths: Iterable[str], cache_map: dict[str, CacheEntry]
    ) -> int:
        """Run a cleanup-only transaction.

        Raises:
            CacheStoreError: If the transaction fails (nothing is committed)
        """
        working_map = dict(cache_map)
        with self.connection_manager.transaction() as conn:
            removed = self.cleanup_removed(conn, valid_paths, working_map)

        cache_map.clear()
        cache_map.update(working_map)
        return removed

    def apply_scan_results(
        self,
        valid_paths: Iterable[str],
        cache_map: dict[str, CacheEntry],
        changed: list[tuple[str, CacheEntry]],
    ) -> int:
        """Persist one scan's cache maintenance in a single transaction.

        Cleanup runs first, then changed/new entries are upserted. The
        in-memory map is updated only after a successful commit.

        Returns:
            Number of stale entries removed

        Raises:
            CacheStoreError: If any delete or upsert fails (everything rolls back)
        """
        working_map = dict(cache_map)
        with self.connection_manager.transaction() as conn:
            removed = self.cleanup_removed(conn, valid_paths, working_map)
            for path, entry in changed:
                working_map[path] = entry
                self.upsert(conn, path, entry)

        if changed:
            logger.debug(f"Saved {len(changed)} updated/new cache entries")

        cache_map.clear()
        cache_map.update(working_map)
        return removed
