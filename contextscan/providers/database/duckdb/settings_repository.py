"""DuckDB key-value settings repository for contextscan."""

from typing import TYPE_CHECKING

from loguru import logger

from contextscan.core.exceptions import CacheStoreError
from contextscan.utils.ignore_patterns import (
    DEFAULT_IGNORE_PATTERNS_KEY,
    parse_default_patterns_setting,
)

from .connection_manager import SETTINGS_TABLE

if TYPE_CHECKING:
    from .connection_manager import DuckDBConnectionManager


class DuckDBSettingsRepository:
    """Reads and writes string settings keyed by name."""

    def __init__(self, connection_manager: "DuckDBConnectionManager"):
        self.connection_manager = connection_manager

    def get_setting(self, key: str) -> str | None:
        """Get a setting value, or None when the key is absent.

        Raises:
            CacheStoreError: If the query fails
        """
        try:
            rows = self.connection_manager.fetchall(
                f"SELECT setting_value FROM {SETTINGS_TABLE} WHERE setting_key = ?",
                [key],
            )
        except CacheStoreError as e:
            raise CacheStoreError(f"Failed to query {SETTINGS_TABLE} for key '{key}': {e}") from e
        return rows[0][0] if rows else None

    def set_setting(self, key: str, value: str) -> None:
        self.connection_manager.execute(
            f"""
            INSERT INTO {SETTINGS_TABLE} (setting_key, setting_value) VALUES (?, ?)
            ON CONFLICT (setting_key) DO UPDATE SET setting_value = excluded.setting_value
            """,
            [key, value],
        )

    def get_default_ignore_patterns(self) -> list[str]:
        """Global ignore patterns applied to every project before its own list."""
        patterns = parse_default_patterns_setting(self.get_setting(DEFAULT_IGNORE_PATTERNS_KEY))
        logger.debug(f"Loaded {len(patterns)} global default ignore patterns")
        return patterns
