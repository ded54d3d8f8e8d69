"""DuckDB-backed cache and settings storage."""

from .cache_repository import DuckDBCacheRepository
from .connection_manager import DuckDBConnectionManager
from .settings_repository import DuckDBSettingsRepository

__all__ = [
    "DuckDBCacheRepository",
    "DuckDBConnectionManager",
    "DuckDBSettingsRepository",
]
