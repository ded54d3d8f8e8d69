"""Configuration models for contextscan."""

from .config import Config
from .database_config import DatabaseConfig
from .scan_config import DEFAULT_MAX_DEPTH, DEFAULT_MAX_FILE_SIZE_BYTES, ScanConfig

__all__ = [
    "Config",
    "DatabaseConfig",
    "ScanConfig",
    "DEFAULT_MAX_DEPTH",
    "DEFAULT_MAX_FILE_SIZE_BYTES",
]
