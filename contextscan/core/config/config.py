"""Centralized configuration management for contextscan.

This module provides a unified configuration system with clear precedence:
1. Explicit keyword arguments (highest priority)
2. Overrides dictionary
3. Environment variables
4. Config file (JSON)
5. Default values (lowest priority)
"""

import json
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .database_config import DatabaseConfig
from .scan_config import ScanConfig

ENV_PREFIX = "CONTEXTSCAN_"

_TRUE_VALUES = ("true", "1", "yes")


class Config(BaseModel):
    """Centralized configuration for contextscan."""

    model_config = ConfigDict(validate_assignment=True)

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    debug: bool = Field(default=False)

    def __init__(
        self,
        config_file: Path | None = None,
        overrides: dict[str, Any] | None = None,
        **kwargs: Any,
    ):
        """Initialize configuration with hierarchical loading.

        Args:
            config_file: Optional path to a JSON configuration file
            overrides: Optional dictionary of overrides (e.g. from a caller's CLI)
            **kwargs: Additional keyword arguments
        """
        config_data: dict[str, Any] = {}

        # 1. Config file
        if config_file and Path(config_file).exists():
            try:
                with open(config_file, encoding="utf-8") as f:
                    self._deep_merge(config_data, json.load(f))
            except json.JSONDecodeError as e:
                raise ValueError(
                    f"Invalid JSON in config file {config_file}: {e}. "
                    "Please check the file format and try again."
                )

        # 2. Environment variables take precedence over the file
        self._deep_merge(config_data, self._load_env_vars())

        # 3. Overrides
        if overrides:
            self._deep_merge(config_data, overrides)

        # 4. Keyword arguments
        if kwargs:
            self._deep_merge(config_data, kwargs)

        super().__init__(**config_data)

    @staticmethod
    def _load_env_vars() -> dict[str, Any]:
        """Load configuration from environment variables.

        Uses CONTEXTSCAN_ prefix with __ delimiter for nested values.
        """
        config: dict[str, Any] = {}

        if debug := os.getenv(f"{ENV_PREFIX}DEBUG"):
            config["debug"] = debug.lower() in _TRUE_VALUES

        if db_path := os.getenv(f"{ENV_PREFIX}DATABASE__PATH"):
            config.setdefault("database", {})["path"] = db_path

        scan_config: dict[str, Any] = {}
        if max_depth := os.getenv(f"{ENV_PREFIX}SCAN__MAX_DEPTH"):
            scan_config["max_depth"] = int(max_depth)
        if max_size := os.getenv(f"{ENV_PREFIX}SCAN__MAX_FILE_SIZE_BYTES"):
            scan_config["max_file_size_bytes"] = int(max_size)
        if case_sensitive := os.getenv(f"{ENV_PREFIX}SCAN__CASE_SENSITIVE"):
            scan_config["case_sensitive"] = case_sensitive.lower() in _TRUE_VALUES
        if max_workers := os.getenv(f"{ENV_PREFIX}SCAN__MAX_WORKERS"):
            scan_config["max_workers"] = int(max_workers)
        if encoding := os.getenv(f"{ENV_PREFIX}SCAN__TOKENIZER_ENCODING"):
            scan_config["tokenizer_encoding"] = encoding
        if patterns := os.getenv(f"{ENV_PREFIX}SCAN__IGNORE_PATTERNS"):
            scan_config["ignore_patterns"] = [
                p.strip() for p in patterns.split(",") if p.strip()
            ]

        if scan_config:
            config["scan"] = scan_config

        return config

    @classmethod
    def _deep_merge(cls, base: dict[str, Any], update: dict[str, Any]) -> None:
        """Recursively merge ``update`` into ``base`` in place."""
        for key, value in update.items():
            if isinstance(value, BaseModel):
                value = value.model_dump()
            if isinstance(value, dict) and isinstance(base.get(key), dict):
                cls._deep_merge(base[key], value)
            else:
                base[key] = value
