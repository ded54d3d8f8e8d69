"""Unit tests for ScanConfig, DatabaseConfig and Config."""

import json
import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from contextscan.core.config import (
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_FILE_SIZE_BYTES,
    Config,
    DatabaseConfig,
    ScanConfig,
)


class TestScanConfig:
    """Test ScanConfig defaults and validation."""

    def test_default_values(self):
        config = ScanConfig()
        assert config.max_depth == DEFAULT_MAX_DEPTH == 30
        assert config.max_file_size_bytes == DEFAULT_MAX_FILE_SIZE_BYTES == 5 * 1024 * 1024
        assert config.case_sensitive is True
        assert config.tokenizer_encoding == "cl100k_base"
        assert config.ignore_patterns == []
        assert 1 <= config.max_workers <= 32

    def test_negative_depth_rejected(self):
        with pytest.raises(ValidationError):
            ScanConfig(max_depth=-1)

    def test_zero_file_size_rejected(self):
        with pytest.raises(ValidationError):
            ScanConfig(max_file_size_bytes=0)

    def test_zero_workers_rejected(self):
        with pytest.raises(ValidationError):
            ScanConfig(max_workers=0)

    def test_patterns_keep_order_and_duplicates(self):
        patterns = ["*.log", "!keep.log", "*.log"]
        assert ScanConfig(ignore_patterns=patterns).ignore_patterns == patterns

    def test_blank_encoding_means_whitespace_counting(self):
        assert ScanConfig(tokenizer_encoding="  ").tokenizer_encoding is None


class TestDatabaseConfig:
    """Test DatabaseConfig class functionality."""

    def test_default_values(self):
        config = DatabaseConfig()
        assert config.path is None
        assert not config.is_configured()

    def test_get_db_path_with_explicit_path(self):
        config = DatabaseConfig(path="/tmp/test")
        assert config.get_db_path() == Path("/tmp/test/scan_cache.duckdb")

    def test_get_db_path_in_memory(self):
        assert DatabaseConfig(path=":memory:").get_db_path() == ":memory:"

    def test_get_db_path_no_path_configured(self):
        with pytest.raises(ValueError, match="Database path not configured"):
            DatabaseConfig().get_db_path()

    def test_path_types(self):
        config1 = DatabaseConfig(path="/tmp/string/path")
        assert isinstance(config1.path, Path)
        assert str(config1.path) == "/tmp/string/path"

        path_obj = Path("/tmp/path/object")
        assert DatabaseConfig(path=path_obj).path == path_obj


class TestConfig:
    """Test hierarchical Config loading."""

    def test_defaults(self, clean_environment):
        config = Config()
        assert config.debug is False
        assert config.database.path is None
        assert config.scan.max_depth == 30

    def test_environment_variables(self, clean_environment, tmp_path):
        os.environ["CONTEXTSCAN_DEBUG"] = "true"
        os.environ["CONTEXTSCAN_DATABASE__PATH"] = str(tmp_path)
        os.environ["CONTEXTSCAN_SCAN__MAX_DEPTH"] = "5"
        os.environ["CONTEXTSCAN_SCAN__CASE_SENSITIVE"] = "false"
        os.environ["CONTEXTSCAN_SCAN__MAX_WORKERS"] = "2"
        os.environ["CONTEXTSCAN_SCAN__MAX_FILE_SIZE_BYTES"] = "1024"
        os.environ["CONTEXTSCAN_SCAN__IGNORE_PATTERNS"] = "*.log, /dist/ ,"

        config = Config()

        assert config.debug is True
        assert config.database.path == tmp_path
        assert config.scan.max_depth == 5
        assert config.scan.case_sensitive is False
        assert config.scan.max_workers == 2
        assert config.scan.max_file_size_bytes == 1024
        assert config.scan.ignore_patterns == ["*.log", "/dist/"]

    def test_config_file(self, clean_environment, tmp_path):
        config_file = tmp_path / "contextscan.json"
        config_file.write_text(
            json.dumps({"scan": {"max_depth": 7, "ignore_patterns": ["*.tmp"]}})
        )

        config = Config(config_file=config_file)

        assert config.scan.max_depth == 7
        assert config.scan.ignore_patterns == ["*.tmp"]
        # Unset nested values keep their defaults
        assert config.scan.case_sensitive is True

    def test_invalid_json_config_file(self, clean_environment, tmp_path):
        config_file = tmp_path / "contextscan.json"
        config_file.write_text("{not json")

        with pytest.raises(ValueError, match="Invalid JSON in config file"):
            Config(config_file=config_file)

    def test_precedence(self, clean_environment, tmp_path):
        config_file = tmp_path / "contextscan.json"
        config_file.write_text(json.dumps({"scan": {"max_depth": 1}}))
        os.environ["CONTEXTSCAN_SCAN__MAX_DEPTH"] = "2"

        assert Config(config_file=config_file).scan.max_depth == 2
        assert (
            Config(config_file=config_file, overrides={"scan": {"max_depth": 3}}).scan.max_depth
            == 3
        )
        assert (
            Config(
                config_file=config_file,
                overrides={"scan": {"max_depth": 3}},
                scan=ScanConfig(max_depth=4),
            ).scan.max_depth
            == 4
        )

    def test_validate_assignment(self, clean_environment):
        config = Config()
        with pytest.raises(ValidationError):
            config.debug = "not-a-bool"
