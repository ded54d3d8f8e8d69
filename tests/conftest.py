"""
Pytest configuration and fixtures for contextscan tests.
"""

import os
import pytest

from contextscan.core.cancellation import CancellationToken
from contextscan.providers.database.duckdb import DuckDBConnectionManager
from contextscan.utils.tokens import TokenCounter


@pytest.fixture
def project_dir(tmp_path):
    """Create a small project tree.

    project/
        README.md           2 lines
        debug.log
        src/
            main.py         3 lines
            util.py         1 line, no trailing newline
        docs/
            guide.md        1 line
    """
    root = tmp_path / "project"
    (root / "src").mkdir(parents=True)
    (root / "docs").mkdir()

    (root / "README.md").write_text("# Project\nhello world\n")
    (root / "debug.log").write_text("noise\n")
    (root / "src" / "main.py").write_text("import os\n\nprint(os.getcwd())\n")
    (root / "src" / "util.py").write_text("x = 1")
    (root / "docs" / "guide.md").write_text("read me first\n")

    return root


@pytest.fixture
def connection_manager():
    """In-memory DuckDB connection with the scan schema created."""
    manager = DuckDBConnectionManager(":memory:")
    manager.connect()

    yield manager

    manager.disconnect()


@pytest.fixture
def file_connection_manager(tmp_path):
    """File-backed DuckDB connection, for tests that reopen the database."""
    manager = DuckDBConnectionManager(tmp_path / "db" / "scan_cache.duckdb")
    manager.connect()

    yield manager

    manager.disconnect()


@pytest.fixture
def token_counter():
    """Whitespace token counter so counts are deterministic."""
    return TokenCounter(encoding_name=None)


@pytest.fixture
def cancel_token():
    return CancellationToken()


@pytest.fixture
def clean_environment():
    """Clean up contextscan environment variables before and after tests."""
    # Store original values
    original_env = {}
    for key in list(os.environ.keys()):
        if key.startswith("CONTEXTSCAN_"):
            original_env[key] = os.environ[key]
            del os.environ[key]

    yield

    # Restore original values
    for key in list(os.environ.keys()):
        if key.startswith("CONTEXTSCAN_"):
            del os.environ[key]

    for key, value in original_env.items():
        os.environ[key] = value
