"""Database configuration for contextscan."""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

IN_MEMORY = ":memory:"
DATABASE_FILENAME = "scan_cache.duckdb"


class DatabaseConfig(BaseModel):
    """Location of the DuckDB database holding the scan cache and settings."""

    path: Path | str | None = Field(
        default=None,
        description="Directory holding the database file, or ':memory:'",
    )

    @field_validator("path")
    def validate_path(cls, v: Path | str | None) -> Path | str | None:
        if v is None or v == IN_MEMORY:
            return v
        return Path(v).expanduser()

    def is_configured(self) -> bool:
        return self.path is not None

    def get_db_path(self) -> Path | str:
        """Get the database file path.

        Raises:
            ValueError: If no path is configured
        """
        if self.path is None:
            raise ValueError("Database path not configured")
        if self.path == IN_MEMORY:
            return IN_MEMORY
        return Path(self.path) / DATABASE_FILENAME
