"""Scan configuration for contextscan.

This module provides configuration for the scanning process including
traversal limits, file size caps, pattern matching and worker counts.
"""

import os

from pydantic import BaseModel, Field, field_validator

# Files larger than this are listed in the tree but never read
DEFAULT_MAX_FILE_SIZE_BYTES = 5 * 1024 * 1024

# Guards against pathological nesting and symlink loops
DEFAULT_MAX_DEPTH = 30


def _default_max_workers() -> int:
    return min(32, (os.cpu_count() or 1) + 4)


class ScanConfig(BaseModel):
    """Configuration for scan behavior.

    Controls how the tree is traversed and how file statistics are computed.
    """

    max_depth: int = Field(
        default=DEFAULT_MAX_DEPTH,
        ge=0,
        description="Maximum directory depth below the root that is traversed",
    )
    max_file_size_bytes: int = Field(
        default=DEFAULT_MAX_FILE_SIZE_BYTES,
        gt=0,
        description="Files above this size are not read for line/token counts",
    )
    case_sensitive: bool = Field(
        default=True,
        description="Match ignore patterns case-sensitively",
    )
    max_workers: int = Field(
        default_factory=_default_max_workers,
        ge=1,
        description="Worker threads for the parallel statistics stage",
    )
    tokenizer_encoding: str | None = Field(
        default="cl100k_base",
        description="tiktoken encoding name; None uses whitespace token counts",
    )
    progress_interval_seconds: float = Field(
        default=0.05,
        ge=0.0,
        description="Minimum seconds between intermediate progress events",
    )

    # Project-specific patterns, applied after the global defaults
    ignore_patterns: list[str] = Field(
        default_factory=list,
        description="gitignore-style patterns for this project",
    )

    @field_validator("ignore_patterns")
    def validate_patterns(cls, v: list[str]) -> list[str]:
        """Validate ignore patterns.

        Order is significant for negation, so duplicates are kept.
        """
        if not isinstance(v, list):
            raise ValueError("Patterns must be a list")
        for pattern in v:
            if not isinstance(pattern, str):
                raise ValueError(f"Pattern must be a string, got {type(pattern).__name__}")
        return v

    @field_validator("tokenizer_encoding")
    def validate_encoding(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            return None
        return v
