"""Data models for cached file statistics and the output file tree."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class CacheEntry:
    """Persisted per-file statistics keyed by absolute path.

    ``last_modified`` is the modification time in whole seconds since the epoch,
    stored as a string exactly as it is written to the cache table.
    """

    last_modified: str
    size: int
    line_count: int = 0
    token_count: int = 0

    def is_stale(self, last_modified: str, size: int) -> bool:
        """Check whether the observed (size, mtime) pair differs from this entry."""
        return self.last_modified != last_modified or self.size != size

    def to_dict(self) -> dict[str, Any]:
        return {
            "last_modified": self.last_modified,
            "size": self.size,
            "lines": self.line_count,
            "tokens": self.token_count,
        }


@dataclass
class FileNode:
    """A scanned file or directory in the output tree.

    For directories the numeric fields are derived from the children during
    finalization and are never set directly.
    """

    path: str
    name: str
    is_directory: bool
    line_count: int = 0
    token_count: int = 0
    size_bytes: int = 0
    last_modified: str = ""
    children: list["FileNode"] = field(default_factory=list)

    @classmethod
    def from_cache_entry(cls, path: str, name: str, entry: CacheEntry | None) -> "FileNode":
        """Create a file leaf carrying cached stats, or zeros when uncached."""
        if entry is None:
            return cls(path=path, name=name, is_directory=False)
        return cls(
            path=path,
            name=name,
            is_directory=False,
            line_count=entry.line_count,
            token_count=entry.token_count,
            size_bytes=entry.size,
            last_modified=entry.last_modified,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON shape consumed by downstream tools."""
        return {
            "path": self.path,
            "name": self.name,
            "is_dir": self.is_directory,
            "lines": self.line_count,
            "tokens": self.token_count,
            "size": self.size_bytes,
            "last_modified": self.last_modified,
            "children": [child.to_dict() for child in self.children],
        }
