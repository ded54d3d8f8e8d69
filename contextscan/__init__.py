"""contextscan - incremental project tree scanning with cached file statistics."""

from .core.models import CacheEntry, FileNode
from .core.types import MatchResult, ScanState
from .services.scan_orchestrator import ScanOrchestrator, ScanOutcome

__version__ = "0.1.0"

__all__ = [
    "CacheEntry",
    "FileNode",
    "MatchResult",
    "ScanOrchestrator",
    "ScanOutcome",
    "ScanState",
]
