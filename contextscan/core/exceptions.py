"""Exception hierarchy for contextscan.

Only store failures and root validation failures escape a scan as errors;
per-file I/O problems are logged and absorbed where they occur.
"""


class ContextScanError(Exception):
    """Base class for all contextscan errors."""


class CacheStoreError(ContextScanError):
    """Raised when a cache or settings query/transaction fails."""


class RootValidationError(ContextScanError):
    """Raised when the scan root is missing or is not a directory."""


class ScanInProgressError(ContextScanError):
    """Raised when a scan is started while another one is still running."""


class FileReadError(ContextScanError):
    """Raised when a file's contents cannot be returned to a caller."""
