"""File content reading for scanned projects."""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from contextscan.core.exceptions import FileReadError


@dataclass(frozen=True)
class FileReadResult:
    """Contents of one file, or the reason it could not be read."""

    path: str
    content: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def read_file_contents(file_path: str | Path) -> str:
    """Read a whole file as UTF-8 text.

    Raises:
        FileReadError: If the path is missing, is a directory, or cannot be decoded/read
    """
    path = Path(file_path)
    if not path.exists():
        raise FileReadError(f"File does not exist: {file_path}")
    if path.is_dir():
        raise FileReadError(f"Path is a directory, not a file: {file_path}")

    try:
        with open(path, encoding="utf-8", newline="") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise FileReadError(f"Failed to read file '{file_path}': {e}") from e


def _read_one(file_path: str) -> FileReadResult:
    try:
        return FileReadResult(path=file_path, content=read_file_contents(file_path))
    except FileReadError as e:
        logger.debug(str(e))
        return FileReadResult(path=file_path, error=str(e))


def read_multiple_file_contents(
    paths: list[str], max_workers: int | None = None
) -> dict[str, FileReadResult]:
    """Read many files in parallel.

    Failures are reported per path and never abort the batch.

    Args:
        paths: File paths to read
        max_workers: Thread pool size (None lets the executor decide)

    Returns:
        Mapping of each requested path to its FileReadResult
    """
    if not paths:
        return {}

    with ThreadPoolExecutor(
        max_workers=max_workers, thread_name_prefix="contextscan-read"
    ) as executor:
        results = list(executor.map(_read_one, paths))

    failed = sum(1 for result in results if not result.ok)
    if failed:
        logger.warning(f"Failed to read {failed} of {len(paths)} files")
    return {result.path: result for result in results}
