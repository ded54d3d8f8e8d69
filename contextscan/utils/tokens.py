"""Token counting for scanned file contents.

Uses a tiktoken encoding when one can be loaded and degrades to a
whitespace-split approximation otherwise. A failed load never fails a scan.
"""

import threading
from typing import Protocol

import tiktoken
from loguru import logger


class TokenCounterProtocol(Protocol):
    """Anything that can count tokens in a string."""

    def count_tokens(self, text: str) -> int: ...


def whitespace_token_count(text: str) -> int:
    return len(text.split())


class TokenCounter:
    """Lazily loads a tiktoken encoding once and counts ordinary tokens.

    Safe to share across worker threads.
    """

    def __init__(self, encoding_name: str | None = "cl100k_base"):
        """Initialize the counter.

        Args:
            encoding_name: tiktoken encoding to load; None always uses the
                whitespace approximation
        """
        self.encoding_name = encoding_name
        self._encoding = None
        self._load_attempted = False
        self._load_lock = threading.Lock()

    @property
    def is_exact(self) -> bool:
        """True when a real tokenizer is in use."""
        return self._get_encoding() is not None

    def _get_encoding(self):
        if self._load_attempted:
            return self._encoding

        with self._load_lock:
            if self._load_attempted:
                return self._encoding

            if self.encoding_name is not None:
                try:
                    self._encoding = tiktoken.get_encoding(self.encoding_name)
                except Exception as e:
                    logger.warning(
                        f"Failed to load {self.encoding_name} tokenizer: {e}. "
                        "Falling back to whitespace token counts."
                    )
            self._load_attempted = True
            return self._encoding

    def count_tokens(self, text: str) -> int:
        encoding = self._get_encoding()
        if encoding is None:
            return whitespace_token_count(text)
        # File text containing special-token markers is counted as plain text
        return len(encoding.encode_ordinary(text))
