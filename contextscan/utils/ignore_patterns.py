"""Ignore pattern compilation and matching for directory traversal.

# FILE_CONTEXT: gitignore-equivalent classifier shared by traversal and tests
# ROLE: Turns an ordered pattern list into MatchResult for root-relative paths
# PRECEDENCE: Later rules win; a negation never resurrects a path below an
#             ignored directory
"""

import json
import re
from pathlib import Path
from typing import Pattern

from loguru import logger
from pathspec.patterns import GitWildMatchPattern

from contextscan.core.types import MatchResult
from contextscan.core.utils import relative_posix

DEFAULT_IGNORE_PATTERNS_KEY = "default_ignore_patterns"


class IgnoreRule:
    """A single compiled gitignore line."""

    __slots__ = ("source", "regex", "negated", "dir_only")

    def __init__(
        self, source: str, regex: Pattern[str], negated: bool, dir_only: bool = False
    ):
        self.source = source
        self.regex = regex
        self.negated = negated
        # Trailing "/" rules apply to directories only
        self.dir_only = dir_only

    def matches(self, candidate: str) -> bool:
        return self.regex.match(candidate) is not None

    def __repr__(self) -> str:
        return f"IgnoreRule({self.source!r})"


def merge_ignore_patterns(
    global_patterns: list[str] | None, project_patterns: list[str] | None
) -> list[str]:
    """Concatenate global defaults and project patterns.

    Global patterns come first so project rules can override or negate them.
    """
    return [*(global_patterns or []), *(project_patterns or [])]


def parse_default_patterns_setting(raw_value: str | None) -> list[str]:
    """Parse the JSON array stored under the default ignore patterns setting.

    Args:
        raw_value: Stored setting value, or None when the key is absent

    Returns:
        The pattern list; empty when the value is missing, empty or invalid
    """
    if raw_value is None or raw_value == "":
        return []

    try:
        parsed = json.loads(raw_value)
    except json.JSONDecodeError as e:
        logger.error(
            f"Failed to parse {DEFAULT_IGNORE_PATTERNS_KEY} JSON ({raw_value!r}): {e}. "
            "Using empty list for global defaults."
        )
        return []

    if not isinstance(parsed, list) or not all(isinstance(p, str) for p in parsed):
        logger.error(
            f"{DEFAULT_IGNORE_PATTERNS_KEY} must be a JSON array of strings, "
            f"got {type(parsed).__name__}. Using empty list for global defaults."
        )
        return []

    return parsed


def compile_rule(line: str, case_sensitive: bool = True) -> IgnoreRule | None:
    """Compile one gitignore line.

    Returns:
        The compiled rule, or None for lines that match nothing

    Raises:
        ValueError: If the pattern is malformed
    """
    pattern = GitWildMatchPattern(line)
    if pattern.include is None or pattern.regex is None:
        return None

    regex = pattern.regex
    if not case_sensitive:
        regex = re.compile(regex.pattern, re.IGNORECASE)
    return IgnoreRule(
        line, regex, negated=not pattern.include, dir_only=line.rstrip().endswith("/")
    )


class IgnoreMatcher:
    """Compiled ignore/whitelist classifier for paths under a project root.

    Paths are evaluated root-relative with forward slashes. A directory is
    evaluated with a trailing slash against directory-only rules and without
    one against every other rule, so `build/**` matches the contents of
    `build` but not `build` itself.
    """

    def __init__(
        self,
        project_root: str | Path,
        patterns: list[str],
        case_sensitive: bool = True,
    ):
        self.project_root = Path(project_root)
        self.case_sensitive = case_sensitive
        self._dir_cache: dict[str, MatchResult] = {}

        try:
            self._rules = self._compile_rules(patterns)
        except Exception as e:
            logger.error(
                f"Failed to build ignore pattern set: {e}. Using empty ignore set."
            )
            self._rules = []

    @property
    def rules(self) -> list[IgnoreRule]:
        return list(self._rules)

    def _compile_rules(self, patterns: list[str]) -> list[IgnoreRule]:
        rules: list[IgnoreRule] = []
        for pattern_line in patterns:
            line = pattern_line.strip()
            if not line or line.startswith("#"):
                continue
            try:
                rule = compile_rule(line, self.case_sensitive)
            except ValueError as e:
                logger.warning(f"Failed to add ignore pattern '{pattern_line}': {e}")
                continue
            if rule is not None:
                rules.append(rule)
        return rules

    def classify(self, absolute_path: str | Path, is_directory: bool) -> MatchResult:
        """Classify a path against the compiled rules.

        Args:
            absolute_path: Path to check
            is_directory: Whether the path is a directory

        Returns:
            IGNORED, WHITELISTED (a negation matched last), or NOT_MATCHED
        """
        if not self._rules:
            return MatchResult.NOT_MATCHED

        rel_path = relative_posix(Path(absolute_path), self.project_root)
        if not rel_path:
            # Outside the root, or the root itself
            return MatchResult.NOT_MATCHED

        parts = rel_path.split("/")
        for depth in range(1, len(parts)):
            ancestor = "/".join(parts[:depth])
            if self._classify_directory(ancestor) is MatchResult.IGNORED:
                return MatchResult.IGNORED

        if is_directory:
            return self._classify_directory(rel_path)
        return self._evaluate(rel_path)

    def is_ignored(self, absolute_path: str | Path, is_directory: bool) -> bool:
        return self.classify(absolute_path, is_directory) is MatchResult.IGNORED

    def _classify_directory(self, rel_path: str) -> MatchResult:
        cached = self._dir_cache.get(rel_path)
        if cached is None:
            cached = self._evaluate(rel_path, is_directory=True)
            self._dir_cache[rel_path] = cached
        return cached

    def _evaluate(self, rel_path: str, is_directory: bool = False) -> MatchResult:
        for rule in reversed(self._rules):
            candidate = f"{rel_path}/" if is_directory and rule.dir_only else rel_path
            if rule.matches(candidate):
                return MatchResult.WHITELISTED if rule.negated else MatchResult.IGNORED
        return MatchResult.NOT_MATCHED
