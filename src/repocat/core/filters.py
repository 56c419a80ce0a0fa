# src/repocat/core/filters.py
"""
The single include/exclude decision used by both the directory walk and the
analysis of an explicit file selection.

Rules, first match wins:
  1. extension allow-list      -> excluded
  2. custom exclude patterns   -> excluded
  3. gitignore negations       -> included
  4. gitignore excludes        -> excluded
  5. default                   -> included
"""
import os
import posixpath
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Optional, Union

from repocat.config import BAD_PATTERN_WARNINGS_REMEMBERED
from repocat.core.matcher import GlobPatternError, compile_glob
from repocat.models import (
    EMPTY_GITIGNORE_PATTERNS,
    Configuration,
    FilterRule,
    FilterVerdict,
    GitignorePatterns,
)
from repocat.utils.logger import get_logger

logger = get_logger(__name__)

PathLike = Union[str, Path]

NOT_EXCLUDED = FilterVerdict(excluded=False, rule=FilterRule.DEFAULT)


def normalize_path(path: PathLike) -> str:
    return os.fspath(path).replace("\\", "/")


def to_relative_path(path: PathLike, root_path: PathLike) -> str:
    """Root-relative, forward-slash form of `path`. Relative input is kept as is."""
    raw = os.fspath(path)
    if os.path.isabs(raw) and root_path:
        raw = os.path.relpath(raw, os.fspath(root_path))
    rel = normalize_path(raw)
    while rel.startswith("./"):
        rel = rel[2:]
    return rel.rstrip("/")


@lru_cache(maxsize=BAD_PATTERN_WARNINGS_REMEMBERED)
def _warn_invalid_pattern(pattern: str, message: str) -> None:
    # One warning per malformed pattern, remembered for a bounded number of patterns.
    logger.warning(f"Ignoring invalid pattern: {message}")


def reset_pattern_warnings() -> None:
    """Forgets which malformed patterns were already reported."""
    _warn_invalid_pattern.cache_clear()


def _first_match(rel_path: str, patterns: Iterable[str], is_directory: bool) -> Optional[str]:
    for pattern in patterns:
        try:
            compiled = compile_glob(pattern)
        except GlobPatternError as e:
            # Malformed patterns never match.
            _warn_invalid_pattern(pattern, str(e))
            continue
        if compiled.match(rel_path, is_directory=is_directory):
            return pattern
    return None


def _excluded_by_extension(rel_path: str, config: Configuration, is_directory: bool) -> bool:
    if is_directory or not config.use_custom_includes or not config.include_extensions:
        return False
    ext = posixpath.splitext(posixpath.basename(rel_path))[1]
    if not ext:
        return False
    return ext.lower() not in config.include_extensions


def evaluate(
    path: PathLike,
    root_path: PathLike,
    gitignore_patterns: Optional[GitignorePatterns],
    config: Configuration,
    is_directory: bool = False,
) -> FilterVerdict:
    """Decides whether `path` is excluded and records which rule decided it."""
    try:
        rel_path = to_relative_path(path, root_path)
        if not rel_path or rel_path == ".":
            return NOT_EXCLUDED

        # 1. Extension allow-list
        if _excluded_by_extension(rel_path, config, is_directory):
            return FilterVerdict(excluded=True, rule=FilterRule.EXTENSION)

        # 2. Custom excludes
        if config.use_custom_excludes and config.exclude_patterns:
            hit = _first_match(rel_path, config.exclude_patterns, is_directory)
            if hit is not None:
                return FilterVerdict(excluded=True, rule=FilterRule.CUSTOM_EXCLUDE, pattern=hit)

        if config.use_gitignore:
            patterns = gitignore_patterns or EMPTY_GITIGNORE_PATTERNS

            # 3. Gitignore negation (force include)
            hit = _first_match(rel_path, patterns.include_patterns, is_directory)
            if hit is not None:
                return FilterVerdict(excluded=False, rule=FilterRule.GITIGNORE_INCLUDE, pattern=hit)

            # 4. Gitignore excludes
            hit = _first_match(rel_path, patterns.exclude_patterns, is_directory)
            if hit is not None:
                return FilterVerdict(excluded=True, rule=FilterRule.GITIGNORE_EXCLUDE, pattern=hit)

        return NOT_EXCLUDED

    except Exception as e:
        # Fail open
        logger.warning(f"Filter error for {path}: {e}")
        return FilterVerdict(excluded=False, rule=FilterRule.ERROR)


def should_exclude(
    path: PathLike,
    root_path: PathLike,
    gitignore_patterns: Optional[GitignorePatterns],
    config: Configuration,
    is_directory: bool = False,
) -> bool:
    verdict = evaluate(path, root_path, gitignore_patterns, config, is_directory=is_directory)
    if verdict.excluded:
        logger.debug(f"Excluding {path} ({verdict.rule.value}: {verdict.pattern})")
    return verdict.excluded
