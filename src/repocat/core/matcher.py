# src/repocat/core/matcher.py
"""
Shell-glob matching over root-relative, forward-slash paths.

Supported syntax: `*`, `**`, `?`, `[...]`, `{a,b}` (nested) and `{1..3}`.
A pattern without `/` is also tried against the basename, and a trailing `/`
means "this directory and everything beneath it" (`dir/` == `dir/**`).

Each alternative is translated by pathspec's gitignore pattern engine, which
already implements `*`/`**`/`?`/`[...]` with path-segment semantics; braces are
expanded up front because gitignore syntax has no alternation. Matching is
against the whole path: `a/b` does not match `a/b/c`, and only a trailing `**`
reaches into a directory's contents.
"""
import re
from functools import lru_cache
from typing import List, Optional, Tuple

import pathspec

_RANGE_RE = re.compile(r"^(-?\d+)\.\.(-?\d+)$")


class GlobPatternError(ValueError):
    """Raised for patterns that cannot be compiled."""


def normalize_glob(pattern: str) -> str:
    """Applies the directory rule: `dir/` becomes `dir/**`."""
    if pattern.endswith("/") and not pattern.endswith("\\/"):
        return pattern + "**"
    return pattern


def _split_brace_body(pattern: str, start: int) -> Tuple[Optional[int], Optional[List[str]]]:
    """
    Finds the `}` matching the `{` at `start`.
    Returns (close_index, alternatives); alternatives is None when the group is
    literal (no top-level comma and not a numeric range).
    """
    depth = 0
    parts: List[str] = []
    last = start + 1
    i = start
    while i < len(pattern):
        ch = pattern[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                body = pattern[start + 1:i]
                if parts:
                    parts.append(pattern[last:i])
                    return i, parts
                m = _RANGE_RE.match(body)
                if m:
                    lo, hi = int(m.group(1)), int(m.group(2))
                    step = 1 if hi >= lo else -1
                    return i, [str(n) for n in range(lo, hi + step, step)]
                return i, None
        elif ch == "," and depth == 1:
            parts.append(pattern[last:i])
            last = i + 1
        i += 1
    return None, None


def expand_braces(pattern: str) -> List[str]:
    """Expands `{a,b}` alternation into a list of plain glob patterns."""
    i = 0
    while i < len(pattern):
        ch = pattern[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "{":
            close, options = _split_brace_body(pattern, i)
            if close is not None and options is not None:
                prefix, suffix = pattern[:i], pattern[close + 1:]
                results: List[str] = []
                for option in options:
                    for expanded in expand_braces(prefix + option + suffix):
                        if expanded not in results:
                            results.append(expanded)
                return results
        i += 1
    return [pattern]


_GITIGNORE_PATTERN = pathspec.lookup_pattern("gitignore")

# pathspec ends a plain last segment with "(?:/|$)" so that a pattern also
# covers everything beneath a matching directory.
_DESCENDANT_SUFFIX = "(?:/|$)"


def _to_gitignore_line(glob: str) -> str:
    # A leading "!" or "#" is literal in glob syntax but special in gitignore.
    if glob.startswith("!") or glob.startswith("#"):
        return "\\" + glob
    return glob


def _compile_alternative(glob: str) -> Optional["re.Pattern[str]"]:
    regex, _include = _GITIGNORE_PATTERN.pattern_to_regex(_to_gitignore_line(glob))
    if regex is None:
        return None
    if regex.endswith(_DESCENDANT_SUFFIX):
        regex = regex[: -len(_DESCENDANT_SUFFIX)] + "$"
    return re.compile(regex)


class CompiledGlob:
    """A glob compiled once and evaluated against many paths."""

    __slots__ = ("pattern", "basename_only", "_regexes")

    def __init__(self, pattern: str):
        self.pattern = pattern
        self.basename_only = "/" not in pattern
        alternatives = [normalize_glob(p) for p in expand_braces(pattern)]
        try:
            compiled = [_compile_alternative(p) for p in alternatives if p]
        except (ValueError, re.error) as e:
            raise GlobPatternError(f"Invalid glob pattern {pattern!r}: {e}") from e
        self._regexes = [r for r in compiled if r is not None]

    def _search(self, path: str) -> bool:
        return any(regex.search(path) for regex in self._regexes)

    def match(self, path: str, is_directory: bool = False) -> bool:
        path = path.replace("\\", "/").lstrip("/")
        if not path:
            return False
        if self._search(path):
            return True
        # "dist/**" should also cover the directory "dist" itself.
        if is_directory and self._search(path.rstrip("/") + "/"):
            return True
        if self.basename_only and "/" in path.rstrip("/"):
            basename = path.rstrip("/").rsplit("/", 1)[1]
            return self._search(basename)
        return False

    def __repr__(self) -> str:
        return f"CompiledGlob({self.pattern!r})"


@lru_cache(maxsize=4096)
def compile_glob(pattern: str) -> CompiledGlob:
    """Compiles (and caches) a glob pattern. Raises GlobPatternError."""
    return CompiledGlob(pattern)


def matches(path: str, pattern: str, is_directory: bool = False) -> bool:
    """Returns True when `path` matches `pattern`. Raises GlobPatternError."""
    return compile_glob(pattern).match(path, is_directory=is_directory)
