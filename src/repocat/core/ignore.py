# src/repocat/core/ignore.py
import os
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from repocat.config import BUILD_ARTIFACT_PATTERNS, GITIGNORE_FILENAME
from repocat.models import GitignorePatterns
from repocat.utils.logger import get_logger

logger = get_logger(__name__)

PathLike = Union[str, Path]

BUILTIN_ORIGIN = "<builtin>"


def _strip_line(raw: str) -> str:
    """Trims surrounding whitespace, keeping a trailing space escaped with `\\`."""
    line = raw.strip()
    if line.endswith("\\") and raw.rstrip() != raw:
        line += " "
    return line


def gitignore_to_glob(pattern: str, base: str = "") -> Optional[str]:
    """
    Converts one gitignore pattern (negation already removed) into matcher
    syntax, relative to the repository root.

    - leading `/` anchors the pattern to the .gitignore's directory
    - a pattern with no inner `/` matches at any depth (`**/` prefix)
    - trailing `/` becomes `/**` (directory and everything beneath it)
    """
    anchored = pattern.startswith("/")
    body = pattern.lstrip("/")
    is_dir = body.endswith("/") and not body.endswith("\\/")
    core = body.rstrip("/") if is_dir else body
    if not core:
        return None

    if not anchored and "/" not in core and not core.startswith("**"):
        core = "**/" + core
    glob = core + "/**" if is_dir else core

    base = base.strip("/")
    if base:
        glob = f"{base}/{glob}"
    return glob


def parse_gitignore(content: str, base: str = "", source: Optional[str] = None) -> GitignorePatterns:
    """
    Parses .gitignore text into exclude / force-include globs.
    `base` is the root-relative directory holding the file ("" for the root).
    """
    excludes: List[str] = []
    includes: List[str] = []
    origins: Dict[str, str] = {}

    for raw in content.splitlines():
        line = _strip_line(raw)
        if not line or line.startswith("#"):
            continue

        negated = line.startswith("!")
        if negated:
            line = line[1:].strip()
            if not line:
                continue

        glob = gitignore_to_glob(line, base)
        if glob is None:
            continue

        target = includes if negated else excludes
        if glob not in target:
            target.append(glob)
        if source:
            origins.setdefault(glob, source)

    return GitignorePatterns(
        exclude_patterns=tuple(excludes),
        include_patterns=tuple(includes),
        origins=origins,
    )


def load_gitignore(directory: PathLike, base: str = "") -> GitignorePatterns:
    """Reads `directory/.gitignore`; a missing or unreadable file yields no rules."""
    gitignore_file = Path(directory) / GITIGNORE_FILENAME
    if not gitignore_file.is_file():
        return GitignorePatterns()

    try:
        content = gitignore_file.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.warning(f"Could not read {gitignore_file}: {e}")
        return GitignorePatterns()

    patterns = parse_gitignore(content, base=base, source=str(gitignore_file))
    logger.debug(
        f"Loaded {gitignore_file}: {len(patterns.exclude_patterns)} excludes, "
        f"{len(patterns.include_patterns)} negations"
    )
    return patterns


def builtin_patterns(extra_excludes: Iterable[str]) -> GitignorePatterns:
    excludes = tuple(extra_excludes)
    return GitignorePatterns(
        exclude_patterns=excludes,
        origins={p: BUILTIN_ORIGIN for p in excludes},
    )


def _canonical(path: PathLike) -> str:
    return os.path.realpath(os.path.abspath(os.fspath(path)))


class GitignoreCache:
    """
    Per-session cache: canonical directory -> rules merged from every
    .gitignore between the root and that directory (closest first).

    Entries are keyed by (directory, root), both canonical absolute paths, so
    sessions on different roots never share entries. Nothing is invalidated
    implicitly; call reset() when the root or a .gitignore changes.
    """

    def __init__(self, extra_excludes: Optional[Iterable[str]] = None):
        if extra_excludes is None:
            extra_excludes = BUILD_ARTIFACT_PATTERNS
        self._builtin = builtin_patterns(extra_excludes)
        self._merged: Dict[Tuple[str, str], GitignorePatterns] = {}

    def __len__(self) -> int:
        return len(self._merged)

    def __contains__(self, key: object) -> bool:
        return key in self._merged

    def reset(self) -> None:
        """Drops every cached entry. Safe to call any number of times."""
        if self._merged:
            logger.debug(f"Clearing gitignore cache ({len(self._merged)} entries)")
        self._merged.clear()

    def patterns_for(self, directory: PathLike, root: PathLike) -> GitignorePatterns:
        """Rules that apply to entries directly inside `directory`."""
        root_real = _canonical(root)
        dir_real = _canonical(directory)
        return self._resolve(dir_real, root_real)

    def patterns_for_file(self, file_path: PathLike, root: PathLike) -> GitignorePatterns:
        root_path = Path(root)
        candidate = Path(file_path)
        if not candidate.is_absolute():
            candidate = root_path / candidate
        return self.patterns_for(candidate.parent, root_path)

    def _resolve(self, dir_real: str, root_real: str) -> GitignorePatterns:
        key = (dir_real, root_real)
        cached = self._merged.get(key)
        if cached is not None:
            return cached

        if dir_real == root_real:
            merged = load_gitignore(root_real).merge(self._builtin)
        elif _is_within(root_real, dir_real):
            parent = self._resolve(os.path.dirname(dir_real), root_real)
            base = Path(os.path.relpath(dir_real, root_real)).as_posix()
            merged = load_gitignore(dir_real, base=base).merge(parent)
        else:
            logger.debug(f"Directory {dir_real} is outside root {root_real}; using root rules")
            merged = self._resolve(root_real, root_real)

        self._merged[key] = merged
        return merged


def _is_within(root_real: str, candidate_real: str) -> bool:
    try:
        return os.path.commonpath([root_real, candidate_real]) == root_real
    except ValueError:
        # Different drives on Windows.
        return False
