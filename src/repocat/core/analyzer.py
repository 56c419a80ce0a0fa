# src/repocat/core/analyzer.py
"""
Token analysis of an explicit file selection.

Every selected entry ends up either counted or skipped with a reason, so
processed_files + skipped_files always equals the number of entries given.
"""
import os
from pathlib import Path
from typing import Iterable, List, Optional

from repocat.core.filters import evaluate, to_relative_path
from repocat.core.gates import is_binary_file, should_skip_suspicious
from repocat.core.ignore import GitignoreCache
from repocat.core.paths import PathLike, is_within_root, real_path, require_root, resolve_in_root
from repocat.core.scanner import CancelEventLike, is_cancelled
from repocat.models import (
    EMPTY_GITIGNORE_PATTERNS,
    AnalysisResult,
    AnalyzedFile,
    Configuration,
    FilterVerdict,
    SkipReason,
)
from repocat.utils.logger import get_logger
from repocat.utils.tokenizer import TokenCounter, safe_count_tokens

logger = get_logger(__name__)


def resolve_exclusion(
    rel_path: str,
    root_path: PathLike,
    config: Configuration,
    gitignore_cache: GitignoreCache,
    is_directory: bool = False,
) -> FilterVerdict:
    """
    Verdict for a path as the directory walk would reach it: each ancestor
    directory is checked first, with the rules of its own parent.
    """
    root = Path(root_path)
    parts = rel_path.split("/")
    verdict = FilterVerdict(excluded=False)

    for depth in range(1, len(parts) + 1):
        candidate = "/".join(parts[:depth])
        is_dir = is_directory or depth < len(parts)
        if config.use_gitignore:
            parent = root.joinpath(*parts[:depth - 1]) if depth > 1 else root
            patterns = gitignore_cache.patterns_for(parent, root)
        else:
            patterns = EMPTY_GITIGNORE_PATTERNS
        verdict = evaluate(candidate, root, patterns, config, is_directory=is_dir)
        if verdict.excluded:
            return verdict
    return verdict


def read_text(path: PathLike) -> str:
    """Strict UTF-8 read; raises OSError or UnicodeDecodeError."""
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def _analyze_entry(
    entry: str,
    root: Path,
    config: Configuration,
    gitignore_cache: GitignoreCache,
    count_tokens: Optional[TokenCounter],
) -> AnalyzedFile:
    if not isinstance(entry, str) or not entry.strip():
        logger.info(f"Skipping invalid entry: {entry!r}")
        return AnalyzedFile(path=str(entry), skipped_reason=SkipReason.INVALID)

    abs_path = resolve_in_root(root, entry)
    if not is_within_root(root, abs_path):
        logger.warning(f"Skipping {entry}: resolves outside the repository root")
        return AnalyzedFile(path=entry, skipped_reason=SkipReason.OUTSIDE_ROOT)

    # Absolute entries are reported root-relative from here on.
    rel_path = to_relative_path(abs_path, root)
    if rel_path.startswith("../"):
        rel_path = to_relative_path(real_path(abs_path), real_path(root))

    if not abs_path.is_file():
        logger.info(f"Skipping {rel_path}: not found")
        return AnalyzedFile(path=rel_path, skipped_reason=SkipReason.NOT_FOUND)

    verdict = resolve_exclusion(rel_path, root, config, gitignore_cache)
    if verdict.excluded:
        logger.info(f"Skipping {rel_path}: excluded by {verdict.rule.value} ({verdict.pattern})")
        return AnalyzedFile(path=rel_path, skipped_reason=SkipReason.EXCLUDED)

    if is_binary_file(abs_path):
        logger.info(f"Skipping binary file: {rel_path}")
        return AnalyzedFile(path=rel_path, skipped_reason=SkipReason.BINARY)

    try:
        content = read_text(abs_path)
    except UnicodeDecodeError:
        logger.info(f"Skipping {rel_path}: not valid UTF-8")
        return AnalyzedFile(path=rel_path, skipped_reason=SkipReason.BINARY)
    except OSError as e:
        logger.warning(f"Skipping {rel_path}: read failed ({e})")
        return AnalyzedFile(path=rel_path, skipped_reason=SkipReason.READ_ERROR)

    if should_skip_suspicious(rel_path, content, config):
        return AnalyzedFile(path=rel_path, skipped_reason=SkipReason.SUSPICIOUS)

    return AnalyzedFile(path=rel_path, tokens=safe_count_tokens(content, count_tokens))


def analyze_repository(
    root_path: PathLike,
    selected_files: Iterable[str],
    config: Configuration,
    gitignore_cache: Optional[GitignoreCache] = None,
    count_tokens: Optional[TokenCounter] = None,
    cancel_event: Optional[CancelEventLike] = None,
) -> AnalysisResult:
    """
    Counts tokens for each selected file, in the order given.
    Entries are root-relative (or absolute) paths; after cancellation the
    remaining entries are skipped as cancelled.
    """
    root = Path(os.path.abspath(require_root(root_path)))
    cache = gitignore_cache if gitignore_cache is not None else GitignoreCache()

    files_info: List[AnalyzedFile] = []
    cancelled = False
    for entry in selected_files:
        if not cancelled and is_cancelled(cancel_event):
            cancelled = True
            logger.info("Analysis cancelled.")
        if cancelled:
            files_info.append(AnalyzedFile(path=str(entry), skipped_reason=SkipReason.CANCELLED))
            continue
        try:
            info = _analyze_entry(entry, root, config, cache, count_tokens)
        except Exception as e:
            logger.warning(f"Skipping {entry}: unexpected error ({e})")
            info = AnalyzedFile(path=str(entry), skipped_reason=SkipReason.READ_ERROR)
        files_info.append(info)

    processed = [f for f in files_info if not f.skipped]
    return AnalysisResult(
        files_info=tuple(files_info),
        total_tokens=sum(f.tokens for f in processed),
        processed_files=len(processed),
        skipped_files=len(files_info) - len(processed),
    )
