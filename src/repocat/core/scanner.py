# src/repocat/core/scanner.py
import os
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Protocol, Set, Union

from repocat.core.filters import evaluate
from repocat.core.ignore import GitignoreCache
from repocat.core.paths import real_path, require_root
from repocat.models import EMPTY_GITIGNORE_PATTERNS, Configuration, FileEntry, GitignorePatterns, TreeNode
from repocat.utils.logger import get_logger

logger = get_logger(__name__)


class CancelEventLike(Protocol):
    """Duck-typed cancel event (e.g., threading.Event)."""
    def is_set(self) -> bool: ...


def is_cancelled(cancel_event: Optional[CancelEventLike]) -> bool:
    return bool(cancel_event is not None and cancel_event.is_set())


class ProjectScanner:
    """
    Walks a root directory and yields the entries the filter resolver keeps.
    Excluded directories are pruned, so nothing beneath them is visited.
    """

    def __init__(
        self,
        root_dir: Union[str, Path],
        config: Configuration,
        gitignore_cache: Optional[GitignoreCache] = None,
        cancel_event: Optional[CancelEventLike] = None,
    ):
        self.root_dir = Path(os.path.abspath(require_root(root_dir)))
        self.config = config
        self.gitignore_cache = gitignore_cache if gitignore_cache is not None else GitignoreCache()
        self.cancel_event = cancel_event
        self.cancelled = False

    def _patterns_for(self, directory: Path) -> GitignorePatterns:
        if not self.config.use_gitignore:
            return EMPTY_GITIGNORE_PATTERNS
        return self.gitignore_cache.patterns_for(directory, self.root_dir)

    def _is_excluded(self, rel_path: str, patterns: GitignorePatterns, is_directory: bool) -> bool:
        verdict = evaluate(rel_path, self.root_dir, patterns, self.config, is_directory=is_directory)
        if verdict.excluded:
            logger.debug(f"Pruning {rel_path} ({verdict.rule.value}: {verdict.pattern})")
        return verdict.excluded

    def _check_cancel(self) -> bool:
        if not self.cancelled and is_cancelled(self.cancel_event):
            self.cancelled = True
            logger.info("Directory walk cancelled.")
        return self.cancelled

    def scan(self) -> Iterator[FileEntry]:
        """
        Yields a FileEntry for every kept directory and file, parents first.
        Symlinks are skipped, and a canonical directory is never walked twice.
        """
        self.cancelled = False
        visited: Set[Path] = set()

        def _on_error(err: OSError) -> None:
            logger.warning(f"Cannot read directory {err.filename}: {err.strerror}")

        for root, dirs, files in os.walk(self.root_dir, topdown=True, onerror=_on_error):
            if self._check_cancel():
                dirs[:] = []
                return

            root_path = Path(root)
            canonical = real_path(root_path)
            if canonical in visited:
                logger.warning(f"Skipping previously visited directory: {root_path}")
                dirs[:] = []
                continue
            visited.add(canonical)

            rel_root = root_path.relative_to(self.root_dir).as_posix()
            rel_root = "" if rel_root == "." else rel_root
            patterns = self._patterns_for(root_path)

            # --- 1. Prune directories (in place, so os.walk never enters them) ---
            kept_dirs: List[str] = []
            for d in sorted(dirs, key=str.lower):
                dir_abs_path = root_path / d
                rel_path = f"{rel_root}/{d}" if rel_root else d
                if dir_abs_path.is_symlink():
                    logger.info(f"Skipping symlinked directory: {rel_path}")
                    continue
                if self._is_excluded(rel_path, patterns, is_directory=True):
                    continue
                kept_dirs.append(d)
                yield FileEntry(path=rel_path, is_directory=True)
            dirs[:] = kept_dirs

            # --- 2. Files ---
            for f in sorted(files, key=str.lower):
                if self._check_cancel():
                    dirs[:] = []
                    return
                file_abs_path = root_path / f
                rel_path = f"{rel_root}/{f}" if rel_root else f
                if file_abs_path.is_symlink():
                    logger.info(f"Skipping symlinked file: {rel_path}")
                    continue
                if self._is_excluded(rel_path, patterns, is_directory=False):
                    continue
                try:
                    size = file_abs_path.stat().st_size
                except OSError as e:
                    logger.warning(f"Skipping {rel_path} (stat failed: {e})")
                    continue
                yield FileEntry(path=rel_path, is_directory=False, size=size)

    def list_files(self) -> List[str]:
        """Root-relative paths of every kept file, in walk order."""
        return [entry.path for entry in self.scan() if not entry.is_directory]

    def build_tree(self) -> List[TreeNode]:
        """
        Display tree of kept entries: directories before files, then by name.
        Directories left with no kept files are dropped.
        """
        top = TreeNode(name=self.root_dir.name, path="", is_directory=True)
        nodes: Dict[str, TreeNode] = {"": top}

        for entry in self.scan():
            parent_path, _, name = entry.path.rpartition("/")
            parent = nodes.get(parent_path)
            if parent is None:
                continue
            node = TreeNode(name=name, path=entry.path, is_directory=entry.is_directory, size=entry.size)
            parent.children.append(node)
            if entry.is_directory:
                nodes[entry.path] = node

        return _finalize(top.children)


def _finalize(children: List[TreeNode]) -> List[TreeNode]:
    kept: List[TreeNode] = []
    for child in children:
        if child.is_directory:
            child.children = _finalize(child.children)
            if not child.children:
                continue
            child.size = sum(c.size for c in child.children)
        kept.append(child)
    kept.sort(key=lambda n: (not n.is_directory, n.name.lower(), n.name))
    return kept
