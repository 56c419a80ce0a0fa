# src/repocat/session.py
import os
from pathlib import Path
from typing import Iterable, List, Optional

from repocat.core.analyzer import analyze_repository, resolve_exclusion
from repocat.core.assembler import process_repository
from repocat.core.filters import reset_pattern_warnings, to_relative_path
from repocat.core.ignore import GitignoreCache
from repocat.core.paths import PathLike, require_root
from repocat.core.scanner import CancelEventLike, ProjectScanner
from repocat.models import AnalysisResult, AnalyzedFile, Configuration, FilterVerdict, ProcessedRepository, TreeNode
from repocat.utils.logger import get_logger
from repocat.utils.tokenizer import TokenCounter

logger = get_logger(__name__)


def _validate_root(root_path: PathLike) -> Path:
    root = Path(os.path.abspath(require_root(root_path)))
    if not root.is_dir():
        raise ValueError(f"Not a directory: {root}")
    return root


class RepositorySession:
    """
    One selected root plus the gitignore cache shared by every walk and
    analysis against it. Changing the root or the configuration clears the
    cache.
    """

    def __init__(
        self,
        root_path: PathLike,
        config: Optional[Configuration] = None,
        cancel_event: Optional[CancelEventLike] = None,
    ):
        self.root_path = _validate_root(root_path)
        self.config = config or Configuration()
        self.cancel_event = cancel_event
        self.gitignore_cache = GitignoreCache()

    def _scanner(self) -> ProjectScanner:
        return ProjectScanner(self.root_path, self.config, self.gitignore_cache, self.cancel_event)

    def directory_tree(self) -> List[TreeNode]:
        return self._scanner().build_tree()

    def list_files(self) -> List[str]:
        return self._scanner().list_files()

    def evaluate(self, path: PathLike, is_directory: bool = False) -> FilterVerdict:
        """Verdict for one path, taking excluded ancestor directories into account."""
        rel_path = to_relative_path(path, self.root_path)
        if not rel_path or rel_path == ".":
            return FilterVerdict(excluded=False)
        return resolve_exclusion(
            rel_path, self.root_path, self.config, self.gitignore_cache, is_directory=is_directory
        )

    def analyze(self, selected_files: Iterable[str], count_tokens: Optional[TokenCounter] = None) -> AnalysisResult:
        return analyze_repository(
            self.root_path,
            selected_files,
            self.config,
            gitignore_cache=self.gitignore_cache,
            count_tokens=count_tokens,
            cancel_event=self.cancel_event,
        )

    def process(self, files_info: Iterable[AnalyzedFile], tree_view: Optional[str] = None) -> ProcessedRepository:
        return process_repository(
            self.root_path,
            files_info,
            tree_view=tree_view,
            config=self.config,
            cancel_event=self.cancel_event,
        )

    def reset_cache(self) -> None:
        self.gitignore_cache.reset()
        reset_pattern_warnings()

    def switch_root(self, root_path: PathLike) -> None:
        self.root_path = _validate_root(root_path)
        logger.info(f"Switched root to {self.root_path}")
        self.reset_cache()

    def update_config(self, config: Configuration) -> None:
        self.config = config
        self.reset_cache()
