# src/repocat/core/paths.py
import os
from pathlib import Path
from typing import Union

PathLike = Union[str, Path]


def require_root(root_path: PathLike) -> Path:
    """Validates the root argument; a missing root is a programmer error."""
    if root_path is None or not os.fspath(root_path):
        raise ValueError("root_path is required")
    return Path(root_path)


def real_path(path: PathLike) -> Path:
    """Canonical absolute path; symlinks resolved where they exist."""
    return Path(os.path.realpath(os.path.abspath(os.fspath(path))))


def is_within_root(root_path: PathLike, candidate: PathLike) -> bool:
    """True when `candidate` (after resolving symlinks and `..`) lies inside the root."""
    root_real = real_path(root_path)
    candidate_real = real_path(candidate)
    return candidate_real == root_real or root_real in candidate_real.parents


def resolve_in_root(root_path: PathLike, rel_path: str) -> Path:
    """Joins a root-relative (or absolute) path onto the root without resolving links."""
    return Path(os.path.abspath(os.path.join(os.fspath(root_path), rel_path)))
