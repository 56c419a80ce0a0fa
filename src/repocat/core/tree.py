# src/repocat/core/tree.py
from typing import Dict, Iterable, List, Optional

# A directory maps child names to subtrees; a file leaf is None.
PathTree = Dict[str, Optional["PathTree"]]


def build_path_tree(file_paths: Iterable[str]) -> PathTree:
    """
    Builds a prefix tree from root-relative paths, inserted in sorted order.
    A name first seen as a file and later as a directory is promoted.
    """
    tree: PathTree = {}
    for path in sorted(p for p in file_paths if p):
        parts = [part for part in path.replace("\\", "/").split("/") if part]
        current_level = tree
        for i, part in enumerate(parts):
            is_leaf = i == len(parts) - 1
            existing = current_level.get(part)
            if is_leaf:
                if part not in current_level:
                    current_level[part] = None
                break
            if existing is None:
                existing = {}
                current_level[part] = existing
            current_level = existing
    return tree


def render_tree(tree: PathTree, prefix: str = "") -> str:
    """Renders the tree with ├── / └── / │ connectors, one entry per line."""
    lines: List[str] = []

    def _generate_lines_recursive(subtree: PathTree, prefix: str):
        entries = list(subtree.items())
        for i, (name, content) in enumerate(entries):
            is_last = (i == len(entries) - 1)
            connector = "└── " if is_last else "├── "
            lines.append(f"{prefix}{connector}{name}")

            if content is not None:
                new_prefix = prefix + ("    " if is_last else "│   ")
                _generate_lines_recursive(content, new_prefix)

    _generate_lines_recursive(tree, prefix)
    return "".join(line + "\n" for line in lines)


def generate_tree_view(file_paths: Iterable[str], root_name: Optional[str] = None) -> str:
    """ASCII tree for a set of paths, optionally headed by `root_name/`."""
    body = render_tree(build_path_tree(file_paths))
    if root_name:
        return f"{root_name}/\n{body}"
    return body
