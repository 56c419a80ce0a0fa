# src/repocat/core/assembler.py
import os
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from repocat.core.analyzer import read_text
from repocat.core.export import escape_xml_attribute, markdown_fence, wrap_cdata, xml_numeric_attribute
from repocat.core.filters import to_relative_path
from repocat.core.gates import is_binary_file, should_skip_suspicious
from repocat.core.paths import PathLike, is_within_root, require_root, resolve_in_root
from repocat.core.scanner import CancelEventLike, is_cancelled
from repocat.core.tree import generate_tree_view
from repocat.models import AnalyzedFile, Configuration, ExportFormat, ProcessedRepository, SkipReason
from repocat.utils.logger import get_logger
from repocat.utils.tokenizer import normalize_token_count

logger = get_logger(__name__)


def build_header(config: Configuration, tree_view: Optional[str]) -> str:
    if config.export_format == ExportFormat.XML:
        header = '<?xml version="1.0" encoding="UTF-8"?>\n<repositoryContent>\n'
        if config.include_tree_view:
            header += f"<fileStructure>{wrap_cdata(tree_view or '')}</fileStructure>\n"
        return header + "<files>\n"

    header = "# Repository Content\n\n"
    if config.include_tree_view:
        header += "## File Structure\n\n"
        tree_view = tree_view or ""
        if tree_view and not tree_view.endswith("\n"):
            tree_view += "\n"
        header += "```\n"
        header += tree_view
        header += "```\n\n"
        header += "## File Contents\n\n"
    return header


def format_file(rel_path: str, content: str, tokens: int, config: Configuration) -> str:
    """One file section in the configured export format."""
    if config.export_format == ExportFormat.XML:
        attrs = f'path="{escape_xml_attribute(rel_path)}"'
        if config.show_token_count:
            attrs += f' tokens="{xml_numeric_attribute(tokens)}"'
        return f"<file {attrs}>{wrap_cdata(content)}</file>\n"

    section = f"######\n{rel_path}\n"
    if config.show_token_count:
        section += f"Tokens: {normalize_token_count(tokens)}\n"
    section += "######\n\n"
    fence = markdown_fence(content)
    return section + f"{fence}\n{content}\n{fence}\n\n"


def build_footer(config: Configuration, total_tokens: int, processed_files: int, skipped_files: int) -> str:
    if config.export_format == ExportFormat.XML:
        return (
            "</files>\n"
            f'<summary totalTokens="{xml_numeric_attribute(total_tokens)}" '
            f'processedFiles="{xml_numeric_attribute(processed_files)}" '
            f'skippedFiles="{xml_numeric_attribute(skipped_files)}" />\n'
            "</repositoryContent>\n"
        )
    return "\n--END--\n"


def _load_entry(root: Path, info: AnalyzedFile, config: Configuration) -> Tuple[Optional[str], Optional[SkipReason]]:
    """Content of an accepted entry, or the reason it cannot be emitted."""
    if not info.path or not str(info.path).strip():
        return None, SkipReason.INVALID

    abs_path = resolve_in_root(root, info.path)
    if not is_within_root(root, abs_path):
        logger.warning(f"Skipping file outside root directory: {info.path}")
        return None, SkipReason.OUTSIDE_ROOT
    if not abs_path.is_file():
        logger.warning(f"File not found: {info.path}")
        return None, SkipReason.NOT_FOUND
    if is_binary_file(abs_path):
        logger.info(f"Skipping binary file: {info.path}")
        return None, SkipReason.BINARY

    try:
        content = read_text(abs_path)
    except UnicodeDecodeError:
        logger.info(f"Skipping {info.path}: not valid UTF-8")
        return None, SkipReason.BINARY
    except OSError as e:
        logger.warning(f"Failed to read {info.path}: {e}")
        return None, SkipReason.READ_ERROR

    if should_skip_suspicious(to_relative_path(abs_path, root), content, config):
        return None, SkipReason.SUSPICIOUS
    return content, None


def process_repository(
    root_path: PathLike,
    files_info: Iterable[AnalyzedFile],
    tree_view: Optional[str] = None,
    config: Optional[Configuration] = None,
    cancel_event: Optional[CancelEventLike] = None,
) -> ProcessedRepository:
    """
    Assembles the accepted files into one Markdown or XML document.

    Files are emitted in the order given. Entries that already carry a skip
    reason are counted as skipped without being read; the rest are re-checked
    against the root guard and the content gates before their text is written.
    Token counts come from the analysis and are not recomputed. A generated
    tree view lists exactly the files that made it into the document.
    """
    root = Path(os.path.abspath(require_root(root_path)))
    config = config or Configuration()
    entries = list(files_info)

    logger.info(
        f"Processing {len(entries)} files as {config.export_format.value} "
        f"(tokens={config.show_token_count}, tree={config.include_tree_view})"
    )

    sections: List[str] = []
    results: List[AnalyzedFile] = []
    total_tokens = 0
    processed_files = 0
    cancelled = False

    for info in entries:
        if not cancelled and is_cancelled(cancel_event):
            cancelled = True
            logger.info("Processing cancelled.")
        if cancelled:
            results.append(AnalyzedFile(path=info.path, tokens=info.tokens, skipped_reason=SkipReason.CANCELLED))
            continue
        if info.skipped:
            results.append(info)
            continue

        try:
            content, reason = _load_entry(root, info, config)
            if reason is not None:
                results.append(AnalyzedFile(path=info.path, tokens=info.tokens, skipped_reason=reason))
                continue

            tokens = normalize_token_count(info.tokens)
            sections.append(format_file(info.path, content, tokens, config))
            results.append(AnalyzedFile(path=info.path, tokens=tokens))
            total_tokens += tokens
            processed_files += 1
        except Exception as e:
            logger.warning(f"Failed to process file {info.path}: {e}")
            results.append(AnalyzedFile(path=info.path, tokens=info.tokens, skipped_reason=SkipReason.READ_ERROR))

    if config.include_tree_view and not tree_view:
        tree_view = generate_tree_view(info.path for info in results if not info.skipped)

    skipped_files = len(results) - processed_files
    parts = [build_header(config, tree_view)]
    parts.extend(sections)
    parts.append(build_footer(config, total_tokens, processed_files, skipped_files))

    return ProcessedRepository(
        content="".join(parts),
        export_format=config.export_format,
        total_tokens=total_tokens,
        processed_files=processed_files,
        skipped_files=skipped_files,
        files_info=tuple(results),
    )
