# src/repocat/cli.py
import sys
import argparse
import os
from pathlib import Path
from typing import List, Optional, Set

from repocat.config import DEFAULT_EXCLUDE_PATTERNS, TOP_FILES_SHOWN
from repocat.models import AnalysisResult, Configuration, ExportFormat
from repocat.session import RepositorySession
from repocat.utils.logger import setup_logger

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_BAD_ROOT = 2


def create_arg_parser():
    parser = argparse.ArgumentParser(
        prog="repocat",
        description="Select a repository's source files and assemble them into one Markdown or XML document.",
    )
    parser.add_argument("root_dir", type=str, nargs="?", default=os.getcwd(), help="Project root directory")
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        help="Output filename (default: {folder_name}_context.md or .xml)",
    )
    parser.add_argument("-e", "--extensions", type=str, default="*", help="Comma-separated file extensions or '*' for all")
    parser.add_argument(
        "-x", "--exclude",
        action="append",
        default=[],
        metavar="GLOB",
        help="Extra exclude pattern (repeatable)",
    )
    parser.add_argument("--no-default-excludes", action="store_true", help="Do not apply the built-in exclude patterns")
    parser.add_argument("--no-gitignore", action="store_true", help="Ignore .gitignore files")
    parser.add_argument(
        "-f", "--format",
        choices=[f.value for f in ExportFormat],
        default=ExportFormat.MARKDOWN.value,
        help="Output format",
    )
    parser.add_argument("--tree", action="store_true", help="Include a file tree at the top of the document")
    parser.add_argument("--no-token-count", action="store_true", help="Omit per-file token counts from the document")
    parser.add_argument("--no-secret-scan", action="store_true", help="Disable secret detection")
    parser.add_argument("--keep-suspicious", action="store_true", help="Report files with possible secrets but keep them")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress to stderr")
    return parser


def get_default_output_name(root_dir: Path, export_format: ExportFormat = ExportFormat.MARKDOWN) -> str:
    """Generates a dynamic filename based on the directory name."""
    folder_name = root_dir.name

    # Filesystem root or otherwise unnamed
    if not folder_name:
        folder_name = "project"

    safe_name = folder_name.replace(" ", "_")
    suffix = "xml" if export_format == ExportFormat.XML else "md"
    return f"{safe_name}_context.{suffix}"


def parse_extensions(raw: str) -> Set[str]:
    raw = raw.strip()
    if raw in ("", "*"):
        return set()
    return {e.strip() for e in raw.split(",") if e.strip()}


def build_configuration(args, output_pattern: str) -> Configuration:
    extensions = parse_extensions(args.extensions)
    patterns: List[str] = [] if args.no_default_excludes else list(DEFAULT_EXCLUDE_PATTERNS)
    patterns.extend(args.exclude)
    # Keep our own output out of later runs
    patterns.append(output_pattern)

    return Configuration(
        use_custom_includes=bool(extensions),
        include_extensions=frozenset(extensions),
        use_custom_excludes=True,
        exclude_patterns=tuple(patterns),
        use_gitignore=not args.no_gitignore,
        enable_secret_scanning=not args.no_secret_scan,
        exclude_suspicious_files=not args.keep_suspicious,
        show_token_count=not args.no_token_count,
        include_tree_view=args.tree,
        export_format=ExportFormat.coerce(args.format),
    )


def print_summary(analysis: AnalysisResult) -> None:
    accepted = sorted(analysis.accepted(), key=lambda x: x.tokens, reverse=True)

    print(f"\n--- Top {TOP_FILES_SHOWN} Largest Files (Est. Tokens) ---")
    print(f"{'Rank':<5} | {'Tokens':<10} | {'File Path'}")
    print("-" * 60)
    for i, f in enumerate(accepted[:TOP_FILES_SHOWN]):
        print(f"{i+1:<5} | {f.tokens:<10} | {f.path}")
    print("-" * 60)
    print(f"Total files:   {analysis.processed_files}")
    print(f"Skipped files: {analysis.skipped_files}")
    print(f"Total tokens:  {analysis.total_tokens}")
    print("-" * 60)

    skipped = [f for f in analysis.files_info if f.skipped]
    for f in skipped:
        print(f"  skipped ({f.skipped_reason.value}): {f.path}")


def main(argv: Optional[List[str]] = None) -> int:
    try:
        # 1. Setup
        parser = create_arg_parser()
        args = parser.parse_args(argv)
        setup_logger(args.verbose)

        root_dir = Path(args.root_dir).resolve()
        if not root_dir.is_dir():
            print(f"Error: Invalid directory '{root_dir}'", file=sys.stderr)
            return EXIT_BAD_ROOT

        export_format = ExportFormat.coerce(args.format)
        output_file_name = args.output or get_default_output_name(root_dir, export_format)
        output_file = Path(output_file_name)
        if not output_file.is_absolute():
            output_file = root_dir / output_file

        try:
            output_pattern = output_file.resolve().relative_to(root_dir).as_posix()
        except ValueError:
            output_pattern = output_file.name

        config = build_configuration(args, output_pattern)

        print(f"--- repocat ---")
        print(f"Scanning: {root_dir}")
        print(f"Output:   {output_file}")
        if config.use_custom_includes:
            print(f"Mode:     Extensions {sorted(config.include_extensions)}")
        else:
            print("Mode:     All non-ignored text files")

        # 2. Walk
        session = RepositorySession(root_dir, config)
        files = session.list_files()
        if not files:
            print("No matching files found.")
            return EXIT_ERROR

        # 3. Analysis & stats
        analysis = session.analyze(files)
        if analysis.processed_files == 0:
            print("No readable text files left after filtering.")
            return EXIT_ERROR
        print_summary(analysis)

        # 4. Output generation
        result = session.process(analysis.files_info)
        try:
            output_file.parent.mkdir(parents=True, exist_ok=True)
            with open(output_file, "w", encoding="utf-8") as f:
                f.write(result.content)
        except OSError as e:
            print(f"Error writing file: {e}", file=sys.stderr)
            return EXIT_ERROR

        print(
            f"\nSuccess! {result.processed_files} files ({result.total_tokens} tokens) "
            f"written to: {output_file.name}"
        )
        return EXIT_OK

    except KeyboardInterrupt:
        print("\nCancelled.", file=sys.stderr)
        return EXIT_ERROR

    except Exception as e:
        print(f"An unexpected error occurred: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
