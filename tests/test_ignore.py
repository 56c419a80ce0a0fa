# tests/test_ignore.py
import os

from repocat.config import BUILD_ARTIFACT_PATTERNS
from repocat.core.ignore import BUILTIN_ORIGIN, GitignoreCache, gitignore_to_glob, load_gitignore, parse_gitignore


# --- Pattern conversion ---

def test_slashless_pattern_matches_at_any_depth():
    assert gitignore_to_glob("*.log") == "**/*.log"
    assert gitignore_to_glob("**/cache") == "**/cache"


def test_leading_slash_anchors_to_gitignore_directory():
    assert gitignore_to_glob("/build") == "build"
    assert gitignore_to_glob("/build", base="web") == "web/build"


def test_trailing_slash_is_directory_pattern():
    assert gitignore_to_glob("logs/") == "**/logs/**"
    assert gitignore_to_glob("/out/") == "out/**"


def test_inner_slash_is_relative_to_base():
    assert gitignore_to_glob("docs/*.md") == "docs/*.md"
    assert gitignore_to_glob("docs/*.md", base="pkg/") == "pkg/docs/*.md"
    assert gitignore_to_glob("*.tmp", base="pkg") == "pkg/**/*.tmp"


def test_bare_slash_yields_nothing():
    assert gitignore_to_glob("/") is None


# --- Parsing ---

def test_parse_splits_negations_and_skips_comments():
    content = "# build output\n\n*.log\n!important.log\nbuild/\n   \n"
    patterns = parse_gitignore(content)
    assert patterns.exclude_patterns == ("**/*.log", "**/build/**")
    assert patterns.include_patterns == ("**/important.log",)


def test_parse_trims_whitespace_and_deduplicates():
    patterns = parse_gitignore("  *.tmp  \n*.tmp\n\t*.bak\n")
    assert patterns.exclude_patterns == ("**/*.tmp", "**/*.bak")


def test_parse_records_origin():
    patterns = parse_gitignore("node_modules/\n", source="/repo/.gitignore")
    assert patterns.origins == {"**/node_modules/**": "/repo/.gitignore"}


def test_load_missing_gitignore_is_empty(tmp_path):
    assert load_gitignore(tmp_path).is_empty()


def test_load_gitignore_with_base(tmp_path):
    (tmp_path / ".gitignore").write_text("*.gen.ts\n", encoding="utf-8")
    patterns = load_gitignore(tmp_path, base="web")
    assert patterns.exclude_patterns == ("web/**/*.gen.ts",)


# --- Cache ---

def test_cache_merges_closest_directory_first(tmp_path):
    (tmp_path / ".gitignore").write_text("*.log\n", encoding="utf-8")
    sub = tmp_path / "pkg"
    sub.mkdir()
    (sub / ".gitignore").write_text("generated/\n", encoding="utf-8")

    cache = GitignoreCache()
    patterns = cache.patterns_for(sub, tmp_path)

    assert patterns.exclude_patterns[0] == "pkg/**/generated/**"
    assert "**/*.log" in patterns.exclude_patterns
    # Built-in artifacts sit at the root level, after the user's rules.
    assert patterns.exclude_patterns[-len(BUILD_ARTIFACT_PATTERNS):] == tuple(BUILD_ARTIFACT_PATTERNS)
    assert patterns.origins["**/bundle.js"] == BUILTIN_ORIGIN


def test_nested_rules_do_not_leak_to_siblings(tmp_path):
    (tmp_path / "a").mkdir()
    (tmp_path / "b").mkdir()
    (tmp_path / "a" / ".gitignore").write_text("*.txt\n", encoding="utf-8")

    cache = GitignoreCache()
    assert "a/**/*.txt" in cache.patterns_for(tmp_path / "a", tmp_path).exclude_patterns
    assert "a/**/*.txt" not in cache.patterns_for(tmp_path / "b", tmp_path).exclude_patterns


def test_cache_keys_are_canonical_absolute_paths(tmp_path):
    cache = GitignoreCache()
    cache.patterns_for(tmp_path, tmp_path)
    root_real = os.path.realpath(str(tmp_path))
    assert (root_real, root_real) in cache
    assert len(cache) == 1


def test_cache_is_not_shared_between_roots(tmp_path):
    one = tmp_path / "one"
    two = tmp_path / "two"
    one.mkdir()
    two.mkdir()
    (one / ".gitignore").write_text("*.one\n", encoding="utf-8")
    (two / ".gitignore").write_text("*.two\n", encoding="utf-8")

    cache = GitignoreCache()
    assert "**/*.one" in cache.patterns_for(one, one).exclude_patterns
    assert "**/*.two" in cache.patterns_for(two, two).exclude_patterns
    assert "**/*.one" not in cache.patterns_for(two, two).exclude_patterns


def test_reset_is_idempotent_and_picks_up_changes(tmp_path):
    gitignore = tmp_path / ".gitignore"
    gitignore.write_text("*.old\n", encoding="utf-8")

    cache = GitignoreCache(extra_excludes=[])
    assert cache.patterns_for(tmp_path, tmp_path).exclude_patterns == ("**/*.old",)

    gitignore.write_text("*.new\n", encoding="utf-8")
    # Stale until reset
    assert cache.patterns_for(tmp_path, tmp_path).exclude_patterns == ("**/*.old",)

    cache.reset()
    cache.reset()
    assert len(cache) == 0
    assert cache.patterns_for(tmp_path, tmp_path).exclude_patterns == ("**/*.new",)


def test_patterns_for_file_uses_parent_directory(tmp_path):
    (tmp_path / "pkg").mkdir()
    (tmp_path / "pkg" / ".gitignore").write_text("*.tmp\n", encoding="utf-8")

    cache = GitignoreCache(extra_excludes=[])
    patterns = cache.patterns_for_file("pkg/x.tmp", tmp_path)
    assert patterns.exclude_patterns == ("pkg/**/*.tmp",)
