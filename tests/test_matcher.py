# tests/test_matcher.py
import pytest

from repocat.core.matcher import GlobPatternError, compile_glob, expand_braces, matches, normalize_glob


# --- Wildcards ---

def test_star_does_not_cross_slash():
    assert matches("src/a.py", "src/*.py")
    assert not matches("src/pkg/a.py", "src/*.py")


def test_double_star_crosses_segments():
    assert matches("node_modules/react/index.js", "**/node_modules/**")
    assert matches("web/node_modules/lib/x.js", "**/node_modules/**")
    assert matches("src/deep/nested/file.ts", "src/**/*.ts")
    assert matches("src/file.ts", "src/**/*.ts")


def test_question_mark_matches_one_character():
    assert matches("file1.txt", "file?.txt")
    assert not matches("file10.txt", "file?.txt")


def test_character_class():
    assert matches("a.txt", "[abc].txt")
    assert not matches("d.txt", "[abc].txt")


def test_matching_is_case_sensitive():
    assert matches("main.py", "*.py")
    assert not matches("main.py", "*.PY")


# --- Basename matching ---

def test_slashless_pattern_matches_basename_at_any_depth():
    assert matches("file.py", "*.py")
    assert matches("src/pkg/file.py", "*.py")
    assert not matches("src/pkg/file.pyc", "*.py")


def test_basename_pattern_does_not_match_by_leading_directory():
    assert not matches("app/main.py", "a*")
    assert matches("app", "a*", is_directory=True)
    assert matches("lib/app.py", "a*")


def test_pattern_matches_whole_path_not_descendants():
    assert matches("a/b", "a/b")
    assert not matches("a/b/c", "a/b")
    assert not matches("src/debug.log", "**/src")
    assert matches("src", "**/src", is_directory=True)


def test_pattern_with_slash_is_anchored():
    assert matches("docs/index.md", "docs/*.md")
    assert not matches("site/docs/index.md", "docs/*.md")


# --- Directory patterns ---

def test_trailing_slash_means_directory_and_contents():
    assert normalize_glob("build/") == "build/**"
    assert matches("build/out.js", "build/")
    assert matches("build/sub/out.js", "build/")
    assert matches("build", "build/", is_directory=True)
    assert not matches("rebuild/out.js", "build/")


def test_double_star_suffix_covers_directory_itself():
    assert matches("dist", "**/dist/**", is_directory=True)
    assert matches("dist/bundle.js", "**/dist/**")
    assert not matches("distribution/a.js", "**/dist/**")


# --- Braces ---

def test_brace_alternation():
    assert matches("a.js", "*.{js,ts}")
    assert matches("lib/b.ts", "*.{js,ts}")
    assert not matches("c.py", "*.{js,ts}")


def test_expand_braces_nested_and_ranges():
    assert expand_braces("a{b,c{d,e}}f") == ["abf", "acdf", "acef"]
    assert expand_braces("file{1..3}.txt") == ["file1.txt", "file2.txt", "file3.txt"]
    assert expand_braces("plain.txt") == ["plain.txt"]


def test_single_item_braces_are_literal():
    assert expand_braces("{abc}.txt") == ["{abc}.txt"]


# --- Literal specials ---

def test_leading_bang_and_hash_are_literal():
    assert matches("!important.txt", "!important.txt")
    assert matches("#notes.md", "#notes.md")


# --- Compilation ---

def test_compiled_patterns_are_cached():
    assert compile_glob("*.md") is compile_glob("*.md")


def test_invalid_pattern_raises():
    with pytest.raises(GlobPatternError):
        compile_glob("broken\\")


def test_empty_path_never_matches():
    assert not matches("", "*")
