# tests/test_session.py
import pytest

from repocat.models import Configuration, ExportFormat, FilterRule
from repocat.session import RepositorySession


def test_session_end_to_end(sample_repo):
    session = RepositorySession(sample_repo, Configuration(exclude_patterns=("**/dist/**",)))

    files = session.list_files()
    analysis = session.analyze(files, count_tokens=lambda text: 1)
    result = session.process(analysis.files_info)

    assert result.processed_files + result.skipped_files == len(files)
    assert "src/App.tsx" in result.content
    assert "DATABASE_URL" not in result.content


def test_session_evaluate_reports_rule(sample_repo):
    session = RepositorySession(sample_repo)
    assert session.evaluate("logs/a.log").rule == FilterRule.GITIGNORE_EXCLUDE
    assert session.evaluate("logs/important.log").rule == FilterRule.GITIGNORE_INCLUDE
    assert not session.evaluate("src", is_directory=True).excluded


def test_directory_tree(sample_repo):
    tree = RepositorySession(sample_repo).directory_tree()
    assert "src" in [node.name for node in tree]


def test_update_config_resets_cache(sample_repo):
    session = RepositorySession(sample_repo)
    session.list_files()
    assert len(session.gitignore_cache) > 0

    session.update_config(Configuration(export_format=ExportFormat.XML))
    assert len(session.gitignore_cache) == 0
    assert session.process([]).content.startswith("<?xml")


def test_switch_root(sample_repo, tmp_path):
    other = tmp_path / "other"
    other.mkdir()
    (other / "only.py").write_text("pass\n", encoding="utf-8")

    session = RepositorySession(sample_repo)
    session.list_files()
    session.switch_root(other)
    assert len(session.gitignore_cache) == 0
    assert session.list_files() == ["only.py"]


def test_gitignore_edits_need_reset(sample_repo):
    session = RepositorySession(sample_repo)
    assert "src/App.tsx" in session.list_files()

    (sample_repo / ".gitignore").write_text("*.tsx\n", encoding="utf-8")
    assert "src/App.tsx" in session.list_files()

    session.reset_cache()
    assert "src/App.tsx" not in session.list_files()


@pytest.mark.parametrize("bad_root", ["", None])
def test_missing_root_is_rejected(bad_root):
    with pytest.raises(ValueError):
        RepositorySession(bad_root)


def test_file_as_root_is_rejected(tmp_path):
    f = tmp_path / "file.txt"
    f.write_text("x", encoding="utf-8")
    with pytest.raises(ValueError):
        RepositorySession(f)
