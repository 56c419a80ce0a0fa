# tests/conftest.py
import pytest

from repocat.utils.tokenizer import Tokenizer


class FakeEncoding:
    """Whitespace 'tokenizer' so tests never download tiktoken encodings."""

    def encode(self, text, **kwargs):
        return text.split()


@pytest.fixture(autouse=True)
def offline_tokenizer(monkeypatch):
    monkeypatch.setattr(Tokenizer, "_encoding", FakeEncoding())


@pytest.fixture
def sample_repo(tmp_path):
    """
    A small project:
    - src/App.tsx, src/utils/helpers.py  (plain source)
    - dist/bundle.js                      (build output)
    - logs/a.log, logs/important.log      (gitignored, one negated)
    - .env                                (credential file)
    - assets/logo.png                     (binary)
    """
    root = tmp_path / "project"
    (root / "src" / "utils").mkdir(parents=True)
    (root / "dist").mkdir()
    (root / "logs").mkdir()
    (root / "assets").mkdir()

    (root / "src" / "App.tsx").write_text(
        "export default function App() {\n  return <div>Hello</div>;\n}\n", encoding="utf-8"
    )
    (root / "src" / "utils" / "helpers.py").write_text("def add(a, b):\n    return a + b\n", encoding="utf-8")
    (root / "dist" / "bundle.js").write_text("console.log('bundled');\n", encoding="utf-8")
    (root / "logs" / "a.log").write_text("INFO started\n", encoding="utf-8")
    (root / "logs" / "important.log").write_text("KEEP THIS\n", encoding="utf-8")
    (root / ".env").write_text("DATABASE_URL=postgres://localhost/db\n", encoding="utf-8")
    (root / "assets" / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR")
    (root / ".gitignore").write_text("*.log\n!important.log\n", encoding="utf-8")

    return root
