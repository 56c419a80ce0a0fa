# tests/test_tree.py
import xml.etree.ElementTree as ET

from repocat.core.export import (
    escape_xml_attribute,
    markdown_fence,
    sanitize_xml_content,
    wrap_cdata,
    xml_numeric_attribute,
)
from repocat.core.tree import build_path_tree, generate_tree_view, render_tree


def test_build_path_tree_sorts_and_nests():
    tree = build_path_tree(["src/b.py", "README.md", "src/a.py"])
    assert list(tree) == ["README.md", "src"]
    assert tree["src"] == {"a.py": None, "b.py": None}


def test_leaf_is_promoted_to_directory():
    tree = build_path_tree(["docs", "docs/index.md"])
    assert tree == {"docs": {"index.md": None}}


def test_render_tree_connectors():
    expected = (
        "├── README.md\n"
        "└── src\n"
        "    ├── main.py\n"
        "    └── utils\n"
        "        └── helpers.py\n"
    )
    assert render_tree(build_path_tree(["src/main.py", "src/utils/helpers.py", "README.md"])) == expected


def test_render_tree_vertical_bar_for_open_branches():
    out = render_tree(build_path_tree(["a/x.py", "b.py"]))
    assert out == "├── a\n│   └── x.py\n└── b.py\n"


def test_generate_tree_view_with_root_name():
    assert generate_tree_view(["main.py"], root_name="project") == "project/\n└── main.py\n"
    assert generate_tree_view([]) == ""


# --- Export helpers ---

def test_markdown_fence_outgrows_backtick_runs():
    assert markdown_fence("plain text") == "```"
    assert markdown_fence("```python\ncode\n```") == "````"
    assert markdown_fence("a ````` b") == "``````"


def test_cdata_survives_terminator_in_content():
    content = "if a[b[0]]> c: pass  # ]]> inside"
    doc = f"<root>{wrap_cdata(content)}</root>"
    assert ET.fromstring(doc).text == content


def test_invalid_xml_characters_are_dropped():
    assert sanitize_xml_content("ok\x00\x1b\tline\n") == "ok\tline\n"


def test_attribute_escaping():
    assert escape_xml_attribute('a "b" <c> & \'d\'') == "a &quot;b&quot; &lt;c&gt; &amp; &apos;d&apos;"


def test_numeric_attribute_coercion():
    assert xml_numeric_attribute(12.9) == "12"
    assert xml_numeric_attribute(-3) == "0"
    assert xml_numeric_attribute(float("nan")) == "0"
    assert xml_numeric_attribute(float("inf")) == "0"
    assert xml_numeric_attribute("abc") == "0"
    assert xml_numeric_attribute(None) == "0"
