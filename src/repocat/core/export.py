# src/repocat/core/export.py
"""Escaping helpers for the Markdown and XML document formats."""
import re
from typing import Any
from xml.sax.saxutils import escape

from repocat.utils.tokenizer import normalize_token_count

# Characters outside the XML 1.0 Char production.
_INVALID_XML_CHARS = re.compile(
    "[^\u0009\u000a\u000d\u0020-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]"
)
_ATTRIBUTE_ENTITIES = {'"': "&quot;", "'": "&apos;"}
_BACKTICK_RUN = re.compile(r"`+")


def sanitize_xml_content(value: str) -> str:
    return _INVALID_XML_CHARS.sub("", value)


def escape_xml_attribute(value: str) -> str:
    return escape(sanitize_xml_content(value), _ATTRIBUTE_ENTITIES)


def wrap_cdata(value: str) -> str:
    """CDATA section whose body can never terminate early on a literal `]]>`."""
    body = sanitize_xml_content(value).replace("]]>", "]]]]><![CDATA[>")
    return f"<![CDATA[{body}]]>"


def xml_numeric_attribute(value: Any) -> str:
    return escape_xml_attribute(str(normalize_token_count(value)))


def markdown_fence(content: str) -> str:
    """Backtick fence one longer than any run inside `content` (minimum 3)."""
    longest = max((len(m.group(0)) for m in _BACKTICK_RUN.finditer(content)), default=0)
    return "`" * max(3, longest + 1)
