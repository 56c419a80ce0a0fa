# src/repocat/models.py
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple


class ConfigurationError(ValueError):
    """Raised when a configuration mapping has the wrong shape."""


class ExportFormat(str, Enum):
    MARKDOWN = "markdown"
    XML = "xml"

    @classmethod
    def coerce(cls, value: Any) -> "ExportFormat":
        # Anything that is not explicitly XML renders as Markdown.
        if isinstance(value, ExportFormat):
            return value
        if isinstance(value, str) and value.strip().lower() == cls.XML.value:
            return cls.XML
        return cls.MARKDOWN


class SkipReason(str, Enum):
    BINARY = "binary"
    SUSPICIOUS = "suspicious"
    NOT_FOUND = "notFound"
    OUTSIDE_ROOT = "outsideRoot"
    READ_ERROR = "readError"
    EXCLUDED = "excluded"
    INVALID = "invalid"
    CANCELLED = "cancelled"


class FilterRule(str, Enum):
    EXTENSION = "extension"
    CUSTOM_EXCLUDE = "customExclude"
    GITIGNORE_INCLUDE = "gitignoreInclude"
    GITIGNORE_EXCLUDE = "gitignoreExclude"
    DEFAULT = "default"
    ERROR = "error"


def normalize_extension(ext: str) -> str:
    ext = ext.strip().lower()
    if ext and not ext.startswith("."):
        ext = "." + ext
    return ext


_BOOL_KEYS = (
    "use_custom_includes",
    "use_custom_excludes",
    "use_gitignore",
    "enable_secret_scanning",
    "exclude_suspicious_files",
    "show_token_count",
    "include_tree_view",
)


@dataclass(frozen=True)
class Configuration:
    """Immutable snapshot of the options one operation runs with."""
    use_custom_includes: bool = True
    include_extensions: FrozenSet[str] = frozenset()
    use_custom_excludes: bool = True
    exclude_patterns: Tuple[str, ...] = ()
    use_gitignore: bool = True
    enable_secret_scanning: bool = True
    exclude_suspicious_files: bool = True
    show_token_count: bool = True
    include_tree_view: bool = False
    export_format: ExportFormat = ExportFormat.MARKDOWN

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "Configuration":
        """
        Builds a Configuration from the snake_case keys of a parsed config file.
        Missing keys fall back to the defaults above; unknown keys are ignored.
        """
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ConfigurationError(f"Configuration must be a mapping, got {type(data).__name__}")

        kwargs: Dict[str, Any] = {}
        for key in _BOOL_KEYS:
            if key in data and data[key] is not None:
                value = data[key]
                if not isinstance(value, bool):
                    raise ConfigurationError(f"'{key}' must be a boolean, got {value!r}")
                kwargs[key] = value

        if data.get("include_extensions") is not None:
            kwargs["include_extensions"] = _string_list(data["include_extensions"], "include_extensions")
        if data.get("exclude_patterns") is not None:
            kwargs["exclude_patterns"] = _string_list(data["exclude_patterns"], "exclude_patterns")
        if "export_format" in data:
            kwargs["export_format"] = data["export_format"]

        return cls(**kwargs)

    def __post_init__(self) -> None:
        # Normalized once, here at the boundary.
        object.__setattr__(self, "include_extensions", frozenset(
            normalize_extension(e) for e in self.include_extensions if e and e.strip()
        ))
        object.__setattr__(self, "exclude_patterns", tuple(p for p in self.exclude_patterns if p))
        object.__setattr__(self, "export_format", ExportFormat.coerce(self.export_format))

    def with_changes(self, **kwargs: Any) -> "Configuration":
        return replace(self, **kwargs)


def _string_list(value: Any, key: str) -> List[str]:
    if isinstance(value, str) or not isinstance(value, Iterable):
        raise ConfigurationError(f"'{key}' must be a list of strings, got {value!r}")
    items = list(value)
    for item in items:
        if not isinstance(item, str):
            raise ConfigurationError(f"'{key}' must contain only strings, got {item!r}")
    return items


@dataclass(frozen=True)
class GitignorePatterns:
    """Exclude and force-include globs, already in matcher syntax."""
    exclude_patterns: Tuple[str, ...] = ()
    include_patterns: Tuple[str, ...] = ()
    # glob -> .gitignore file (or "<builtin>") it came from
    origins: Dict[str, str] = field(default_factory=dict, compare=False)

    def merge(self, other: "GitignorePatterns") -> "GitignorePatterns":
        """Returns self's rules followed by other's."""
        origins = dict(other.origins)
        origins.update(self.origins)
        return GitignorePatterns(
            exclude_patterns=self.exclude_patterns + other.exclude_patterns,
            include_patterns=self.include_patterns + other.include_patterns,
            origins=origins,
        )

    def is_empty(self) -> bool:
        return not self.exclude_patterns and not self.include_patterns


EMPTY_GITIGNORE_PATTERNS = GitignorePatterns()


@dataclass(frozen=True)
class FileEntry:
    path: str
    is_directory: bool
    size: int = 0


@dataclass
class TreeNode:
    """Display tree node produced by the scanner."""
    name: str
    path: str
    is_directory: bool
    size: int = 0
    children: List["TreeNode"] = field(default_factory=list)

    @property
    def item_count(self) -> int:
        return len(self.children)


@dataclass(frozen=True)
class FilterVerdict:
    excluded: bool
    rule: FilterRule = FilterRule.DEFAULT
    pattern: Optional[str] = None


@dataclass(frozen=True)
class AnalyzedFile:
    path: str
    tokens: int = 0
    skipped_reason: Optional[SkipReason] = None

    @property
    def skipped(self) -> bool:
        return self.skipped_reason is not None


@dataclass(frozen=True)
class AnalysisResult:
    files_info: Tuple[AnalyzedFile, ...]
    total_tokens: int
    processed_files: int
    skipped_files: int

    def accepted(self) -> List[AnalyzedFile]:
        return [f for f in self.files_info if not f.skipped]


@dataclass(frozen=True)
class ProcessedRepository:
    """Final assembled document plus its statistics."""
    content: str
    export_format: ExportFormat
    total_tokens: int
    processed_files: int
    skipped_files: int
    files_info: Tuple[AnalyzedFile, ...]
