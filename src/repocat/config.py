# src/repocat/config.py

# Custom exclude patterns the CLI applies unless --no-default-excludes is given.
DEFAULT_EXCLUDE_PATTERNS = [
    "**/.git/**",
    "**/node_modules/**",
    "**/venv/**",
    "**/.venv/**",
    "**/__pycache__/**",
    "**/dist/**",
    "**/build/**",
    "**/.vscode/**",
    "**/.idea/**",
    ".DS_Store",
    "*.log",
    "*_context.md",
    "*_context.xml",
]

# Bundler output that is dropped whenever .gitignore handling is on.
BUILD_ARTIFACT_PATTERNS = [
    "**/bundle.js",
    "**/bundle.js.map",
    "**/bundle.js.LICENSE.txt",
    "**/index.js.map",
    "**/output.css",
]

GITIGNORE_FILENAME = ".gitignore"

# Binary sniffing
BINARY_SAMPLE_SIZE = 4096
CONTROL_CHAR_RATIO = 0.10
TEXT_CONTROL_BYTES = frozenset({9, 10, 13})

# Tokenizer
TOKEN_ENCODING = "cl100k_base"
TOKEN_FALLBACK_ENCODING = "p50k_base"
CHARS_PER_TOKEN_ESTIMATE = 4

# CLI
TOP_FILES_SHOWN = 10

# Malformed patterns already warned about, per process
BAD_PATTERN_WARNINGS_REMEMBERED = 256
