# src/repocat/core/gates.py
import posixpath
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

from repocat.config import BINARY_SAMPLE_SIZE, CONTROL_CHAR_RATIO, TEXT_CONTROL_BYTES
from repocat.models import Configuration
from repocat.utils.logger import get_logger

logger = get_logger(__name__)

PathLike = Union[str, Path]


# --- Binary gate ---

def is_binary_bytes(chunk: bytes) -> bool:
    """NUL anywhere, or more than 10% control bytes (TAB/LF/CR excepted)."""
    if not chunk:
        return False
    if b"\0" in chunk:
        return True
    control = sum(1 for b in chunk if b < 32 and b not in TEXT_CONTROL_BYTES)
    return control / len(chunk) > CONTROL_CHAR_RATIO


def is_binary_file(path: PathLike) -> bool:
    """
    Samples the first 4 KiB of `path`.
    Empty files are text; unreadable files are treated as binary.
    """
    try:
        with open(path, "rb") as f:
            chunk = f.read(BINARY_SAMPLE_SIZE)
    except OSError as e:
        logger.warning(f"Could not sample {path}, treating as binary: {e}")
        return True
    return is_binary_bytes(chunk)


# --- Secret gate ---

@dataclass(frozen=True)
class SecretMatch:
    id: str
    description: str


@dataclass(frozen=True)
class SecretScanResult:
    is_suspicious: bool
    matches: Tuple[SecretMatch, ...] = field(default_factory=tuple)


CLEAN_RESULT = SecretScanResult(is_suspicious=False)

_AWS_SECRET_ASSIGNMENT = re.compile(
    r"aws(?:\s|_|-)?secret(?:\s|_|-)?access(?:\s|_|-)?key\s*[:=]\s*", re.IGNORECASE
)
_AWS_SECRET_VALUE = re.compile(r"^[A-Za-z0-9+/=]{40}$")


def _assigned_value(text: str) -> str:
    text = text.lstrip()
    if not text:
        return ""
    quote = text[0]
    if quote in ("'", '"'):
        end = text.find(quote, 1)
        return text[1:end] if end > 0 else ""
    stop = re.search(r"[\s;,]", text)
    return text[:stop.start()] if stop else text


def _has_aws_secret_assignment(content: str) -> bool:
    for m in _AWS_SECRET_ASSIGNMENT.finditer(content):
        if _AWS_SECRET_VALUE.match(_assigned_value(content[m.end():])):
            return True
    return False


@dataclass(frozen=True)
class SecretRule:
    id: str
    description: str
    pattern: Optional[re.Pattern] = None
    check: Optional[Callable[[str], bool]] = None

    def matches(self, content: str) -> bool:
        if self.check is not None:
            return self.check(content)
        return bool(self.pattern and self.pattern.search(content))


SECRET_RULES: List[SecretRule] = [
    SecretRule("private-key-block", "Private key block detected",
               re.compile(r"-----BEGIN (?:[A-Z ]+)?PRIVATE KEY-----")),
    SecretRule("github-token", "GitHub token detected",
               re.compile(r"\bgh[pousr]_[A-Za-z0-9]{20,}\b")),
    SecretRule("aws-access-key-id", "AWS access key id detected",
               re.compile(r"\b(?:AKIA|ASIA)[0-9A-Z]{16}\b")),
    SecretRule("aws-secret-assignment", "AWS secret key assignment detected",
               check=_has_aws_secret_assignment),
    SecretRule("slack-token", "Slack token detected",
               re.compile(r"\bxox[baprs]-[0-9A-Za-z-]{10,}\b")),
    SecretRule("stripe-secret-key", "Stripe secret key detected",
               re.compile(r"\bsk_live_[0-9A-Za-z]{16,}\b")),
    SecretRule("jwt-token", "JWT-like token detected",
               re.compile(r"\beyJ[A-Za-z0-9_-]{8,}\.[A-Za-z0-9_-]{8,}\.[A-Za-z0-9_-]{8,}\b")),
    SecretRule("token-assignment", "Token assignment detected",
               re.compile(r"(?:api[_-]?key|access[_-]?token|auth[_-]?token)\s*[:=]\s*['\"][^'\"\n]{8,}['\"]",
                          re.IGNORECASE)),
    SecretRule("credential-assignment", "Credential assignment detected",
               re.compile(r"(?:secret|password|passwd|client[_-]?secret)\s*[:=]\s*['\"][^'\"\n]{8,}['\"]",
                          re.IGNORECASE)),
]

_SENSITIVE_NAMES = [
    re.compile(r"^\.env(?:\..+)?$", re.IGNORECASE),
    re.compile(r"^id_(?:rsa|dsa|ecdsa|ed25519)(?:\.pub)?$", re.IGNORECASE),
    re.compile(r"(?:^|[-_.])(?:secret|secrets|credential|credentials)(?:[-_.]|$)", re.IGNORECASE),
]
_SENSITIVE_EXTENSION = re.compile(r"\.(?:pem|key|p12|pfx|jks|keystore|cer|crt|der|kdbx|asc)$", re.IGNORECASE)
_SENSITIVE_PATHS = (".aws/credentials", ".npmrc", ".pypirc", ".docker/config.json")


def scan_content(content: str) -> SecretScanResult:
    """Runs every rule regardless of configuration."""
    found = tuple(SecretMatch(r.id, r.description) for r in SECRET_RULES if r.matches(content))
    if not found:
        return CLEAN_RESULT
    return SecretScanResult(is_suspicious=True, matches=found)


def scan_content_for_secrets(content: str, config: Configuration) -> SecretScanResult:
    if not config.enable_secret_scanning:
        return CLEAN_RESULT
    return scan_content(content)


def is_sensitive_file_path(path: PathLike) -> bool:
    """Flags well-known credential files by name or location."""
    normalized = str(path).replace("\\", "/").lower()
    name = posixpath.basename(normalized)

    if _SENSITIVE_EXTENSION.search(name):
        return True
    if any(p.search(name) for p in _SENSITIVE_NAMES):
        return True
    return any(
        normalized == seg or normalized.endswith("/" + seg) or ("/" + seg + "/") in normalized
        for seg in _SENSITIVE_PATHS
    )


def should_skip_suspicious(rel_path: str, content: str, config: Configuration) -> bool:
    """
    True when the file must be kept out of token counts and output.
    Only skips when both secret scanning and suspicious-file exclusion are on;
    otherwise a flagged file is reported and let through.
    """
    if not config.enable_secret_scanning:
        return False

    reasons: List[str] = []
    if is_sensitive_file_path(rel_path):
        reasons.append("sensitive file name")
    result = scan_content_for_secrets(content, config)
    reasons.extend(m.id for m in result.matches)

    if not reasons:
        return False
    if config.exclude_suspicious_files:
        logger.warning(f"Skipping suspicious file {rel_path}: {', '.join(reasons)}")
        return True
    logger.warning(f"Possible secrets in {rel_path} ({', '.join(reasons)}); keeping it as configured")
    return False
