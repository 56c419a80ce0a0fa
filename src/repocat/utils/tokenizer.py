# src/repocat/utils/tokenizer.py
import math
from typing import Any, Callable, Optional

import tiktoken

from repocat.config import CHARS_PER_TOKEN_ESTIMATE, TOKEN_ENCODING, TOKEN_FALLBACK_ENCODING
from repocat.utils.logger import get_logger

logger = get_logger(__name__)

TokenCounter = Callable[[str], int]


class Tokenizer:
    _encoding = None

    @classmethod
    def get_encoding(cls):
        if cls._encoding is None:
            try:
                cls._encoding = tiktoken.get_encoding(TOKEN_ENCODING)
            except Exception:
                # Fallback
                cls._encoding = tiktoken.get_encoding(TOKEN_FALLBACK_ENCODING)
        return cls._encoding

    @staticmethod
    def count(text: str) -> int:
        """Estimates token count for a given text."""
        if not text:
            return 0
        try:
            encoding = Tokenizer.get_encoding()
            return len(encoding.encode(text, disallowed_special=()))
        except Exception as e:
            # Encodings are fetched on first use; offline runs land here.
            logger.debug(f"tiktoken unavailable, estimating tokens: {e}")
            return math.ceil(len(text) / CHARS_PER_TOKEN_ESTIMATE)


def normalize_token_count(value: Any) -> int:
    """Finite, non-negative, truncated integer; anything else becomes 0."""
    if isinstance(value, bool):
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number) or number < 0:
        return 0
    return int(number)


def safe_count_tokens(text: str, counter: Optional[TokenCounter] = None) -> int:
    """Counts tokens with `counter` (default: tiktoken); failures count as 0."""
    counter = counter or Tokenizer.count
    try:
        return normalize_token_count(counter(text))
    except Exception as e:
        logger.warning(f"Token counting failed, using 0: {e}")
        return 0
