"""
Core Utility Functions.

Small text helpers shared by the stylist components.
"""

import re
from typing import Any, Iterable, List, Optional

from config.constants import IMAGE_REF_PREFIXES


_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def clean_terms(values: Optional[Iterable[Any]]) -> List[str]:
    """
    Lowercase, strip punctuation and collapse whitespace for each value.

    Empty results are dropped. Used when turning outfit items and colors
    into shopping search terms.

    Args:
        values: Iterable of strings (None and non-strings are skipped).

    Returns:
        Cleaned, non-empty terms in input order.
    """
    if not values:
        return []
    cleaned: List[str] = []
    for value in values:
        if not isinstance(value, str):
            continue
        term = _WHITESPACE.sub(" ", _NON_WORD.sub("", value.lower())).strip()
        if term:
            cleaned.append(term)
    return cleaned


def contains_word(text: str, word: str, allow_plural: bool = False) -> bool:
    """
    Case-insensitive whole-word match (``tie`` does not match ``tied``).

    With ``allow_plural`` a trailing ``s`` / ``es`` is accepted, so
    ``dress`` matches ``dresses``.
    """
    if not text or not word:
        return False
    suffix = r"(?:s|es)?" if allow_plural else ""
    pattern = r"(?<!\w)" + re.escape(word.lower()) + suffix + r"(?!\w)"
    return re.search(pattern, text.lower()) is not None


def first_non_empty(*values: Optional[str]) -> Optional[str]:
    """Return the first value that is a non-blank string."""
    for value in values:
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def is_remote_image_ref(value: Any) -> bool:
    """True for an http(s) URL or a ``data:image/...`` URI."""
    return isinstance(value, str) and value.strip().lower().startswith(IMAGE_REF_PREFIXES)
