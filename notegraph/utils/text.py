"""Text normalisation helpers shared by chunking and search."""

import re

_WHITESPACE = re.compile(r"\s+")


def preprocess_text(text: str) -> str:
    """Collapse whitespace runs into single spaces and strip the ends. Case is preserved."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()


def normalize_whitespace(text: str) -> str:
    """Remove all whitespace; used to compare chunk coverage against the source text."""
    return _WHITESPACE.sub("", text or "")


def make_snippet(text: str, length: int = 160) -> str:
    """Return the first ``length`` characters of text."""
    return (text or "")[:length]
