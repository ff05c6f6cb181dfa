"""
Common utility functions and helpers.
"""
from typing import Any, List, Tuple
import json
import logging
import os
import re
import unicodedata

logger = logging.getLogger(__name__)


def preprocess_for_embedding(text: str, max_chars: int = 8192) -> str:
    """
    Normalize text before it is sent to the embedding model.

    Args:
        text: Raw text string
        max_chars: Hard cap on the returned length

    Returns:
        Whitespace-collapsed text without unusual symbols, at most *max_chars* long
    """
    text = unicodedata.normalize('NFKC', text)
    # Remove extra whitespace
    text = re.sub(r'\s+', ' ', text)
    # Remove special characters but keep basic punctuation
    text = re.sub(r'[^\w\s\.\,\;\:\!\?\-]', ' ', text)
    text = re.sub(r' {2,}', ' ', text)
    return text.strip()[:max_chars]


def slugify(value: str) -> str:
    """
    Build a URL slug from a title.

    Args:
        value: Title text

    Returns:
        Lower-case, hyphen-separated ASCII slug
    """
    value = unicodedata.normalize('NFKD', value).encode('ascii', 'ignore').decode('ascii')
    value = re.sub(r'[^\w\s-]', '', value.lower())
    return re.sub(r'[-\s_]+', '-', value).strip('-')


def query_terms(query: str, min_length: int = 4) -> List[str]:
    """
    Split a free-text query into lower-case keywords used for overlap scoring.

    Words of three characters or fewer are dropped.
    """
    return [w for w in query.lower().split() if len(w) >= min_length]


# ---------------------------------------------------------------------------
# JSON repair for LLM output
# ---------------------------------------------------------------------------

def try_json(text: str) -> Tuple[bool, Any]:
    try:
        return True, json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return False, None


def fix_json_issues(text: str) -> str:
    """Repair the most common JSON mangling patterns from LLMs."""
    # Control characters break json.loads inside strings
    text = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]", "", text)
    # Trailing commas before ] or }
    text = re.sub(r",(\s*[}\]])", r"\1", text)
    # Python -> JSON literals
    text = re.sub(r"\bTrue\b", "true", text)
    text = re.sub(r"\bFalse\b", "false", text)
    text = re.sub(r"\bNone\b", "null", text)
    return text.strip()


def extract_json_structure(text: str, open_b: str = "{", close_b: str = "}") -> str:
    """
    Find the first complete balanced open_b ... close_b structure in *text*.
    Returns the matched fragment, or empty string if not found.
    """
    start = text.find(open_b)
    if start == -1:
        return ""

    depth = 0
    in_string = False
    escape_next = False

    for i, ch in enumerate(text[start:], start=start):
        if escape_next:
            escape_next = False
            continue
        if ch == "\\" and in_string:
            escape_next = True
            continue
        if ch == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if ch == open_b:
            depth += 1
        elif ch == close_b:
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return ""


def safe_remove(path: str) -> None:
    """Delete *path* from disk, ignoring errors."""
    try:
        if path and os.path.exists(path):
            os.remove(path)
    except OSError as exc:
        logger.warning("Could not remove file %r: %s", path, exc)
