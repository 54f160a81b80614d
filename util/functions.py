# util/functions.py
import math


def clip_words(text: str, max_words: int = 100) -> str:
    """
    - Trim 'text' to at most `max_words` tokens separated by whitespace.
    - Adds an ellipsis when trimming occurs.
    """
    words = text.split()
    if len(words) <= max_words:
        return text
    return " ".join(words[:max_words]) + " …"


def clip_chars(text: str, max_chars: int = 500) -> str:
    """Trim to `max_chars` characters, appending '...' when trimmed."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "..."


def round_half_up(value: float) -> int:
    # Python's round() is banker's rounding; scores need 84.5 -> 85.
    return int(math.floor(value + 0.5))


def strip_code_fences(raw: str) -> str:
    raw = (raw or "").strip()
    if raw.startswith("```"):
        raw = raw.strip("`")
        if raw.startswith("json"):
            raw = raw[4:]
        raw = raw.strip()
    return raw
