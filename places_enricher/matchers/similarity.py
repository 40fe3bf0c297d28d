import re
from typing import Optional
from rapidfuzz.distance import Levenshtein

_WHITESPACE = re.compile(r"\s+")


def normalize(text: Optional[str]) -> str:
    """Trim, lowercase and collapse internal whitespace runs to a single space."""
    return _WHITESPACE.sub(" ", (text or "").strip().lower())


def similarity(a: Optional[str], b: Optional[str]) -> float:
    """
    Edit-distance similarity between two strings after normalization.

    Args:
        a (str): First string. None is treated as "".
        b (str): Second string. None is treated as "".

    Returns:
        float: 1 - distance / max_length, in [0, 1]. Two empty strings score 1.0.
    """
    a_norm = normalize(a)
    b_norm = normalize(b)
    max_length = max(len(a_norm), len(b_norm))
    if max_length == 0:
        return 1.0
    distance = Levenshtein.distance(a_norm, b_norm)
    return 1.0 - distance / max_length
