from typing import Any, Dict, List, Optional, Tuple
from places_enricher.matchers.similarity import similarity


def overall_similarity(name: str, address: str, candidate: Dict[str, Any]) -> float:
    """Mean of name similarity and formatted-address similarity for one Places result."""
    name_score = similarity(name, candidate.get("name") or "")
    addr_score = similarity(address, candidate.get("formatted_address") or "")
    return (name_score + addr_score) / 2


def select_best_candidate(
    name: str,
    address: str,
    candidates: List[Dict[str, Any]],
) -> Tuple[Optional[Dict[str, Any]], float]:
    """
    Pick the Places result most similar to the input business.

    Candidates are scanned in the order the service returned them and a later
    candidate only wins with a strictly higher score, so exact ties go to the
    first one. No minimum score is applied here.

    Args:
        name (str): Business name from the spreadsheet.
        address (str): Street address from the spreadsheet.
        candidates (List[Dict[str, Any]]): Raw Places results.

    Returns:
        Tuple[Optional[Dict[str, Any]], float]: (best candidate, its score), or (None, 0.0)
        when there are no candidates.
    """
    best: Optional[Dict[str, Any]] = None
    best_score = 0.0
    for cand in candidates:
        score = overall_similarity(name, address, cand)
        if best is None or score > best_score:
            best = cand
            best_score = score
    return best, best_score
