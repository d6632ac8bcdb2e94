from typing import Iterable, List, Optional

SEPARATOR = " "


def normalize(text: Optional[str], url: Optional[str]) -> str:
    """Join message text and url into one lower-cased search corpus."""
    return f"{text or ''}{SEPARATOR}{url or ''}".lower()


def contains_any(text: str, terms: Iterable[str]) -> List[str]:
    # order of `terms` is preserved; each term reported once
    if not text:
        return []
    found: List[str] = []
    for term in terms:
        if term and term in text and term not in found:
            found.append(term)
    return found


def missing_prefix(text: str, prefix: str) -> bool:
    return not (text or "").startswith(prefix)
