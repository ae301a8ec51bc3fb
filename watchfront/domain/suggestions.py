from typing import Iterable, List
from .classifier import classify
from .models import Listing, Suggestion

MAX_SUGGESTIONS = 5
MIN_TERM_LENGTH = 2
SUGGESTION_ATTRIBUTES = ("Brand", "Model", "Year")


def suggest(collection: Iterable[Listing], partial: str, limit: int = MAX_SUGGESTIONS) -> List[Suggestion]:
    term = (partial or "").strip().lower()
    if len(term) < MIN_TERM_LENGTH:
        return []
    seen = set()
    out: List[Suggestion] = []
    for listing in collection:
        candidates = [("title", listing.title)]
        for name in SUGGESTION_ATTRIBUTES:
            for attr in listing.attributes:
                if attr.name.strip().lower() == name.lower():
                    candidates.append((name, attr.value))
        category = None
        for kind, text in candidates:
            text = (text or "").strip()
            if not text or term not in text.lower() or text.lower() in seen:
                continue
            if category is None:
                category = classify(listing)
            seen.add(text.lower())
            out.append(Suggestion(text=text, category=category, kind=kind))
            if len(out) >= limit:
                return out
    return out
