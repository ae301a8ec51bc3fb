import unicodedata
from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence, Tuple
from .classifier import classify
from .models import Listing, SortMode, ViewState

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
LISTING_DATE = "Listing Date"

_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%d.%m.%Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%d %b %Y",
    "%d %B %Y",
)


def normalize_search(term: Optional[str]) -> str:
    return (term or "").strip().lower()


def matches_search(listing: Listing, term: str) -> bool:
    """True when ``term`` (already lowercased) occurs in any searchable field."""
    fields = [listing.title, listing.short_description, listing.full_description]
    for attr in listing.attributes:
        fields.append(attr.name)
        fields.append(attr.value)
    return any(term in (text or "").lower() for text in fields)


def select(collection: Iterable[Listing], view: ViewState) -> Tuple[Listing, ...]:
    term = normalize_search(view.search)
    if term:
        return tuple(l for l in collection if matches_search(l, term))
    category = (view.category or "all").lower()
    if category == "all":
        return tuple(collection)
    return tuple(l for l in collection if classify(l).value == category)


def parse_listing_date(raw: Optional[str]) -> datetime:
    """Parse a listing date, falling back to the epoch when missing or unreadable."""
    if not raw:
        return EPOCH
    text = raw.strip()
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        parsed = None
        for fmt in _DATE_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def collation_key(title: str) -> Tuple[str, str]:
    decomposed = unicodedata.normalize("NFKD", title or "")
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold(), title or ""


def sort_listings(listings: Sequence[Listing], mode: SortMode) -> Tuple[Listing, ...]:
    mode = SortMode(mode)
    items = list(listings)
    if mode is SortMode.UNSORTED:
        return tuple(items)
    if mode in (SortMode.PRICE_ASCENDING, SortMode.PRICE_DESCENDING):
        key = lambda l: l.price_value()
    elif mode in (SortMode.ALPHABETICAL_ASCENDING, SortMode.ALPHABETICAL_DESCENDING):
        key = lambda l: collation_key(l.title)
    else:
        key = lambda l: parse_listing_date(l.attribute(LISTING_DATE))
    descending = mode in (SortMode.PRICE_DESCENDING, SortMode.ALPHABETICAL_DESCENDING, SortMode.NEWEST)
    # list.sort keeps equal keys in input order even with reverse=True
    items.sort(key=key, reverse=descending)
    return tuple(items)


def apply_view(collection: Sequence[Listing], view: ViewState) -> Tuple[Listing, ...]:
    return sort_listings(select(collection, view), view.sort)


def result_message(view: ViewState, count: int) -> Optional[str]:
    term = (view.search or "").strip()
    if term:
        if count == 0:
            return f'No watches found for "{term}".'
        noun = "watch" if count == 1 else "watches"
        return f"{count} {noun} found for your search."
    if count == 0:
        category = (view.category or "all").lower()
        if category == "all":
            return "No watches available right now."
        return f"No {category} watches available right now."
    return None
