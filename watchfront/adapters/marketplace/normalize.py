from typing import Any, Iterable, List, Optional, Tuple
from bs4 import BeautifulSoup
from ...domain.classifier import classify
from ...domain.models import Attribute, Listing, placeholder_image

LISTING_DATE = "Listing Date"
SHORT_DESCRIPTION_LIMIT = 300


def html_to_text(html: Optional[str]) -> str:
    """Flatten a seller's HTML description to plain text."""
    if not html:
        return ""
    soup = BeautifulSoup(html, "lxml")
    for tag in soup(["script", "style"]):
        tag.decompose()
    return " ".join(soup.get_text(" ", strip=True).split())


def shorten(text: str, limit: int = SHORT_DESCRIPTION_LIMIT) -> str:
    if len(text) <= limit:
        return text
    cut = text.rfind(" ", 0, limit)
    if cut < limit * 0.6:
        cut = limit
    return text[:cut].rstrip() + "…"


def build_attributes(pairs: Iterable[Tuple[Any, Any]], listing_date: Optional[str] = None) -> Tuple[Attribute, ...]:
    attrs: List[Attribute] = []
    for name, value in pairs:
        if not name or value is None:
            continue
        if isinstance(value, (list, tuple)):
            value = ", ".join(str(v) for v in value)
        attrs.append(Attribute(name=str(name), value=str(value)))
    if listing_date and not any(a.name.lower() == LISTING_DATE.lower() for a in attrs):
        attrs.append(Attribute(name=LISTING_DATE, value=listing_date))
    return tuple(attrs)


def with_placeholder(listing: Listing) -> Listing:
    if listing.image_url:
        return listing
    return listing.with_image(placeholder_image(classify(listing)))
