"""Static HTML output for the storefront.

Every piece of listing text goes through ``highlight`` (or ``escape``), which
escapes before it marks up, so no raw listing content reaches the page.
"""
import re
from datetime import datetime
from html import escape
from typing import Iterable, List, Optional, Sequence
from urllib.parse import urlparse
from ...domain.classifier import classify
from ...domain.models import Category, Listing, Suggestion, ViewState, placeholder_image

CATEGORY_FILTERS = ("all",) + tuple(c.value for c in Category)


def highlight(text: Optional[str], term: Optional[str]) -> str:
    """Escape ``text`` and wrap each case-insensitive occurrence of ``term`` in <mark>."""
    text = text or ""
    term = (term or "").strip()
    if not term:
        return escape(text)
    parts: List[str] = []
    pos = 0
    for match in re.finditer(re.escape(term), text, flags=re.IGNORECASE):
        parts.append(escape(text[pos : match.start()]))
        parts.append(f"<mark>{escape(match.group(0))}</mark>")
        pos = match.end()
    parts.append(escape(text[pos:]))
    return "".join(parts)


def safe_url(url: Optional[str], default: str = "#") -> str:
    """Pass through http(s) URLs only; anything else (javascript:, data:, relative) becomes ``default``."""
    url = (url or "").strip()
    if urlparse(url).scheme.lower() in ("http", "https"):
        return url
    return default


def format_price(listing: Listing) -> str:
    return f"{listing.price_value():,.2f} {listing.price.currency}"


class HtmlRenderer:
    def __init__(self, title: str = "Vintage Watch Collection") -> None:
        self.title = title

    def render_card(self, listing: Listing, term: str = "") -> str:
        category = classify(listing)
        image = safe_url(listing.image_url, placeholder_image(category))
        attrs = "".join(
            f"<li><strong>{highlight(a.name, term)}:</strong> {highlight(a.value, term)}</li>"
            for a in listing.display_attributes()
        )
        details = ""
        if listing.full_description and listing.full_description != listing.short_description:
            details = (
                "<details class=\"full-description\"><summary>Read more</summary>"
                f"<p>{highlight(listing.full_description, term)}</p></details>"
            )
        return (
            f"<article class=\"listing-card\" data-id=\"{escape(listing.id)}\" data-category=\"{category.value}\">"
            f"<span class=\"badge badge-{category.value}\">{category.value.capitalize()}</span>"
            f"<div class=\"listing-image\"><img src=\"{escape(image)}\" alt=\"{escape(listing.title)}\" loading=\"lazy\"></div>"
            "<div class=\"listing-details\">"
            f"<h2>{highlight(listing.title, term)}</h2>"
            f"<p class=\"price\">{escape(format_price(listing))}</p>"
            f"<p class=\"short-description\">{highlight(listing.short_description, term)}</p>"
            f"{details}"
            f"<ul class=\"item-specifics\">{attrs}</ul>"
            f"<a href=\"{escape(safe_url(listing.external_url))}\" class=\"view-button\" target=\"_blank\" rel=\"noopener\">View on eBay</a>"
            "</div></article>"
        )

    def render_cards(self, listings: Iterable[Listing], term: str = "") -> List[str]:
        cards: List[str] = []
        for listing in listings:
            try:
                cards.append(self.render_card(listing, term))
            except Exception as e:
                print(f"[render] Skipping listing {getattr(listing, 'id', '?')}: {e!r}")
        return cards

    def _filters(self, view: ViewState) -> str:
        buttons = []
        for name in CATEGORY_FILTERS:
            active = " active" if name == (view.category or "all") else ""
            buttons.append(f"<span class=\"filter{active}\" data-category=\"{name}\">{name.capitalize()}</span>")
        return "<nav class=\"category-filters\">" + "".join(buttons) + "</nav>"

    def _search_box(self, term: str, suggestions: Sequence[Suggestion]) -> str:
        options = "".join(
            f"<option value=\"{escape(s.text)}\" data-kind=\"{escape(s.kind)}\" data-category=\"{s.category.value}\"></option>"
            for s in suggestions
        )
        return (
            f"<input type=\"search\" class=\"search-input\" list=\"search-suggestions\" value=\"{escape(term)}\">"
            f"<datalist id=\"search-suggestions\">{options}</datalist>"
        )

    def render_page(
        self,
        listings: Sequence[Listing],
        view: ViewState,
        message: Optional[str] = None,
        error: Optional[str] = None,
        generated_at: Optional[datetime] = None,
        suggestions: Sequence[Suggestion] = (),
    ) -> str:
        term = (view.search or "").strip()
        if error:
            body = f"<div class=\"error-message\">{escape(error)}</div>"
        elif not listings:
            body = f"<div class=\"empty-state\"><p>{escape(message or 'No watches available right now.')}</p></div>"
        else:
            notice = f"<p class=\"search-count\">{escape(message)}</p>" if message else ""
            body = notice + f"<section id=\"listings-container\" class=\"listings {escape(view.layout)}-view\">" + "".join(self.render_cards(listings, term)) + "</section>"
        stamp = generated_at or datetime.now()
        return (
            "<!DOCTYPE html>\n<html lang=\"en\"><head><meta charset=\"utf-8\">"
            f"<title>{escape(self.title)}</title></head><body>"
            f"<header><h1>{escape(self.title)}</h1>"
            f"<p class=\"view-state\" data-sort=\"{escape(view.sort.value)}\" data-layout=\"{escape(view.layout)}\" data-search=\"{escape(term)}\"></p>"
            f"{self._search_box(term, suggestions)}{self._filters(view)}</header><main>{body}</main>"
            f"<footer class=\"update-timestamp\"><p>Listings last updated: {stamp:%Y-%m-%d} at {stamp:%H:%M:%S}</p></footer>"
            "</body></html>\n"
        )
