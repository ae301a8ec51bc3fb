"""Category classification for watch listings.

A structured ``Type`` attribute always wins. Otherwise the title is matched
against ``CATEGORY_RULES`` in order; the first rule with a matching keyword
decides. Titles matching nothing are quartz.
"""
import re
from typing import Optional, Pattern, Sequence, Tuple
from .models import Category, Listing

RULES_VERSION = 3

# Ordered: manual before automatic before digital. A title naming a manual
# brand and "automatic" classifies manual.
CATEGORY_RULES: Sequence[Tuple[Category, Tuple[str, ...]]] = (
    (
        Category.MANUAL,
        (
            "manual",
            "hand-wind",
            "hand wind",
            "hand-wound",
            "mechanical",
            "military",
            "rolex",
            "omega",
            "hamilton",
            "longines",
            "elgin",
            "waltham",
            "gruen",
            "benrus",
            "wittnauer",
            "zenith",
            "tudor",
            "heuer",
            "vostok",
            "poljot",
            "raketa",
        ),
    ),
    (Category.AUTOMATIC, ("automatic", "self-winding", "self winding", "autowind")),
    (
        Category.DIGITAL,
        ("digital", "ana-digi", "lcd", "led", "casio", "g-shock", "pulsar", "calculator"),
    ),
)

_CATEGORY_NAMES = {c.value: c for c in Category}


def _keyword_pattern(keywords: Sequence[str]) -> Pattern[str]:
    alternatives = "|".join(re.escape(k) for k in sorted(keywords, key=len, reverse=True))
    # left boundary only, so inflections like "hand-winding" still match
    return re.compile(rf"(?<![a-z0-9])(?:{alternatives})")


_COMPILED_RULES = tuple((category, _keyword_pattern(words)) for category, words in CATEGORY_RULES)


def type_attribute_category(listing: Listing) -> Optional[Category]:
    for attr in listing.attributes:
        if attr.name.strip().lower() == "type":
            category = _CATEGORY_NAMES.get(attr.value.strip().lower())
            if category is not None:
                return category
    return None


def matching_rule(listing: Listing) -> Tuple[Category, str]:
    """Return the category and the reason it was chosen: "type", a keyword, or "default"."""
    category = type_attribute_category(listing)
    if category is not None:
        return category, "type"
    title = (listing.title or "").lower()
    for rule_category, pattern in _COMPILED_RULES:
        match = pattern.search(title)
        if match:
            return rule_category, match.group(0)
    return Category.QUARTZ, "default"


def classify(listing: Listing) -> Category:
    return matching_rule(listing)[0]
