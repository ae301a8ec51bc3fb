from dataclasses import dataclass, field, replace
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Optional, Tuple

SUPPRESSED_ATTRIBUTES = {"type", "listing date"}


class Category(str, Enum):
    MANUAL = "manual"
    AUTOMATIC = "automatic"
    DIGITAL = "digital"
    QUARTZ = "quartz"


class SortMode(str, Enum):
    UNSORTED = "unsorted"
    PRICE_ASCENDING = "price-ascending"
    PRICE_DESCENDING = "price-descending"
    ALPHABETICAL_ASCENDING = "alphabetical-ascending"
    ALPHABETICAL_DESCENDING = "alphabetical-descending"
    NEWEST = "newest"
    OLDEST = "oldest"


LAYOUTS = ("grid", "list")


def parse_amount(raw: Any) -> str:
    """Return a decimal string for ``raw``, or ``"0"`` when it is not a usable number."""
    if raw is None:
        return "0"
    text = str(raw).strip().replace(",", "")
    if not text:
        return "0"
    try:
        value = Decimal(text)
    except InvalidOperation:
        return "0"
    if not value.is_finite():
        return "0"
    return text


@dataclass(frozen=True)
class Price:
    amount: str = "0"
    currency: str = "USD"

    def value(self) -> Decimal:
        return Decimal(parse_amount(self.amount))


@dataclass(frozen=True)
class Attribute:
    name: str
    value: str


@dataclass(frozen=True)
class Listing:
    id: str
    title: str
    price: Price = field(default_factory=Price)
    image_url: Optional[str] = None
    external_url: str = ""
    short_description: str = ""
    full_description: str = ""
    attributes: Tuple[Attribute, ...] = ()

    def __post_init__(self) -> None:
        # frozen, so normalize through object.__setattr__
        short = self.short_description or ""
        object.__setattr__(self, "short_description", short)
        object.__setattr__(self, "full_description", self.full_description or short)
        object.__setattr__(self, "attributes", tuple(self.attributes))

    def attribute(self, name: str) -> Optional[str]:
        wanted = name.strip().lower()
        for attr in self.attributes:
            if attr.name.strip().lower() == wanted:
                return attr.value
        return None

    def display_attributes(self) -> Tuple[Attribute, ...]:
        return tuple(a for a in self.attributes if a.name.strip().lower() not in SUPPRESSED_ATTRIBUTES)

    def price_value(self) -> Decimal:
        return self.price.value()

    def with_image(self, image_url: str) -> "Listing":
        return replace(self, image_url=image_url)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "imageUrl": self.image_url,
            "price": {"amount": self.price.amount, "currency": self.price.currency},
            "externalUrl": self.external_url,
            "shortDescription": self.short_description,
            "fullDescription": self.full_description,
            "attributes": [{"name": a.name, "value": a.value} for a in self.attributes],
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Listing":
        """Build a Listing from the canonical wire form.

        The raw Browse summary shape (``itemId``, ``image.imageUrl``,
        ``price.value``, ``itemWebUrl``, ``specifics``) is accepted as well,
        since older data files were written that way.
        """
        item_id = raw.get("id") or raw.get("itemId")
        if not item_id:
            raise ValueError("listing record has no id")
        price_raw = raw.get("price") or {}
        if not isinstance(price_raw, dict):
            price_raw = {"amount": price_raw}
        amount = price_raw.get("amount", price_raw.get("value"))
        image = raw.get("imageUrl")
        if image is None:
            image = (raw.get("image") or {}).get("imageUrl")
        attrs = raw.get("attributes")
        if attrs is None:
            attrs = raw.get("specifics") or []
        return cls(
            id=str(item_id),
            title=str(raw.get("title") or ""),
            price=Price(amount=parse_amount(amount), currency=price_raw.get("currency") or "USD"),
            image_url=image or None,
            external_url=raw.get("externalUrl") or raw.get("itemWebUrl") or "",
            short_description=raw.get("shortDescription") or "",
            full_description=raw.get("fullDescription") or "",
            attributes=tuple(
                Attribute(name=str(a.get("name", "")), value=str(a.get("value", "")))
                for a in attrs
                if isinstance(a, dict) and a.get("name")
            ),
        )


@dataclass(frozen=True)
class ViewState:
    category: str = "all"
    sort: SortMode = SortMode.UNSORTED
    search: str = ""
    layout: str = "grid"

    def with_search(self, term: str) -> "ViewState":
        return replace(self, search=term)

    def with_category(self, category: str) -> "ViewState":
        return replace(self, category=category)

    def with_sort(self, sort: SortMode) -> "ViewState":
        return replace(self, sort=SortMode(sort))

    def with_layout(self, layout: str) -> "ViewState":
        if layout not in LAYOUTS:
            raise ValueError(f"unknown layout: {layout}")
        return replace(self, layout=layout)


@dataclass(frozen=True)
class Suggestion:
    text: str
    category: Category
    kind: str  # "title" or the attribute name


PLACEHOLDER_TINTS = {
    Category.MANUAL: "8b5a2b",
    Category.AUTOMATIC: "daa520",
    Category.DIGITAL: "2f4f4f",
    Category.QUARTZ: "4682b4",
}


def placeholder_image(category: Category) -> str:
    category = Category(category)
    label = category.value.capitalize()
    return f"https://placehold.co/600x400/{PLACEHOLDER_TINTS[category]}/white?text={label}+Watch"
