from dataclasses import replace
from typing import Any, Dict, Optional
from urllib.parse import quote
import requests
from ...domain.errors import ProviderError, TransientProviderError
from ...domain.models import Listing, Price, parse_amount
from ...domain.ports import CredentialProviderPort, ListingsProviderPort, Page
from .http import json_body, send
from .normalize import build_attributes, html_to_text, shorten, with_placeholder

CONDITIONS_FILTER = "conditions:{NEW|USED|EXCELLENT|VERY_GOOD|GOOD|ACCEPTABLE}"


class BrowseProvider(ListingsProviderPort):
    """Token-based JSON search (Browse API) with per-item detail lookups."""

    name = "browse"

    def __init__(
        self,
        credentials: CredentialProviderPort,
        base_url: str,
        marketplace_id: str = "EBAY_US",
        page_size: int = 50,
        query: str = "watch",
        session: Optional[requests.Session] = None,
        timeout: int = 30,
        user_agent: str = "watchfront/1.0",
    ) -> None:
        self.credentials = credentials
        self.api_url = f"{base_url}/buy/browse/v1"
        self.marketplace_id = marketplace_id
        self.page_size = page_size
        self.query = query
        self.session = session or requests.Session()
        self.timeout = timeout
        self.user_agent = user_agent

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.credentials.get_credential()}",
            "Content-Type": "application/json",
            "X-EBAY-C-MARKETPLACE-ID": self.marketplace_id,
            "User-Agent": self.user_agent,
        }

    def _get(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        try:
            resp = send(self.session, "GET", url, self.name, headers=self._headers(), params=params, timeout=self.timeout)
        except TransientProviderError as e:
            if e.auth:
                self.credentials.invalidate()
            raise
        return json_body(resp, self.name)

    def fetch_page(self, seller_id: str, page: int) -> Page:
        offset = (page - 1) * self.page_size
        params = {
            "q": self.query,
            "filter": f"sellers:{{{seller_id}}},{CONDITIONS_FILTER}",
            "limit": self.page_size,
            "offset": offset,
            "sort": "newlyListed",
            "fieldgroups": "EXTENDED",
        }
        data = self._get(f"{self.api_url}/item_summary/search", params)
        if not isinstance(data, dict):
            raise ProviderError("browse: unexpected search payload")
        records = data.get("itemSummaries") or []
        total = data.get("total")
        seen = offset + len(records)
        has_more = bool(records) and bool(data.get("next")) and (total is None or seen < int(total))
        print(f"[browse] Page {page}: {len(records)} items (total={total})")
        return Page(records=list(records), has_more=has_more, total=total)

    def normalize(self, record: Dict[str, Any]) -> Listing:
        item_id = record.get("itemId") or record.get("legacyItemId")
        if not item_id:
            raise ValueError("browse record has no itemId")
        price = record.get("price") or {}
        image = (record.get("image") or {}).get("imageUrl")
        if not image:
            thumbs = record.get("thumbnailImages") or []
            image = (thumbs[0] or {}).get("imageUrl") if thumbs else None
        aspects = record.get("specifics") or record.get("localizedAspects") or []
        listing = Listing(
            id=str(item_id),
            title=record.get("title") or "",
            price=Price(amount=parse_amount(price.get("value")), currency=price.get("currency") or "USD"),
            image_url=image,
            external_url=record.get("itemWebUrl") or record.get("itemHref") or "",
            short_description=record.get("shortDescription") or "",
            attributes=build_attributes(
                ((a.get("name"), a.get("value")) for a in aspects if isinstance(a, dict)),
                listing_date=record.get("itemCreationDate"),
            ),
        )
        return with_placeholder(listing)

    def supports_details(self) -> bool:
        return True

    def fetch_details(self, listing: Listing) -> Listing:
        data = self._get(f"{self.api_url}/item/{quote(listing.id, safe='')}")
        if not isinstance(data, dict):
            raise ProviderError("browse: unexpected item payload")
        full = html_to_text(data.get("description"))
        short = data.get("shortDescription") or listing.short_description or shorten(full)
        aspects = data.get("localizedAspects") or []
        pairs = [(a.get("name"), a.get("value")) for a in aspects if isinstance(a, dict)]
        existing = {a.name.lower() for a in listing.attributes}
        merged = list(listing.attributes) + list(build_attributes(p for p in pairs if str(p[0]).lower() not in existing))
        return replace(
            listing,
            short_description=short,
            full_description=full or short,
            attributes=tuple(merged),
        )
