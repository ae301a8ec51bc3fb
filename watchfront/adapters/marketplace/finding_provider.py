from typing import Any, Dict, List, Optional
import requests
from ...domain.errors import ProviderError, TransientProviderError
from ...domain.models import Listing, Price, parse_amount
from ...domain.ports import CredentialProviderPort, ListingsProviderPort, Page
from .http import json_body, send
from .normalize import build_attributes, with_placeholder

# errorId the Finding service reports when the application's call limit is hit
RATE_LIMIT_ERROR_ID = "10001"


def _first(value: Any, default: Any = None) -> Any:
    """Finding JSON wraps every field in a one-element list."""
    if isinstance(value, list):
        return value[0] if value else default
    return default if value is None else value


class FindingProvider(ListingsProviderPort):
    """Application-key search (Finding API, JSON responses)."""

    name = "finding"

    def __init__(
        self,
        credentials: CredentialProviderPort,
        url: str,
        page_size: int = 50,
        keywords: str = "watch",
        session: Optional[requests.Session] = None,
        timeout: int = 30,
        user_agent: str = "watchfront/1.0",
    ) -> None:
        self.credentials = credentials
        self.url = url
        self.page_size = page_size
        self.keywords = keywords
        self.session = session or requests.Session()
        self.timeout = timeout
        self.user_agent = user_agent

    def fetch_page(self, seller_id: str, page: int) -> Page:
        params = {
            "OPERATION-NAME": "findItemsAdvanced",
            "SERVICE-VERSION": "1.13.0",
            "SECURITY-APPNAME": self.credentials.get_credential(),
            "RESPONSE-DATA-FORMAT": "JSON",
            "REST-PAYLOAD": "",
            "keywords": self.keywords,
            "itemFilter(0).name": "Seller",
            "itemFilter(0).value": seller_id,
            "outputSelector(0)": "PictureURLLarge",
            "outputSelector(1)": "SellerInfo",
            "paginationInput.entriesPerPage": self.page_size,
            "paginationInput.pageNumber": page,
        }
        resp = send(self.session, "GET", self.url, self.name, params=params, headers={"User-Agent": self.user_agent}, timeout=self.timeout)
        data = json_body(resp, self.name)
        body = _first((data or {}).get("findItemsAdvancedResponse"), {}) if isinstance(data, dict) else {}
        ack = _first(body.get("ack"), "")
        if ack not in ("Success", "Warning"):
            self._raise_failure(body)
        result = _first(body.get("searchResult"), {}) or {}
        records: List[Dict[str, Any]] = result.get("item") or []
        pagination = _first(body.get("paginationOutput"), {}) or {}
        total_pages = int(_first(pagination.get("totalPages"), 0) or 0)
        total = _first(pagination.get("totalEntries"))
        print(f"[finding] Page {page}/{total_pages}: {len(records)} items")
        return Page(records=records, has_more=bool(records) and page < total_pages, total=int(total) if total else None)

    def _raise_failure(self, body: Dict[str, Any]) -> None:
        errors = (_first(body.get("errorMessage"), {}) or {}).get("error") or []
        error = errors[0] if errors else {}
        error_id = str(_first(error.get("errorId"), ""))
        message = _first(error.get("message"), "unknown failure")
        if error_id == RATE_LIMIT_ERROR_ID:
            raise TransientProviderError(f"finding: rate limited ({message})")
        raise ProviderError(f"finding: {message} (errorId={error_id or '?'})")

    def normalize(self, record: Dict[str, Any]) -> Listing:
        item_id = _first(record.get("itemId"))
        if not item_id:
            raise ValueError("finding record has no itemId")
        selling = _first(record.get("sellingStatus"), {}) or {}
        price = _first(selling.get("currentPrice"), {}) or {}
        image = _first(record.get("pictureURLLarge")) or _first(record.get("galleryURL"))
        condition = _first(record.get("condition"), {}) or {}
        category = _first(record.get("primaryCategory"), {}) or {}
        listing_info = _first(record.get("listingInfo"), {}) or {}
        subtitle = _first(record.get("subtitle"), "") or ""
        listing = Listing(
            id=str(item_id),
            title=_first(record.get("title"), "") or "",
            price=Price(amount=parse_amount(price.get("__value__")), currency=price.get("@currencyId") or "USD"),
            image_url=image,
            external_url=_first(record.get("viewItemURL"), "") or "",
            short_description=subtitle,
            attributes=build_attributes(
                [
                    ("Condition", _first(condition.get("conditionDisplayName"))),
                    ("Category", _first(category.get("categoryName"))),
                    ("Location", _first(record.get("location"))),
                ],
                listing_date=_first(listing_info.get("startTime")),
            ),
        )
        return with_placeholder(listing)
