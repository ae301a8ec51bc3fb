from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
from xml.sax.saxutils import escape
import requests
from bs4 import BeautifulSoup
from bs4.element import Tag
from ...domain.errors import ProviderError, TransientProviderError
from ...domain.models import Listing, Price, parse_amount
from ...domain.ports import CredentialProviderPort, ListingsProviderPort, Page
from .http import send
from .normalize import build_attributes, html_to_text, shorten, with_placeholder

COMPATIBILITY_LEVEL = "1193"
# Trading API error codes
USAGE_LIMIT_CODES = {"518"}
AUTH_TOKEN_CODES = {"931", "932", "21916984"}
# GetSellerList accepts an end-time window of at most 120 days
END_TIME_WINDOW = timedelta(days=119)

REQUEST_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<GetSellerListRequest xmlns="urn:ebay:apis:eBLBaseComponents">
  <UserID>{seller}</UserID>
  <EndTimeFrom>{end_from}</EndTimeFrom>
  <EndTimeTo>{end_to}</EndTimeTo>
  <GranularityLevel>Fine</GranularityLevel>
  <DetailLevel>ReturnAll</DetailLevel>
  <IncludeWatchCount>false</IncludeWatchCount>
  <Pagination>
    <EntriesPerPage>{per_page}</EntriesPerPage>
    <PageNumber>{page}</PageNumber>
  </Pagination>
</GetSellerListRequest>"""


def _text(parent: Optional[Tag], name: str) -> str:
    if parent is None:
        return ""
    el = parent.find(name)
    return el.get_text(strip=True) if el else ""


class TradingProvider(ListingsProviderPort):
    """XML seller list (Trading API ``GetSellerList``)."""

    name = "trading"

    def __init__(
        self,
        credentials: CredentialProviderPort,
        url: str,
        page_size: int = 50,
        site_id: str = "0",
        session: Optional[requests.Session] = None,
        timeout: int = 30,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.credentials = credentials
        self.url = url
        self.page_size = page_size
        self.site_id = site_id
        self.session = session or requests.Session()
        self.timeout = timeout
        self._now = now

    def _request_body(self, seller_id: str, page: int) -> str:
        start = self._now()
        return REQUEST_TEMPLATE.format(
            seller=escape(seller_id),
            end_from=start.strftime("%Y-%m-%dT%H:%M:%S.000Z"),
            end_to=(start + END_TIME_WINDOW).strftime("%Y-%m-%dT%H:%M:%S.000Z"),
            per_page=self.page_size,
            page=page,
        )

    def fetch_page(self, seller_id: str, page: int) -> Page:
        headers = {
            "Content-Type": "text/xml",
            "X-EBAY-API-CALL-NAME": "GetSellerList",
            "X-EBAY-API-SITEID": self.site_id,
            "X-EBAY-API-COMPATIBILITY-LEVEL": COMPATIBILITY_LEVEL,
            "X-EBAY-API-IAF-TOKEN": self.credentials.get_credential(),
        }
        try:
            resp = send(
                self.session,
                "POST",
                self.url,
                self.name,
                data=self._request_body(seller_id, page).encode("utf-8"),
                headers=headers,
                timeout=self.timeout,
            )
        except TransientProviderError as e:
            if e.auth:
                self.credentials.invalidate()
            raise
        soup = BeautifulSoup(resp.content, "xml")
        root = soup.find("GetSellerListResponse")
        if root is None:
            raise ProviderError("trading: response is not a GetSellerListResponse")
        ack = _text(root, "Ack")
        if ack not in ("Success", "Warning"):
            self._raise_failure(root)
        array = root.find("ItemArray")
        records = array.find_all("Item", recursive=False) if array else []
        pagination = root.find("PaginationResult")
        total_pages = int(_text(pagination, "TotalNumberOfPages") or 0)
        total = _text(pagination, "TotalNumberOfEntries")
        has_more = _text(root, "HasMoreItems").lower() == "true" or page < total_pages
        print(f"[trading] Page {page}/{total_pages}: {len(records)} items")
        return Page(records=records, has_more=bool(records) and has_more, total=int(total) if total else None)

    def _raise_failure(self, root: Tag) -> None:
        error = root.find("Errors")
        code = _text(error, "ErrorCode")
        message = _text(error, "LongMessage") or _text(error, "ShortMessage") or "unknown failure"
        if code in USAGE_LIMIT_CODES:
            raise TransientProviderError(f"trading: call limit reached ({message})")
        if code in AUTH_TOKEN_CODES:
            self.credentials.invalidate()
            raise TransientProviderError(f"trading: token rejected ({message})", auth=True)
        raise ProviderError(f"trading: {message} (ErrorCode={code or '?'})")

    def normalize(self, record: Tag) -> Listing:
        item_id = _text(record, "ItemID")
        if not item_id:
            raise ValueError("trading record has no ItemID")
        selling = record.find("SellingStatus")
        price_el = selling.find("CurrentPrice") if selling else None
        if price_el is None:
            price_el = record.find("StartPrice")
        pictures = record.find("PictureDetails")
        image = _text(pictures, "PictureURL") or _text(pictures, "GalleryURL")
        details = record.find("ListingDetails")
        full = html_to_text(_text(record, "Description"))
        pairs = []
        specifics = record.find("ItemSpecifics")
        if specifics is not None:
            for nvl in specifics.find_all("NameValueList"):
                values = [v.get_text(strip=True) for v in nvl.find_all("Value")]
                pairs.append((_text(nvl, "Name"), values[0] if len(values) == 1 else values))
        listing = Listing(
            id=item_id,
            title=_text(record, "Title"),
            price=Price(
                amount=parse_amount(price_el.get_text(strip=True) if price_el is not None else None),
                currency=(price_el.get("currencyID") if price_el is not None else None) or "USD",
            ),
            image_url=image or None,
            external_url=_text(details, "ViewItemURL"),
            short_description=_text(record, "SubTitle") or shorten(full),
            full_description=full,
            attributes=build_attributes(pairs, listing_date=_text(details, "StartTime") or None),
        )
        return with_placeholder(listing)
