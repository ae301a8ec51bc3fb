from datetime import datetime, timezone
import pytest
from watchfront.adapters.auth.credentials import StaticTokenCredentials
from watchfront.adapters.marketplace.browse_provider import BrowseProvider
from watchfront.adapters.marketplace.finding_provider import FindingProvider
from watchfront.adapters.marketplace.trading_provider import TradingProvider
from watchfront.domain.errors import ProviderError, TransientProviderError
from watchfront.domain.models import placeholder_image, Category
from fakes import FakeResponse, FakeSession, connection_error


class CountingCredentials(StaticTokenCredentials):
    def __init__(self, credential):
        super().__init__(credential)
        self.invalidated = 0

    def invalidate(self):
        self.invalidated += 1


def browse(session, credentials=None):
    return BrowseProvider(credentials or StaticTokenCredentials("tok"), "https://api.example", page_size=2, session=session)


# Browse -------------------------------------------------------------------

def test_browse_page_request_and_pagination():
    payload = {"total": 3, "next": "...", "itemSummaries": [{"itemId": "v1|1|0"}, {"itemId": "v1|2|0"}]}
    session = FakeSession([FakeResponse(200, payload)])
    page = browse(session).fetch_page("honey_suckle", 1)
    assert page.has_more is True
    assert len(page.records) == 2
    call = session.calls[0]
    assert call["url"] == "https://api.example/buy/browse/v1/item_summary/search"
    assert call["headers"]["Authorization"] == "Bearer tok"
    assert call["params"]["filter"].startswith("sellers:{honey_suckle}")
    assert call["params"]["offset"] == 0


def test_browse_last_page_has_no_more():
    payload = {"total": 3, "itemSummaries": [{"itemId": "v1|3|0"}]}
    page = browse(FakeSession([FakeResponse(200, payload)])).fetch_page("s", 2)
    assert page.has_more is False


def test_browse_normalize_full_record():
    record = {
        "itemId": "v1|123|0",
        "title": "Vintage Omega Seamaster Automatic Watch",
        "image": {"imageUrl": "https://img/1.jpg"},
        "price": {"value": "899.99", "currency": "USD"},
        "itemWebUrl": "https://www.ebay.com/itm/123",
        "shortDescription": "Nice.",
        "itemCreationDate": "2024-03-02T10:00:00.000Z",
    }
    listing = browse(FakeSession([])).normalize(record)
    assert listing.id == "v1|123|0"
    assert listing.price.amount == "899.99"
    assert listing.image_url == "https://img/1.jpg"
    assert listing.full_description == "Nice."
    assert listing.attribute("Listing Date") == "2024-03-02T10:00:00.000Z"
    assert listing.display_attributes() == ()


def test_browse_normalize_defaults_missing_fields():
    listing = browse(FakeSession([])).normalize({"itemId": "9", "title": "Casio Digital"})
    assert listing.price.amount == "0"
    assert listing.short_description == ""
    assert listing.full_description == ""
    assert listing.image_url == placeholder_image(Category.DIGITAL)


def test_browse_details_merge_aspects_and_description():
    session = FakeSession([
        FakeResponse(200, {
            "description": "<p>Serviced <b>2023</b></p><script>x()</script>",
            "localizedAspects": [{"name": "Brand", "value": "Omega"}, {"name": "Listing Date", "value": "x"}],
        })
    ])
    provider = browse(session)
    listing = provider.normalize({"itemId": "v1|5|0", "title": "Omega", "itemCreationDate": "2024-01-01"})
    enriched = provider.fetch_details(listing)
    assert session.calls[0]["url"].endswith("/item/v1%7C5%7C0")
    assert enriched.full_description == "Serviced 2023"
    assert enriched.short_description == "Serviced 2023"
    assert enriched.attribute("Brand") == "Omega"
    assert enriched.attribute("Listing Date") == "2024-01-01"


@pytest.mark.parametrize("status", [429, 500, 503])
def test_browse_retryable_statuses(status):
    with pytest.raises(TransientProviderError):
        browse(FakeSession([FakeResponse(status, {"errors": []})])).fetch_page("s", 1)


def test_browse_unauthorized_invalidates_credentials():
    creds = CountingCredentials("tok")
    with pytest.raises(TransientProviderError) as exc:
        browse(FakeSession([FakeResponse(401, {})]), creds).fetch_page("s", 1)
    assert exc.value.auth is True
    assert creds.invalidated == 1


def test_browse_client_error_is_not_retryable():
    with pytest.raises(ProviderError) as exc:
        browse(FakeSession([FakeResponse(400, {})])).fetch_page("s", 1)
    assert not isinstance(exc.value, TransientProviderError)


def test_network_errors_are_transient():
    with pytest.raises(TransientProviderError):
        browse(FakeSession([connection_error()])).fetch_page("s", 1)


def test_non_json_body_is_provider_error():
    with pytest.raises(ProviderError):
        browse(FakeSession([FakeResponse(200, text="<html>maintenance</html>")])).fetch_page("s", 1)


# Finding ------------------------------------------------------------------

def finding_payload(items, page=1, total_pages=2, ack="Success", errors=None):
    body = {
        "ack": [ack],
        "searchResult": [{"@count": str(len(items)), "item": items}],
        "paginationOutput": [{"pageNumber": [str(page)], "totalPages": [str(total_pages)], "totalEntries": ["3"]}],
    }
    if errors:
        body["errorMessage"] = [{"error": errors}]
    return {"findItemsAdvancedResponse": [body]}


def finding(session):
    return FindingProvider(StaticTokenCredentials("APP-KEY"), "https://svcs.example/finding", page_size=2, session=session)


def test_finding_fetch_page():
    item = {"itemId": ["111"], "title": ["Seiko Automatic"]}
    session = FakeSession([FakeResponse(200, finding_payload([item]))])
    page = finding(session).fetch_page("honey_suckle", 1)
    assert page.has_more is True
    assert page.total == 3
    params = session.calls[0]["params"]
    assert params["SECURITY-APPNAME"] == "APP-KEY"
    assert params["itemFilter(0).value"] == "honey_suckle"
    assert params["paginationInput.pageNumber"] == 1


def test_finding_normalize():
    record = {
        "itemId": ["111"],
        "title": ["Hamilton Khaki Hand-Wind"],
        "galleryURL": ["https://img/g.jpg"],
        "viewItemURL": ["https://www.ebay.com/itm/111"],
        "sellingStatus": [{"currentPrice": [{"@currencyId": "GBP", "__value__": "120.5"}]}],
        "condition": [{"conditionDisplayName": ["Used"]}],
        "listingInfo": [{"startTime": ["2024-02-01T08:00:00.000Z"]}],
    }
    listing = finding(FakeSession([])).normalize(record)
    assert listing.title == "Hamilton Khaki Hand-Wind"
    assert listing.price.amount == "120.5"
    assert listing.price.currency == "GBP"
    assert listing.image_url == "https://img/g.jpg"
    assert listing.attribute("Condition") == "Used"
    assert listing.attribute("Listing Date") == "2024-02-01T08:00:00.000Z"


def test_finding_rate_limit_failure_is_transient():
    payload = finding_payload([], ack="Failure", errors=[{"errorId": ["10001"], "message": ["Service call has exceeded the number of times"]}])
    with pytest.raises(TransientProviderError):
        finding(FakeSession([FakeResponse(200, payload)])).fetch_page("s", 1)


def test_finding_other_failure_is_fatal():
    payload = finding_payload([], ack="Failure", errors=[{"errorId": ["5"], "message": ["bad seller"]}])
    with pytest.raises(ProviderError) as exc:
        finding(FakeSession([FakeResponse(200, payload)])).fetch_page("s", 1)
    assert not isinstance(exc.value, TransientProviderError)


# Trading ------------------------------------------------------------------

TRADING_OK = """<?xml version="1.0" encoding="UTF-8"?>
<GetSellerListResponse xmlns="urn:ebay:apis:eBLBaseComponents">
  <Ack>Success</Ack>
  <PaginationResult><TotalNumberOfPages>1</TotalNumberOfPages><TotalNumberOfEntries>1</TotalNumberOfEntries></PaginationResult>
  <HasMoreItems>false</HasMoreItems>
  <ItemArray>
    <Item>
      <ItemID>555</ItemID>
      <Title>Pulsar LED Watch</Title>
      <Description>&lt;div&gt;Red &lt;b&gt;LED&lt;/b&gt; display&lt;/div&gt;</Description>
      <ListingDetails>
        <StartTime>2024-01-05T12:00:00.000Z</StartTime>
        <ViewItemURL>https://www.ebay.com/itm/555</ViewItemURL>
      </ListingDetails>
      <SellingStatus><CurrentPrice currencyID="USD">310.0</CurrentPrice></SellingStatus>
      <ItemSpecifics>
        <NameValueList><Name>Brand</Name><Value>Pulsar</Value></NameValueList>
        <NameValueList><Name>Features</Name><Value>Alarm</Value><Value>Date</Value></NameValueList>
      </ItemSpecifics>
    </Item>
  </ItemArray>
</GetSellerListResponse>"""

TRADING_FAIL = """<?xml version="1.0" encoding="UTF-8"?>
<GetSellerListResponse xmlns="urn:ebay:apis:eBLBaseComponents">
  <Ack>Failure</Ack>
  <Errors><ShortMessage>Expired</ShortMessage><ErrorCode>{code}</ErrorCode></Errors>
</GetSellerListResponse>"""


def trading(session, credentials=None):
    return TradingProvider(
        credentials or StaticTokenCredentials("tok"),
        "https://api.example/ws/api.dll",
        session=session,
        now=lambda: datetime(2024, 5, 1, tzinfo=timezone.utc),
    )


def test_trading_fetch_and_normalize():
    session = FakeSession([FakeResponse(200, text=TRADING_OK)])
    provider = trading(session)
    page = provider.fetch_page("honey_suckle", 1)
    assert page.has_more is False
    assert len(page.records) == 1
    call = session.calls[0]
    assert call["headers"]["X-EBAY-API-CALL-NAME"] == "GetSellerList"
    assert b"<UserID>honey_suckle</UserID>" in call["data"]
    assert b"<EndTimeFrom>2024-05-01T00:00:00.000Z</EndTimeFrom>" in call["data"]

    listing = provider.normalize(page.records[0])
    assert listing.id == "555"
    assert listing.price.amount == "310.0"
    assert listing.full_description == "Red LED display"
    assert listing.external_url == "https://www.ebay.com/itm/555"
    assert listing.attribute("Features") == "Alarm, Date"
    assert listing.attribute("Listing Date") == "2024-01-05T12:00:00.000Z"
    assert listing.image_url == placeholder_image(Category.DIGITAL)


def test_trading_usage_limit_is_transient():
    session = FakeSession([FakeResponse(200, text=TRADING_FAIL.format(code="518"))])
    with pytest.raises(TransientProviderError):
        trading(session).fetch_page("s", 1)


def test_trading_rejected_token_invalidates():
    creds = CountingCredentials("tok")
    session = FakeSession([FakeResponse(200, text=TRADING_FAIL.format(code="932"))])
    with pytest.raises(TransientProviderError):
        trading(session, creds).fetch_page("s", 1)
    assert creds.invalidated == 1


def test_trading_unknown_failure_is_fatal():
    session = FakeSession([FakeResponse(200, text=TRADING_FAIL.format(code="21"))])
    with pytest.raises(ProviderError) as exc:
        trading(session).fetch_page("s", 1)
    assert not isinstance(exc.value, TransientProviderError)
