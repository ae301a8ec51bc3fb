import json
from watchfront.adapters.state.json_listing_store import JsonListingStore
from watchfront.application.acquisition import AcquisitionService
from watchfront.domain.errors import ProviderError, TransientProviderError
from watchfront.domain.models import Listing
from watchfront.domain.ports import ListingsProviderPort, Page
from watchfront.domain.samples import SAMPLE_LISTINGS
from fakes import make_listing


class ScriptedProvider(ListingsProviderPort):
    """Serves pages from a list; an exception in the list is raised instead."""

    name = "scripted"

    def __init__(self, pages, details=None):
        self.pages = list(pages)
        self.details = details
        self.page_calls = []
        self.detail_calls = []

    def fetch_page(self, seller_id, page):
        self.page_calls.append(page)
        item = self.pages.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def normalize(self, record):
        if record.get("broken"):
            raise ValueError("no id")
        return make_listing(record["id"], record.get("title", "Watch"))

    def supports_details(self):
        return self.details is not None

    def fetch_details(self, listing):
        self.detail_calls.append(listing.id)
        outcome = self.details(listing)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def service(provider, tmp_path, sleeps, **kwargs):
    store = JsonListingStore(str(tmp_path / "listings.json"))
    return AcquisitionService(provider, store, sleep=sleeps.append, **kwargs), store


def read_output(tmp_path):
    with open(tmp_path / "listings.json", encoding="utf-8") as f:
        return json.load(f)


def test_pages_are_concatenated_until_provider_stops(tmp_path):
    provider = ScriptedProvider([
        Page(records=[{"id": "1"}, {"id": "2"}], has_more=True),
        Page(records=[{"id": "3"}], has_more=False),
    ])
    sleeps = []
    svc, _ = service(provider, tmp_path, sleeps, page_delay=0.5)
    result = svc.run("seller")
    assert [l.id for l in result] == ["1", "2", "3"]
    assert provider.page_calls == [1, 2]
    assert sleeps == [0.5]
    data = read_output(tmp_path)
    assert data["source"] == "scripted"
    assert [i["id"] for i in data["itemSummaries"]] == ["1", "2", "3"]


def test_total_cutoff_stops_paging(tmp_path):
    provider = ScriptedProvider([
        Page(records=[{"id": "1"}, {"id": "2"}], has_more=True),
        Page(records=[{"id": "3"}, {"id": "4"}], has_more=True),
    ])
    svc, _ = service(provider, tmp_path, [], max_items=3)
    assert [l.id for l in svc.acquire("seller")] == ["1", "2", "3"]
    assert provider.page_calls == [1, 2]


def test_transient_failures_retry_with_exponential_backoff(tmp_path):
    provider = ScriptedProvider([
        TransientProviderError("429", status=429),
        TransientProviderError("503", status=503),
        Page(records=[{"id": "1"}], has_more=False),
    ])
    sleeps = []
    svc, _ = service(provider, tmp_path, sleeps, max_retries=3, backoff_base=2.0)
    assert [l.id for l in svc.run("seller")] == ["1"]
    assert sleeps == [2.0, 4.0]


def test_exhausted_retries_write_fallback(tmp_path):
    provider = ScriptedProvider([TransientProviderError("429", status=429)] * 3)
    sleeps = []
    svc, _ = service(provider, tmp_path, sleeps, max_retries=3, backoff_base=1.0)
    result = svc.run("seller")
    assert result == SAMPLE_LISTINGS
    assert sleeps == [1.0, 2.0]
    data = read_output(tmp_path)
    assert data["source"] == "fallback"
    assert data["itemSummaries"]
    assert [Listing.from_dict(i) for i in data["itemSummaries"]] == list(SAMPLE_LISTINGS)


def test_non_recoverable_failure_falls_back_without_retry(tmp_path):
    provider = ScriptedProvider([ProviderError("bad request", status=400)])
    sleeps = []
    svc, _ = service(provider, tmp_path, sleeps)
    assert svc.run("seller") == SAMPLE_LISTINGS
    assert provider.page_calls == [1]
    assert sleeps == []


def test_empty_result_falls_back(tmp_path):
    svc, _ = service(ScriptedProvider([Page(records=[], has_more=False)]), tmp_path, [])
    assert svc.run("seller") == SAMPLE_LISTINGS
    assert read_output(tmp_path)["source"] == "fallback"


def test_unnormalizable_and_duplicate_records_are_skipped(tmp_path):
    provider = ScriptedProvider([Page(records=[{"id": "1"}, {"broken": True}, {"id": "1", "title": "dup"}, {"id": "2"}])])
    svc, _ = service(provider, tmp_path, [])
    result = svc.acquire("seller")
    assert [l.id for l in result] == ["1", "2"]
    assert result[0].title == "Watch"


def test_details_are_fetched_in_batches_and_failures_keep_summary(tmp_path):
    def details(listing):
        if listing.id == "2":
            return ProviderError("gone", status=404)
        return make_listing(listing.id, listing.title, short="enriched")

    provider = ScriptedProvider(
        [Page(records=[{"id": str(i)} for i in range(1, 6)])],
        details=details,
    )
    sleeps = []
    svc, _ = service(provider, tmp_path, sleeps, detail_limit=4, detail_batch_size=2, batch_delay=0.25)
    result = svc.acquire("seller")
    assert provider.detail_calls == ["1", "2", "3", "4"]
    assert [l.short_description for l in result] == ["enriched", "", "enriched", "enriched", ""]
    assert sleeps == [0.25]


def test_unexpected_detail_error_keeps_summary(tmp_path):
    def details(listing):
        if listing.id == "2":
            return KeyError("ItemSpecifics")
        return make_listing(listing.id, listing.title, short="enriched")

    provider = ScriptedProvider([Page(records=[{"id": "1"}, {"id": "2"}, {"id": "3"}])], details=details)
    svc, store = service(provider, tmp_path, [])
    result = svc.run("seller")
    assert [l.id for l in result] == ["1", "2", "3"]
    assert [l.short_description for l in result] == ["enriched", "", "enriched"]
    assert read_output(tmp_path)["source"] == "scripted"


def test_provider_total_stops_paging_before_max_items(tmp_path, capsys):
    provider = ScriptedProvider([
        Page(records=[{"id": "1"}, {"id": "2"}], has_more=True, total=3),
        Page(records=[{"id": "3"}], has_more=True, total=3),
        Page(records=[{"id": "4"}], has_more=False, total=3),
    ])
    svc, _ = service(provider, tmp_path, [], max_items=50)
    assert [l.id for l in svc.acquire("seller")] == ["1", "2", "3"]
    assert provider.page_calls == [1, 2]
    assert "Reached cutoff of 3 items (provider total=3)" in capsys.readouterr().out
