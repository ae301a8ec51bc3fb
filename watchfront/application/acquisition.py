import time
from typing import Any, Callable, Dict, List, Sequence, Tuple, TypeVar
from ..domain.errors import ProviderError, TransientProviderError
from ..domain.models import Listing
from ..domain.ports import ListingStorePort, ListingsProviderPort
from ..domain.samples import SAMPLE_LISTINGS

T = TypeVar("T")


class AcquisitionService:
    def __init__(
        self,
        provider: ListingsProviderPort,
        store: ListingStorePort,
        max_retries: int = 3,
        backoff_base: float = 1.0,
        page_delay: float = 1.0,
        max_items: int = 200,
        detail_limit: int = 20,
        detail_batch_size: int = 5,
        batch_delay: float = 1.0,
        fallback: Sequence[Listing] = SAMPLE_LISTINGS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.provider = provider
        self.store = store
        self.max_retries = max(1, max_retries)
        self.backoff_base = backoff_base
        self.page_delay = page_delay
        self.max_items = max_items
        self.detail_limit = detail_limit
        self.detail_batch_size = max(1, detail_batch_size)
        self.batch_delay = batch_delay
        self.fallback = tuple(fallback)
        self._sleep = sleep

    def _with_retry(self, label: str, call: Callable[[], T]) -> T:
        attempt = 0
        while True:
            try:
                return call()
            except TransientProviderError as e:
                attempt += 1
                if attempt >= self.max_retries:
                    print(f"[acquire] {label}: giving up after {attempt} attempts ({e})")
                    raise
                delay = self.backoff_base * (2 ** (attempt - 1))
                print(f"[acquire] {label}: {e}; retry {attempt}/{self.max_retries - 1} in {delay:.1f}s")
                self._sleep(delay)

    def _fetch_records(self, seller_id: str) -> List[Any]:
        records: List[Any] = []
        page = 1
        while True:
            result = self._with_retry(f"page {page}", lambda: self.provider.fetch_page(seller_id, page))
            records.extend(result.records)
            limit = self.max_items
            if result.total is not None:
                limit = min(limit, int(result.total))
            if len(records) >= limit:
                print(f"[acquire] Reached cutoff of {limit} items (provider total={result.total}).")
                return records[:limit]
            if not result.has_more:
                return records
            page += 1
            self._sleep(self.page_delay)

    def _normalize(self, records: Sequence[Any]) -> List[Listing]:
        by_id: Dict[str, Listing] = {}
        for record in records:
            try:
                listing = self.provider.normalize(record)
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                print(f"[acquire] Skipping record that could not be normalized: {e}")
                continue
            by_id.setdefault(listing.id, listing)
        return list(by_id.values())

    def _enrich(self, listings: List[Listing]) -> List[Listing]:
        if not self.provider.supports_details() or self.detail_limit <= 0:
            return listings
        head = listings[: self.detail_limit]
        enriched: List[Listing] = []
        for start in range(0, len(head), self.detail_batch_size):
            if start:
                self._sleep(self.batch_delay)
            batch = head[start : start + self.detail_batch_size]
            print(f"[acquire] Enriching items {start + 1}-{start + len(batch)} of {len(head)}")
            for listing in batch:
                try:
                    enriched.append(self._with_retry(f"details {listing.id}", lambda: self.provider.fetch_details(listing)))
                except Exception as e:
                    print(f"[acquire] Detail lookup failed for {listing.id}: {e}")
                    enriched.append(listing)
        return enriched + listings[self.detail_limit :]

    def acquire(self, seller_id: str) -> Tuple[Listing, ...]:
        """Fetch and normalize the seller's listings; raises ProviderError on failure."""
        print(f"[acquire] Fetching listings for seller {seller_id} via {self.provider.name}…")
        records = self._fetch_records(seller_id)
        print(f"[acquire] Fetched {len(records)} raw records.")
        listings = self._normalize(records)
        return tuple(self._enrich(listings))

    def run(self, seller_id: str) -> Tuple[Listing, ...]:
        """Acquire and persist; falls back to the built-in collection so a file is always written."""
        source = self.provider.name
        try:
            listings = self.acquire(seller_id)
        except ProviderError as e:
            print(f"[acquire] Acquisition failed: {e}")
            listings = ()
        except Exception as e:
            print(f"[acquire] Unexpected acquisition error: {e!r}")
            listings = ()
        if not listings:
            print(f"[acquire] Using built-in fallback collection ({len(self.fallback)} items).")
            listings = self.fallback
            source = "fallback"
        self.store.save(listings, source)
        return listings
