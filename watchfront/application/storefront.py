import asyncio
import os
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple
from ..adapters.render.html_renderer import HtmlRenderer
from ..adapters.state.json_listing_store import ListingFileError
from ..domain.classifier import RULES_VERSION
from ..domain.models import LAYOUTS, Listing, Suggestion, ViewState
from ..domain.pipeline import apply_view, result_message
from ..domain.ports import ListingStorePort, PreferenceStorePort
from ..domain.samples import SAMPLE_LISTINGS
from ..domain.suggestions import suggest

NO_DATA_MESSAGE = "Unable to load listings. Please try again later."


@dataclass(frozen=True)
class StorefrontPage:
    listings: Tuple[Listing, ...]
    view: ViewState
    message: Optional[str] = None
    error: Optional[str] = None


class StorefrontService:
    def __init__(
        self,
        store: ListingStorePort,
        preferences: PreferenceStorePort,
        renderer: Optional[HtmlRenderer] = None,
        fallback: Sequence[Listing] = SAMPLE_LISTINGS,
    ) -> None:
        self.store = store
        self.preferences = preferences
        self.renderer = renderer or HtmlRenderer()
        self.fallback = tuple(fallback)
        self._collection: Optional[Tuple[Listing, ...]] = None

    def load(self) -> Tuple[Listing, ...]:
        try:
            listings = tuple(self.store.load())
            print(f"[storefront] Loaded {len(listings)} listings (category rules v{RULES_VERSION}).")
        except ListingFileError as e:
            print(f"[storefront] Could not read listings ({e}); falling back to sample data.")
            listings = self.fallback
        if not listings:
            print("[storefront] Listings file is empty; falling back to sample data.")
            listings = self.fallback
        self._collection = listings
        return listings

    @property
    def collection(self) -> Tuple[Listing, ...]:
        if self._collection is None:
            return self.load()
        return self._collection

    def initial_view(self) -> ViewState:
        return ViewState(layout=self.preferences.get_layout() or "grid")

    def view(self, state: ViewState) -> StorefrontPage:
        collection = self.collection
        if not collection:
            return StorefrontPage(listings=(), view=state, error=NO_DATA_MESSAGE)
        listings = apply_view(collection, state)
        return StorefrontPage(listings=listings, view=state, message=result_message(state, len(listings)))

    def suggestions(self, partial: str) -> List[Suggestion]:
        return suggest(self.collection, partial)

    def toggle_layout(self, state: ViewState) -> ViewState:
        layout = LAYOUTS[(LAYOUTS.index(state.layout) + 1) % len(LAYOUTS)]
        self.preferences.set_layout(layout)
        return state.with_layout(layout)

    def render(self, state: ViewState, path: str) -> StorefrontPage:
        page = self.view(state)
        html = self.renderer.render_page(
            page.listings,
            page.view,
            message=page.message,
            error=page.error,
            suggestions=self.suggestions(state.search or ""),
        )
        os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(html)
        print(f"[storefront] Rendered {len(page.listings)} listings to {path}")
        return page


class SearchDebouncer:
    """Runs ``callback`` once input has been quiet for ``delay`` seconds.

    Each new keystroke cancels whatever is still pending for the previous one.
    """

    def __init__(self, callback: Callable[[str], Awaitable[None]], delay: float = 0.3) -> None:
        self.callback = callback
        self.delay = delay
        self._pending: Optional[asyncio.Task] = None

    def feed(self, text: str) -> asyncio.Task:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = asyncio.ensure_future(self._run(text))
        return self._pending

    async def _run(self, text: str) -> None:
        await asyncio.sleep(self.delay)
        await self.callback(text)

    async def flush(self) -> None:
        if self._pending is not None:
            try:
                await self._pending
            except asyncio.CancelledError:
                pass
