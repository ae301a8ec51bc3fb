import argparse
import asyncio
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from watchfront.adapters.marketplace.factory import build_provider
from watchfront.adapters.state.json_listing_store import JsonListingStore
from watchfront.adapters.state.json_preference_store import JsonPreferenceStore
from watchfront.application.acquisition import AcquisitionService
from watchfront.application.storefront import StorefrontService
from watchfront.domain.models import LAYOUTS, SortMode
from watchfront.infrastructure.config import settings


def acquire_once() -> None:
    provider = build_provider(settings)
    service = AcquisitionService(
        provider,
        JsonListingStore(settings.listings_path),
        max_retries=settings.max_retries,
        backoff_base=settings.backoff_base_seconds,
        page_delay=settings.page_delay_seconds,
        max_items=settings.max_items,
        detail_limit=settings.detail_limit,
        detail_batch_size=settings.detail_batch_size,
        batch_delay=settings.batch_delay_seconds,
    )
    service.run(settings.seller_id)


def render_once(args: argparse.Namespace = None) -> None:
    storefront = StorefrontService(JsonListingStore(settings.listings_path), JsonPreferenceStore(settings.preferences_path))
    state = storefront.initial_view()
    if args is not None:
        if args.layout:
            storefront.preferences.set_layout(args.layout)
            state = state.with_layout(args.layout)
        if args.toggle_layout:
            state = storefront.toggle_layout(state)
        state = state.with_category(args.category).with_sort(SortMode(args.sort)).with_search(args.search)
    storefront.render(state, settings.site_path)


def suggest_once(partial: str) -> None:
    storefront = StorefrontService(JsonListingStore(settings.listings_path), JsonPreferenceStore(settings.preferences_path))
    for suggestion in storefront.suggestions(partial):
        print(f"{suggestion.text}\t{suggestion.kind}\t{suggestion.category.value}")


async def run_once() -> None:
    # blocking HTTP calls stay off the event loop
    await asyncio.to_thread(acquire_once)
    render_once()


async def serve() -> None:
    await run_once()

    scheduler = AsyncIOScheduler()
    scheduler.add_job(run_once, "interval", minutes=settings.check_interval_minutes, id="refresh")
    scheduler.start()
    print(f"[main] Refreshing every {settings.check_interval_minutes} minutes.")

    while True:
        await asyncio.sleep(3600)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="watchfront", description="Watch storefront builder")
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("acquire", help="fetch seller listings and write the listings file")
    render = sub.add_parser("render", help="render the storefront page from the listings file")
    render.add_argument("--category", default="all", choices=["all", "manual", "automatic", "digital", "quartz"])
    render.add_argument("--search", default="")
    render.add_argument("--sort", default=SortMode.UNSORTED.value, choices=[m.value for m in SortMode])
    render.add_argument("--layout", choices=list(LAYOUTS))
    render.add_argument("--toggle-layout", action="store_true")
    suggest = sub.add_parser("suggest", help="list search completions for a partial term")
    suggest.add_argument("partial")
    sub.add_parser("serve", help="acquire and render now, then on a schedule")
    return parser


def main(argv=None) -> None:
    args = build_parser().parse_args(argv)
    if args.command == "acquire":
        acquire_once()
    elif args.command == "render":
        render_once(args)
    elif args.command == "suggest":
        suggest_once(args.partial)
    else:
        asyncio.run(serve())


if __name__ == "__main__":
    main()
