import json
import os
import tempfile
from datetime import datetime, timezone
from typing import Any, Dict, List, Sequence
from ...domain.models import Listing
from ...domain.ports import ListingStorePort


class ListingFileError(Exception):
    """The listings file is missing or does not hold a listing collection."""


class JsonListingStore(ListingStorePort):
    def __init__(self, path: str) -> None:
        self.path = os.path.abspath(path)

    def load(self) -> List[Listing]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except FileNotFoundError as e:
            raise ListingFileError(f"{self.path} does not exist") from e
        except ValueError as e:
            raise ListingFileError(f"{self.path} is not valid JSON: {e}") from e
        records = raw.get("itemSummaries") if isinstance(raw, dict) else raw
        if not isinstance(records, list):
            raise ListingFileError(f"{self.path} has no itemSummaries array")
        listings: List[Listing] = []
        seen = set()
        for record in records:
            try:
                listing = Listing.from_dict(record)
            except (AttributeError, TypeError, ValueError) as e:
                print(f"[store] Skipping unreadable record: {e}")
                continue
            if listing.id in seen:
                continue
            seen.add(listing.id)
            listings.append(listing)
        return listings

    def save(self, listings: Sequence[Listing], source: str) -> None:
        payload: Dict[str, Any] = {
            "itemSummaries": [l.to_dict() for l in listings],
            "generatedAt": datetime.now(timezone.utc).isoformat(),
            "source": source,
        }
        directory = os.path.dirname(self.path)
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=".listings-", suffix=".json", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
        print(f"[store] Wrote {len(listings)} listings ({source}) to {self.path}")
