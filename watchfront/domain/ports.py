from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence
from .models import Listing


@dataclass
class Page:
    records: List[Any] = field(default_factory=list)
    has_more: bool = False
    total: Optional[int] = None


class CredentialProviderPort(ABC):
    @abstractmethod
    def get_credential(self) -> str:
        ...

    def invalidate(self) -> None:
        """Forget a cached credential after the marketplace rejected it."""


class ListingsProviderPort(ABC):
    name: str = "provider"

    @abstractmethod
    def fetch_page(self, seller_id: str, page: int) -> Page:
        ...

    @abstractmethod
    def normalize(self, record: Any) -> Listing:
        ...

    def supports_details(self) -> bool:
        return False

    def fetch_details(self, listing: Listing) -> Listing:
        return listing


class ListingStorePort(ABC):
    @abstractmethod
    def load(self) -> Sequence[Listing]:
        ...

    @abstractmethod
    def save(self, listings: Sequence[Listing], source: str) -> None:
        ...


class PreferenceStorePort(ABC):
    @abstractmethod
    def get_layout(self) -> Optional[str]:
        ...

    @abstractmethod
    def set_layout(self, layout: str) -> None:
        ...
