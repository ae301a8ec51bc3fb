import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


@dataclass(frozen=True)
class Settings:
    provider: str = os.getenv("EBAY_PROVIDER", "browse")
    seller_id: str = os.getenv("EBAY_SELLER_ID", "honey_suckle")
    app_id: str = os.getenv("EBAY_APP_ID", "")
    cert_id: str = os.getenv("EBAY_CERT_ID", "")
    access_token: str = os.getenv("EBAY_ACCESS_TOKEN", "")
    tokens_path: str = os.getenv("EBAY_TOKENS_PATH", "ebay-tokens.json")
    use_sandbox: bool = _flag("EBAY_USE_SANDBOX", "true")
    marketplace_id: str = os.getenv("EBAY_MARKETPLACE_ID", "EBAY_US")
    listings_path: str = os.getenv("LISTINGS_PATH", "listings.json")
    site_path: str = os.getenv("SITE_PATH", "index.html")
    preferences_path: str = os.getenv("PREFERENCES_PATH", "preferences.json")
    page_size: int = int(os.getenv("PAGE_SIZE", "50"))
    max_items: int = int(os.getenv("MAX_ITEMS", "200"))
    max_retries: int = int(os.getenv("MAX_RETRIES", "3"))
    backoff_base_seconds: float = float(os.getenv("BACKOFF_BASE_SECONDS", "1"))
    page_delay_seconds: float = float(os.getenv("PAGE_DELAY_SECONDS", "1"))
    detail_limit: int = int(os.getenv("DETAIL_LIMIT", "20"))
    detail_batch_size: int = int(os.getenv("DETAIL_BATCH_SIZE", "5"))
    batch_delay_seconds: float = float(os.getenv("BATCH_DELAY_SECONDS", "1"))
    request_timeout_seconds: int = int(os.getenv("REQUEST_TIMEOUT_SECONDS", "30"))
    check_interval_minutes: int = int(os.getenv("CHECK_INTERVAL_MINUTES", "360"))
    user_agent: str = os.getenv("USER_AGENT", "watchfront/1.0")

    @property
    def api_base_url(self) -> str:
        return "https://api.sandbox.ebay.com" if self.use_sandbox else "https://api.ebay.com"

    @property
    def finding_url(self) -> str:
        host = "svcs.sandbox.ebay.com" if self.use_sandbox else "svcs.ebay.com"
        return f"https://{host}/services/search/FindingService/v1"

    @property
    def trading_url(self) -> str:
        return f"{self.api_base_url}/ws/api.dll"


settings = Settings()
