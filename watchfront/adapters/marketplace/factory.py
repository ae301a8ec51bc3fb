import os
from typing import Optional
import requests
from ...domain.ports import CredentialProviderPort, ListingsProviderPort
from ...infrastructure.config import Settings
from ..auth.credentials import ClientCredentialsProvider, StaticTokenCredentials, TokenFileCredentials
from .browse_provider import BrowseProvider
from .finding_provider import FindingProvider
from .trading_provider import TradingProvider

PROVIDERS = ("browse", "finding", "trading")


def build_token_credentials(settings: Settings, session: requests.Session) -> CredentialProviderPort:
    """Explicit token, then the token file, then the client-credentials grant."""
    if settings.access_token:
        return StaticTokenCredentials(settings.access_token)
    if settings.tokens_path and os.path.exists(settings.tokens_path):
        return TokenFileCredentials(settings.tokens_path)
    return ClientCredentialsProvider(
        settings.app_id,
        settings.cert_id,
        settings.api_base_url,
        session=session,
        timeout=settings.request_timeout_seconds,
    )


def build_provider(settings: Settings, session: Optional[requests.Session] = None) -> ListingsProviderPort:
    session = session or requests.Session()
    name = settings.provider.lower()
    if name == "browse":
        return BrowseProvider(
            build_token_credentials(settings, session),
            settings.api_base_url,
            marketplace_id=settings.marketplace_id,
            page_size=settings.page_size,
            session=session,
            timeout=settings.request_timeout_seconds,
            user_agent=settings.user_agent,
        )
    if name == "finding":
        return FindingProvider(
            StaticTokenCredentials(settings.app_id),
            settings.finding_url,
            page_size=settings.page_size,
            session=session,
            timeout=settings.request_timeout_seconds,
            user_agent=settings.user_agent,
        )
    if name == "trading":
        return TradingProvider(
            build_token_credentials(settings, session),
            settings.trading_url,
            page_size=settings.page_size,
            session=session,
            timeout=settings.request_timeout_seconds,
        )
    raise ValueError(f"unknown EBAY_PROVIDER {settings.provider!r}; expected one of {', '.join(PROVIDERS)}")
