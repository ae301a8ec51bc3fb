import base64
import json
import time
from typing import Optional
import requests
from ...domain.errors import ProviderError
from ...domain.ports import CredentialProviderPort
from ..marketplace.http import json_body, send

OAUTH_SCOPE = "https://api.ebay.com/oauth/api_scope"


def mask(secret: Optional[str]) -> Optional[str]:
    return (secret[:4] + "…") if secret else None


class StaticTokenCredentials(CredentialProviderPort):
    """A bearer token or application key handed over through the environment."""

    def __init__(self, credential: str) -> None:
        self._credential = credential

    def get_credential(self) -> str:
        if not self._credential:
            raise ProviderError("no marketplace credential configured")
        return self._credential


class TokenFileCredentials(CredentialProviderPort):
    """Reads ``access_token`` from the token file an external OAuth helper maintains."""

    def __init__(self, path: str) -> None:
        self.path = path
        self._token: Optional[str] = None

    def get_credential(self) -> str:
        if self._token is None:
            try:
                with open(self.path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except FileNotFoundError as e:
                raise ProviderError(f"token file not found: {self.path}") from e
            except ValueError as e:
                raise ProviderError(f"token file is not valid JSON: {self.path}") from e
            token = data.get("access_token") if isinstance(data, dict) else None
            if not token:
                raise ProviderError(f"no access_token in {self.path}")
            print(f"[auth] Loaded token {mask(token)} from {self.path}")
            self._token = token
        return self._token

    def invalidate(self) -> None:
        # the helper may have refreshed the file in the meantime
        self._token = None


class ClientCredentialsProvider(CredentialProviderPort):
    """Application access token obtained with the client-credentials grant."""

    def __init__(self, app_id: str, cert_id: str, base_url: str, session: Optional[requests.Session] = None, timeout: int = 30, clock=time.monotonic) -> None:
        self.app_id = app_id
        self.cert_id = cert_id
        self.token_url = f"{base_url}/identity/v1/oauth2/token"
        self.session = session or requests.Session()
        self.timeout = timeout
        self._clock = clock
        self._token: Optional[str] = None
        self._expires_at = 0.0

    def _basic_auth(self) -> str:
        raw = f"{self.app_id}:{self.cert_id}".encode("utf-8")
        return "Basic " + base64.b64encode(raw).decode("ascii")

    def get_credential(self) -> str:
        if self._token and self._clock() < self._expires_at:
            return self._token
        if not self.app_id or not self.cert_id:
            raise ProviderError("EBAY_APP_ID and EBAY_CERT_ID must be set")
        print(f"[auth] Requesting application token for {mask(self.app_id)}")
        resp = send(
            self.session,
            "POST",
            self.token_url,
            "auth",
            headers={
                "Content-Type": "application/x-www-form-urlencoded",
                "Authorization": self._basic_auth(),
            },
            data={"grant_type": "client_credentials", "scope": OAUTH_SCOPE},
            timeout=self.timeout,
        )
        payload = json_body(resp, "auth")
        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not token:
            raise ProviderError("auth: token response has no access_token")
        expires_in = int(payload.get("expires_in") or 7200)
        # renew a minute early
        self._token = token
        self._expires_at = self._clock() + max(expires_in - 60, 0)
        return token

    def invalidate(self) -> None:
        self._token = None
        self._expires_at = 0.0
