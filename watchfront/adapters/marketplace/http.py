from typing import Any
import requests
from ...domain.errors import ProviderError, TransientProviderError

RETRYABLE_STATUSES = {429, 500, 502, 503, 504}


def check_response(resp: requests.Response, tag: str) -> requests.Response:
    """Map an HTTP status onto the provider error types; return ``resp`` when it is OK."""
    status = resp.status_code
    if status < 400:
        return resp
    body = (resp.text or "")[:300]
    print(f"[{tag}] HTTP {status}: {body}")
    if status == 401:
        raise TransientProviderError(f"{tag}: unauthorized", status=status, auth=True)
    if status in RETRYABLE_STATUSES:
        raise TransientProviderError(f"{tag}: HTTP {status}", status=status)
    raise ProviderError(f"{tag}: HTTP {status}", status=status)


def send(session: requests.Session, method: str, url: str, tag: str, **kwargs: Any) -> requests.Response:
    try:
        resp = session.request(method, url, **kwargs)
    except (requests.Timeout, requests.ConnectionError) as e:
        raise TransientProviderError(f"{tag}: {e.__class__.__name__}: {e}") from e
    except requests.RequestException as e:
        raise ProviderError(f"{tag}: {e}") from e
    print(f"[{tag}] {method} {url} -> {resp.status_code}")
    return check_response(resp, tag)


def json_body(resp: requests.Response, tag: str) -> Any:
    try:
        return resp.json()
    except ValueError as e:
        raise ProviderError(f"{tag}: response is not JSON") from e
