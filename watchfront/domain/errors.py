from typing import Optional


class ProviderError(Exception):
    """A marketplace call failed in a way retrying will not fix."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class TransientProviderError(ProviderError):
    """Rate limiting, server hiccups, expired credentials, network trouble."""

    def __init__(self, message: str, status: Optional[int] = None, auth: bool = False) -> None:
        super().__init__(message, status)
        self.auth = auth
