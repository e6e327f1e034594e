from __future__ import annotations

from typing import Any, Optional


class RematchError(Exception):
    """Base class for every failure raised by this package."""


class ExtractionFailed(RematchError):
    """The browser never exposed the signing key within the allowed wait."""


class UnauthorizedRetryExhausted(RematchError):
    """The API rejected a request twice, even after a fresh key extraction."""


class TransportError(RematchError):
    """Network failure, undecodable body, or a non-2xx status other than 401."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class ParseFailure(RematchError):
    """Steam community search returned cookies or HTML we could not read."""
