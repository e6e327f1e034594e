from __future__ import annotations

import logging
import time
from collections import deque
from typing import Any, Optional, Tuple

import requests

from .errors import TransportError, UnauthorizedRetryExhausted
from .secret_store import SecretManager
from .signing import canonical_body, new_nonce, sign, signed_headers
from .utils import now_ms

logger = logging.getLogger(__name__)


class RateLimiter:
    def __init__(self, rpm: int = 60) -> None:
        self.window = 60.0
        self.rpm = max(1, rpm)
        self.calls: deque[float] = deque()

    def wait(self) -> None:
        now = time.monotonic()
        while self.calls and now - self.calls[0] > self.window:
            self.calls.popleft()
        if len(self.calls) >= self.rpm:
            sleep_for = self.window - (now - self.calls[0]) + 0.01
            time.sleep(max(0.0, sleep_for))
        self.calls.append(time.monotonic())


def _is_unauthorized(status: int, payload: Any) -> bool:
    if status == 401:
        return True
    return isinstance(payload, dict) and payload.get("error") == "Unauthorized"


class RematchAPI:
    """Signed client for api.rematchtracker.com.

    Each call is signed with the secret held by ``secrets``. A rejected
    signature drops the secret, extracts a new one and retries once with a
    new timestamp and nonce.
    """

    BASE = "https://api.rematchtracker.com"

    def __init__(
        self,
        secrets: SecretManager,
        base: Optional[str] = None,
        session: Optional[requests.Session] = None,
        rpm: int = 120,
        timeout: float = 25,
    ) -> None:
        self.secrets = secrets
        self.base = (base or self.BASE).rstrip("/")
        self.session = session or requests.Session()
        self.rl = RateLimiter(rpm=rpm)
        self.timeout = timeout

    def _send(self, method: str, path: str, body: str) -> Tuple[int, Any]:
        secret = self.secrets.ensure_secret()
        timestamp = now_ms()
        nonce = new_nonce()
        signature = sign(secret.key, method, path, body, timestamp, nonce)

        self.rl.wait()
        try:
            r = self.session.request(
                method,
                self.base + path,
                data=body.encode("utf-8") if body else None,
                headers=signed_headers(timestamp, nonce, signature),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise TransportError(f"{method} {path} failed: {exc}") from exc

        try:
            payload = r.json()
        except ValueError:
            payload = None
        return r.status_code, payload

    def request(self, method: str, path: str, body: Any = None) -> Any:
        """Perform a signed call and return the decoded JSON body.

        Raises:
            ExtractionFailed: no signing key could be obtained.
            UnauthorizedRetryExhausted: rejected again after re-extraction.
            TransportError: network error or any other non-2xx status.
        """
        method = method.upper()
        if not path.startswith("/"):
            path = "/" + path
        wire_body = canonical_body(method, body)

        status, payload = self._send(method, path, wire_body)
        if _is_unauthorized(status, payload):
            logger.warning("Unauthorized on %s %s; secret may have rotated, re-extracting", method, path)
            self.secrets.invalidate()
            status, payload = self._send(method, path, wire_body)
            if _is_unauthorized(status, payload):
                raise UnauthorizedRetryExhausted(
                    f"{method} {path} rejected again after refreshing the signing secret"
                )

        if not 200 <= status < 300:
            raise TransportError(f"{method} {path} returned HTTP {status}", status, payload)
        if payload is None:
            raise TransportError(f"{method} {path} returned a non-JSON body", status)
        return payload

    def get(self, path: str) -> Any:
        return self.request("GET", path)

    def post(self, path: str, body: Any) -> Any:
        return self.request("POST", path, body)

    def put(self, path: str, body: Any) -> Any:
        return self.request("PUT", path, body)

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)
