"""Lifecycle of the HMAC signing secret.

The secret lives in memory on a ``SecretManager`` and is mirrored to a small
JSON file so a restart does not have to launch a browser again. Whoever holds
the manager can drop the secret (``invalidate``) and the next
``ensure_secret`` call re-extracts it.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Protocol

from .utils import now_ms, read_json, write_json

logger = logging.getLogger(__name__)

DAY_MS = 24 * 60 * 60 * 1000


@dataclass(frozen=True)
class SigningSecret:
    value: str
    acquired_at: int

    @property
    def key(self) -> bytes:
        return self.value.encode("utf-8")

    def age_ms(self, now: int) -> int:
        return now - self.acquired_at

    def __repr__(self) -> str:
        return f"SigningSecret(value=<redacted>, acquired_at={self.acquired_at})"


class Extractor(Protocol):
    def extract(self) -> SigningSecret: ...


class SecretCache:
    """On-disk record ``{"secret": str, "timestamp": epoch_ms}``."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> Optional[SigningSecret]:
        if not self.path.exists():
            return None
        try:
            data = read_json(self.path)
            secret = data["secret"]
            timestamp = int(data["timestamp"])
        except (OSError, ValueError, KeyError, TypeError) as exc:
            # half-written or hand-edited file; extraction will replace it
            logger.warning("Ignoring unreadable secret cache %s: %s", self.path, exc)
            return None
        if not isinstance(secret, str) or not secret:
            logger.warning("Ignoring secret cache %s without a secret", self.path)
            return None
        return SigningSecret(value=secret, acquired_at=timestamp)

    def save(self, secret: SigningSecret) -> None:
        write_json(self.path, {"secret": secret.value, "timestamp": secret.acquired_at})
        logger.info("Secret cached to %s", self.path)

    def delete(self) -> None:
        self.path.unlink(missing_ok=True)


class SecretManager:
    """Owns the single live signing secret of the process."""

    def __init__(
        self,
        extractor: Extractor,
        cache: SecretCache,
        max_age_ms: int = DAY_MS,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.extractor = extractor
        self.cache = cache
        self.max_age_ms = max_age_ms
        self.clock = clock
        self._lock = threading.Lock()
        self._secret: Optional[SigningSecret] = self._load_cached()

    @property
    def current(self) -> Optional[SigningSecret]:
        return self._secret

    def _fresh(self, secret: Optional[SigningSecret]) -> bool:
        return secret is not None and secret.age_ms(self.clock()) < self.max_age_ms

    def _load_cached(self) -> Optional[SigningSecret]:
        secret = self.cache.load()
        if secret is None:
            return None
        age = secret.age_ms(self.clock())
        if age >= self.max_age_ms:
            logger.info("Cached secret expired (age: %d minutes)", age // 60000)
            return None
        logger.info("Using cached secret (age: %d minutes)", age // 60000)
        return secret

    def ensure_secret(self) -> SigningSecret:
        """Return a usable secret, extracting a new one only when needed.

        Raises:
            ExtractionFailed: the browser did not reveal the key.
        """
        with self._lock:
            if self._fresh(self._secret):
                return self._secret  # type: ignore[return-value]
            self._secret = self._load_cached()
            if self._secret is not None:
                return self._secret

            logger.info("Extracting signing secret with a headless browser...")
            secret = self.extractor.extract()
            try:
                self.cache.save(secret)
            except OSError as exc:
                logger.warning("Could not write secret cache %s: %s", self.cache.path, exc)
            self._secret = secret
            logger.info("Secret extracted")
            return secret

    def invalidate(self) -> None:
        with self._lock:
            self._secret = None
            self.cache.delete()
