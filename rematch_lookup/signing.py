"""Request signing for the RematchTracker API.

Every signed call carries three headers. ``x-signature`` is the lowercase
hex HMAC-SHA256 of::

    METHOD|/path|body|timestamp|nonce

where ``body`` is empty for GET and DELETE and otherwise the exact JSON text
put on the wire.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import uuid
from typing import Any, Dict, Union

NO_BODY_METHODS = frozenset({"GET", "DELETE"})


def canonical_body(method: str, body: Any) -> str:
    """Serialise ``body`` once; the result is both signed and transmitted."""
    if method.upper() in NO_BODY_METHODS or body is None:
        return ""
    # compact separators match what the web app's JSON.stringify produces
    return json.dumps(body, separators=(",", ":"), ensure_ascii=False)


def sign(
    secret: Union[str, bytes],
    method: str,
    path: str,
    body: str,
    timestamp: int,
    nonce: str,
) -> str:
    key = secret.encode("utf-8") if isinstance(secret, str) else secret
    base = f"{method}|{path}|{body}|{timestamp}|{nonce}"
    return hmac.new(key, base.encode("utf-8"), hashlib.sha256).hexdigest()


def new_nonce() -> str:
    return str(uuid.uuid4())


def signed_headers(timestamp: int, nonce: str, signature: str) -> Dict[str, str]:
    return {
        "Content-Type": "application/json",
        "x-timestamp": str(timestamp),
        "x-nonce": nonce,
        "x-signature": signature,
    }
