"""Tests for request signing."""

from __future__ import annotations

import hashlib
import hmac

import pytest

from rematch_lookup.signing import canonical_body, new_nonce, sign, signed_headers

ARGS = ("k3y", "POST", "/scrap/resolve", '{"platform":"steam"}', 1700000000000, "n-1")


class TestSign:
    def test_matches_reference_hmac(self) -> None:
        """Digest is HMAC-SHA256 over the pipe-joined fields."""
        expected = hmac.new(
            b"k3y",
            b'POST|/scrap/resolve|{"platform":"steam"}|1700000000000|n-1',
            hashlib.sha256,
        ).hexdigest()
        assert sign(*ARGS) == expected

    def test_deterministic(self) -> None:
        assert sign(*ARGS) == sign(*ARGS)

    def test_lowercase_hex(self) -> None:
        digest = sign(*ARGS)
        assert len(digest) == 64
        assert digest == digest.lower()
        int(digest, 16)

    @pytest.mark.parametrize("index,value", [
        (0, "other"),
        (1, "PUT"),
        (2, "/scrap/profile"),
        (3, '{"platform":"xbox"}'),
        (4, 1700000000001),
        (5, "n-2"),
    ])
    def test_every_field_changes_digest(self, index: int, value: object) -> None:
        changed = list(ARGS)
        changed[index] = value
        assert sign(*changed) != sign(*ARGS)

    def test_bytes_and_str_keys_agree(self) -> None:
        assert sign(b"k3y", *ARGS[1:]) == sign(*ARGS)


class TestCanonicalBody:
    def test_get_and_delete_have_empty_body(self) -> None:
        assert canonical_body("GET", {"a": 1}) == ""
        assert canonical_body("DELETE", None) == ""

    def test_compact_json(self) -> None:
        body = {"platform": "steam", "identifier": "miltu"}
        assert canonical_body("POST", body) == '{"platform":"steam","identifier":"miltu"}'

    def test_keeps_key_order(self) -> None:
        assert canonical_body("PUT", {"b": 1, "a": 2}) == '{"b":1,"a":2}'


class TestHelpers:
    def test_nonces_are_unique(self) -> None:
        assert len({new_nonce() for _ in range(100)}) == 100

    def test_signed_headers(self) -> None:
        headers = signed_headers(123, "abc", "deadbeef")
        assert headers["x-timestamp"] == "123"
        assert headers["x-nonce"] == "abc"
        assert headers["x-signature"] == "deadbeef"
        assert headers["Content-Type"] == "application/json"
