"""Tests for Steam community alias search."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock, patch

import pytest
import requests
from requests.cookies import CookieConflictError, RequestsCookieJar

from rematch_lookup.steam_search import (
    SEARCH_AJAX,
    SEARCH_PAGE,
    CandidateIdentifier,
    SteamSearch,
    parse_candidates,
)

FRAGMENT = """
<div class="search_row">
  <a href="https://steamcommunity.com/profiles/76561198000000001">Miltu</a>
  <a href="https://steamcommunity.com/id/foo">foo</a>
  <a href="https://steamcommunity.com/profiles/76561198000000001"><img></a>
</div>
"""


def _session(mock_cls: MagicMock) -> MagicMock:
    session = mock_cls.return_value.__enter__.return_value
    mock_cls.return_value.__exit__.return_value = False
    session.cookies = RequestsCookieJar()
    return session


def _page(cookies: dict) -> MagicMock:
    r = MagicMock()
    r.status_code = 200
    r.cookies = RequestsCookieJar()
    for name, value in cookies.items():
        r.cookies.set(name, value, domain="steamcommunity.com", path="/")
    return r


def _ajax(payload: Any, status: int = 200) -> MagicMock:
    r = MagicMock()
    r.status_code = status
    r.json.return_value = payload
    return r


class TestParseCandidates:
    def test_dedup_keeps_first_seen_order(self) -> None:
        assert [str(c) for c in parse_candidates(FRAGMENT)] == [
            "76561198000000001",
            "custom:foo",
        ]

    def test_kinds(self) -> None:
        first, second = parse_candidates(FRAGMENT)
        assert first == CandidateIdentifier("steamid", "76561198000000001")
        assert second.is_vanity and second.value == "foo"

    def test_capped(self) -> None:
        html = "".join(
            f'<a href="https://steamcommunity.com/profiles/7656119800000{i:04d}">x</a>'
            for i in range(15)
        )
        assert len(parse_candidates(html)) == 10
        assert len(parse_candidates(html, limit=3)) == 3

    def test_short_numeric_ids_are_not_profiles(self) -> None:
        assert parse_candidates('<a href="https://steamcommunity.com/profiles/123">x</a>') == []

    def test_empty_fragment(self) -> None:
        assert parse_candidates("") == []


class TestSteamSearch:
    @patch("rematch_lookup.steam_search.requests.Session")
    def test_search_uses_session_cookie(self, mock_cls: MagicMock) -> None:
        session = _session(mock_cls)
        session.get.side_effect = [_page({"sessionid": "abc123"}), _ajax({"success": 1, "html": FRAGMENT})]

        found = SteamSearch().search_alias("miltu")

        assert [str(c) for c in found] == ["76561198000000001", "custom:foo"]
        first, second = session.get.call_args_list
        assert first.args[0] == SEARCH_PAGE
        assert second.args[0] == SEARCH_AJAX
        assert second.kwargs["params"] == {
            "text": "miltu",
            "filter": "users",
            "sessionid": "abc123",
            "steamid_user": "false",
            "page": 1,
        }
        assert second.kwargs["cookies"] == {"sessionid": "abc123"}

    @patch("rematch_lookup.steam_search.requests.Session")
    def test_missing_cookie_gives_empty(self, mock_cls: MagicMock) -> None:
        session = _session(mock_cls)
        session.get.side_effect = [_page({})]

        assert SteamSearch().search_alias("miltu") == []
        assert session.get.call_count == 1

    @patch("rematch_lookup.steam_search.requests.Session")
    def test_network_error_gives_empty(self, mock_cls: MagicMock) -> None:
        session = _session(mock_cls)
        session.get.side_effect = requests.ConnectionError("down")

        assert SteamSearch().search_alias("miltu") == []

    @patch("rematch_lookup.steam_search.requests.Session")
    def test_bad_json_gives_empty(self, mock_cls: MagicMock) -> None:
        session = _session(mock_cls)
        bad = _ajax(None)
        bad.json.side_effect = ValueError("not json")
        session.get.side_effect = [_page({"sessionid": "abc"}), bad]

        assert SteamSearch().search_alias("miltu") == []

    @patch("rematch_lookup.steam_search.requests.Session")
    def test_missing_html_gives_empty(self, mock_cls: MagicMock) -> None:
        session = _session(mock_cls)
        session.get.side_effect = [_page({"sessionid": "abc"}), _ajax({"success": 1})]

        assert SteamSearch().search_alias("miltu") == []

    @patch("rematch_lookup.steam_search.requests.Session")
    def test_http_error_gives_empty(self, mock_cls: MagicMock) -> None:
        session = _session(mock_cls)
        session.get.side_effect = [_page({"sessionid": "abc"}), _ajax({}, status=429)]

        assert SteamSearch().search_alias("miltu") == []

    @patch("rematch_lookup.steam_search.requests.Session")
    def test_sessionid_set_for_two_domains(self, mock_cls: MagicMock) -> None:
        """Duplicate cookies must not break the search; any one of them is usable."""
        session = _session(mock_cls)
        page = _page({})
        page.cookies.set("sessionid", "aaa", domain="steamcommunity.com", path="/")
        page.cookies.set("sessionid", "bbb", domain=".steamcommunity.com", path="/")
        with pytest.raises(CookieConflictError):
            page.cookies.get("sessionid")
        session.get.side_effect = [page, _ajax({"success": 1, "html": FRAGMENT})]

        found = SteamSearch().search_alias("miltu")

        assert [str(c) for c in found] == ["76561198000000001", "custom:foo"]
        assert session.get.call_args_list[1].kwargs["params"]["sessionid"] in {"aaa", "bbb"}

    @patch("rematch_lookup.steam_search.requests.Session")
    def test_cookie_left_on_session_jar(self, mock_cls: MagicMock) -> None:
        session = _session(mock_cls)
        session.cookies.set("sessionid", "fromjar", domain="steamcommunity.com", path="/")
        session.get.side_effect = [_page({}), _ajax({"success": 1, "html": FRAGMENT})]

        SteamSearch().search_alias("miltu")

        assert session.get.call_args_list[1].kwargs["params"]["sessionid"] == "fromjar"
