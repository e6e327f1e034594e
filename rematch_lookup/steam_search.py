from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from http.cookiejar import Cookie
from typing import Dict, Iterable, List, Optional

import requests

from .errors import ParseFailure

logger = logging.getLogger(__name__)

SEARCH_PAGE = "https://steamcommunity.com/search/users/"
SEARCH_AJAX = "https://steamcommunity.com/search/SearchCommunityAjax"

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/140.0.0.0 Safari/537.36"
)

_PAGE_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-GB,en;q=0.9",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
    "Upgrade-Insecure-Requests": "1",
}

_AJAX_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "application/json, text/javascript, */*; q=0.01",
    "Accept-Language": "en-GB,en;q=0.9",
    "X-Requested-With": "XMLHttpRequest",
    "Origin": "https://steamcommunity.com",
    "Referer": SEARCH_PAGE,
}

PROFILE_LINK = re.compile(
    r"https://steamcommunity\.com/(?:profiles/(\d{17})|id/([A-Za-z0-9_-]+))"
)


def _first_cookie(jar: Iterable[Cookie], name: str) -> Optional[str]:
    # Steam may set the same cookie for several domains; jar.get() raises on that
    for cookie in jar:
        if cookie.name == name and cookie.value:
            return cookie.value
    return None


@dataclass(frozen=True)
class CandidateIdentifier:
    kind: str  # "steamid" | "vanity"
    value: str

    @property
    def is_vanity(self) -> bool:
        return self.kind == "vanity"

    def __str__(self) -> str:
        return f"custom:{self.value}" if self.is_vanity else self.value


def parse_candidates(html: str, limit: int = 10) -> List[CandidateIdentifier]:
    """Profile links in page order, first occurrence wins."""
    out: List[CandidateIdentifier] = []
    seen = set()
    for m in PROFILE_LINK.finditer(html):
        steamid, vanity = m.group(1), m.group(2)
        cand = (
            CandidateIdentifier("steamid", steamid)
            if steamid
            else CandidateIdentifier("vanity", vanity)
        )
        if cand in seen:
            continue
        seen.add(cand)
        out.append(cand)
        if len(out) >= limit:
            break
    return out


class SteamSearch:
    """Steam community user search, used to turn an alias into profile guesses."""

    def __init__(self, max_candidates: int = 10, timeout: float = 25) -> None:
        self.max_candidates = max_candidates
        self.timeout = timeout

    def _session_id(self, session: requests.Session) -> str:
        r = session.get(SEARCH_PAGE, headers=_PAGE_HEADERS, timeout=self.timeout)
        sid = _first_cookie(r.cookies, "sessionid") or _first_cookie(session.cookies, "sessionid")
        if not sid:
            raise ParseFailure("No sessionid cookie on the community search page")
        return sid

    def _search_html(self, session: requests.Session, text: str, sid: str) -> str:
        params: Dict[str, object] = {
            "text": text,
            "filter": "users",
            "sessionid": sid,
            "steamid_user": "false",
            "page": 1,
        }
        r = session.get(
            SEARCH_AJAX,
            params=params,
            headers=_AJAX_HEADERS,
            cookies={"sessionid": sid},
            timeout=self.timeout,
        )
        if r.status_code != 200:
            raise ParseFailure(f"Community search returned HTTP {r.status_code}")
        try:
            data = r.json()
        except ValueError as exc:
            raise ParseFailure("Community search did not return JSON") from exc
        html: Optional[str] = data.get("html") if isinstance(data, dict) else None
        if not isinstance(html, str):
            raise ParseFailure("Community search response has no html fragment")
        return html

    def search_alias(self, text: str) -> List[CandidateIdentifier]:
        """Ordered Steam profile guesses for ``text``; empty on any failure."""
        logger.info("Searching Steam for alias %r", text)
        try:
            with requests.Session() as session:
                sid = self._session_id(session)
                html = self._search_html(session, text, sid)
        except ParseFailure as exc:
            logger.warning("Steam search for %r gave nothing: %s", text, exc)
            return []
        except requests.RequestException as exc:
            logger.warning("Steam search for %r failed: %s", text, exc)
            return []

        found = parse_candidates(html, self.max_candidates)
        logger.info("Found %d Steam identifiers for %r", len(found), text)
        return found
