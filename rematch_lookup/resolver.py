"""Player lookup across Steam, PlayStation and Xbox.

A free-text name is tried in a fixed order: the best Steam search hit, the
name as a PlayStation id, the name as an Xbox id, then the remaining Steam
hits. The first profile that comes back wins.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .errors import TransportError
from .extractor import SecretExtractor
from .profiles import ResolvedProfile
from .rematch_api import RematchAPI
from .secret_store import SecretCache, SecretManager
from .steam_search import CandidateIdentifier, SteamSearch

logger = logging.getLogger(__name__)

PLATFORMS = ("steam", "playstation", "xbox")

# the profile endpoint uses its own short name for PlayStation
_PROFILE_PLATFORM = {"playstation": "psn"}


def is_dataless_identity(exc: TransportError) -> bool:
    """HTTP 500 from the profile API means the account exists but has no data."""
    return exc.status_code == 500


class PlayerResolver:
    def __init__(
        self,
        api: RematchAPI,
        steam_search: SteamSearch,
        max_steam_attempts: int = 20,
    ) -> None:
        self.api = api
        self.steam_search = steam_search
        self.max_steam_attempts = max_steam_attempts

    # ------------------------------------------------------------------
    # upstream calls
    # ------------------------------------------------------------------

    def _profile(
        self, platform: str, platform_id: str, with_history: bool = True
    ) -> Optional[ResolvedProfile]:
        data = self.api.post(
            "/scrap/profile",
            {
                "platform": _PROFILE_PLATFORM.get(platform, platform),
                "platformId": platform_id,
            },
        )
        if not isinstance(data, dict) or not data.get("success"):
            return None
        return ResolvedProfile.from_profile(data, platform, with_history=with_history)

    def _resolve_and_fetch(
        self, platform: str, identifier: str, with_history: bool = True
    ) -> Optional[ResolvedProfile]:
        data = self.api.post(
            "/scrap/resolve", {"platform": platform, "identifier": identifier}
        )
        if not isinstance(data, dict) or not data.get("success"):
            return None
        platform_id = str(data.get("platform_id") or "")
        if not platform_id:
            return None
        logger.info(
            "Resolved %r to %r (%s) on %s",
            identifier,
            data.get("display_name"),
            platform_id,
            platform,
        )
        return self._profile(platform, platform_id, with_history)

    def _attempt(
        self, label: str, fn: Callable[[], Optional[ResolvedProfile]]
    ) -> Optional[ResolvedProfile]:
        """Run one lookup step; transport failures count as a miss."""
        try:
            return fn()
        except TransportError as exc:
            if is_dataless_identity(exc):
                logger.info("%s exists but has no Rematch data", label)
            else:
                logger.warning("%s failed: %s", label, exc)
            return None

    # ------------------------------------------------------------------
    # public lookups
    # ------------------------------------------------------------------

    def search_user_by_platform(
        self, username: str, platform: str, with_history: bool = True
    ) -> Optional[ResolvedProfile]:
        """Resolve ``username`` as a literal id on one platform."""
        if platform not in PLATFORMS:
            raise ValueError(f"Unknown platform {platform!r}; expected one of {PLATFORMS}")
        return self._attempt(
            f"{platform} lookup of {username!r}",
            lambda: self._resolve_and_fetch(platform, username, with_history),
        )

    def search_user_by_steam_id(
        self, candidate: CandidateIdentifier
    ) -> Optional[ResolvedProfile]:
        if candidate.is_vanity:
            url = f"steamcommunity.com/id/{candidate.value}"
            return self.search_user_by_platform(url, "steam")
        return self._attempt(
            f"Steam identifier {candidate}",
            lambda: self._profile("steam", candidate.value),
        )

    def search_user_multi_platform(self, username: str) -> Optional[ResolvedProfile]:
        """Try every platform in turn and return the first profile found.

        Returns None when no candidate on any platform produced a profile.
        ``ExtractionFailed`` and ``UnauthorizedRetryExhausted`` are not caught:
        they mean the API cannot be used at all right now.
        """
        logger.info("Multi-platform search for %r", username)
        candidates = self.steam_search.search_alias(username)

        if candidates:
            logger.info("Trying first Steam result: %s", candidates[0])
            found = self.search_user_by_steam_id(candidates[0])
            if found:
                return found

        for platform in ("playstation", "xbox"):
            logger.info("Trying %s", platform)
            found = self.search_user_by_platform(username, platform)
            if found:
                return found

        for i in range(1, min(self.max_steam_attempts, len(candidates))):
            logger.info("Trying Steam result %d: %s", i + 1, candidates[i])
            found = self.search_user_by_steam_id(candidates[i])
            if found:
                return found

        logger.info("No results for %r on any platform", username)
        return None

    def search_user(self, username: str) -> Optional[ResolvedProfile]:
        """Steam lookup without match history."""
        return self.search_user_by_platform(username, "steam", with_history=False)

    def get_player_match_history(self, username: str) -> Optional[List[Dict[str, Any]]]:
        profile = self.search_user_by_platform(username, "steam")
        if profile is None or profile.match_history is None:
            return None
        return list(profile.match_history)

    def get_recent_matches(self, limit: int = 10) -> List[Dict[str, Any]]:
        try:
            data = self.api.get("/matches?page=1")
        except TransportError as exc:
            logger.warning("Fetching recent matches failed: %s", exc)
            return []
        try:
            matches = data["data"]["data"]
        except (KeyError, TypeError):
            logger.warning("Unexpected matches payload shape")
            return []
        return list(matches)[:limit]


def make_resolver(cfg: Dict[str, Any]) -> PlayerResolver:
    """Wire extractor, secret manager, API client and search from config."""
    ext = cfg.get("extraction", {})
    extractor = SecretExtractor(
        origin=cfg["app_origin"],
        headless=ext.get("headless", True),
        navigation_timeout_ms=ext.get("navigation_timeout_ms", 60000),
        ready_timeout_ms=ext.get("ready_timeout_ms", 15000),
        settle_ms=ext.get("settle_ms", 1000),
    )
    secrets = SecretManager(
        extractor,
        SecretCache(Path(cfg["secret_cache"])),
        max_age_ms=int(float(cfg.get("secret_max_age_hours", 24)) * 3600 * 1000),
    )
    api = RematchAPI(
        secrets,
        base=cfg["api_base"],
        rpm=cfg.get("rate_limit_rpm", 120),
        timeout=cfg.get("request_timeout", 25),
    )
    search = SteamSearch(
        max_candidates=cfg.get("steam_search", {}).get("max_candidates", 10),
        timeout=cfg.get("request_timeout", 25),
    )
    return PlayerResolver(
        api,
        search,
        max_steam_attempts=cfg.get("cascade", {}).get("max_steam_attempts", 20),
    )
