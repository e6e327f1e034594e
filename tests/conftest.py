# tests/conftest.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest

from rematch_lookup.secret_store import SigningSecret

HOUR_MS = 60 * 60 * 1000
NOW = 1_700_000_000_000


class Clock:
    """Settable millisecond clock."""

    def __init__(self, now: int = NOW) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


class FakeExtractor:
    """Hands out numbered secrets and counts how often it was asked."""

    def __init__(self, clock: Clock, values: Optional[List[str]] = None) -> None:
        self.clock = clock
        self.values = list(values or [])
        self.calls = 0

    def extract(self) -> SigningSecret:
        self.calls += 1
        value = self.values.pop(0) if self.values else f"secret-{self.calls}"
        return SigningSecret(value=value, acquired_at=self.clock())


def profile_payload(
    platform_id: str = "76561198000000001",
    display_name: str = "Miltu",
    platform: str = "steam",
    league: int = 3,
    division: int = 1,
    history: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    return {
        "success": True,
        "player": {
            "platform": platform,
            "platform_id": platform_id,
            "display_name": display_name,
        },
        "rank": {"current_league": league, "current_division": division},
        "rank3v3": {"current_league": 1, "current_division": 3},
        "lifetime_stats": {
            "All": {
                "goals": 120,
                "assists": 45,
                "matches_played": 200,
                "wins": 110,
                "mvps": 12,
                "passes": 900,
                "intercepted_passes": 33,
                "saves": 7,
            }
        },
        "match_history": {"items": history if history is not None else [{"id": "m2"}, {"id": "m1"}]},
    }


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def extractor(clock: Clock) -> FakeExtractor:
    return FakeExtractor(clock)
