from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

LEAGUES = {
    0: "Bronze",
    1: "Silver",
    2: "Gold",
    3: "Platinum",
    4: "Diamond",
    5: "Master",
    6: "Elite",
}


def league_name(league: Optional[int]) -> str:
    name = LEAGUES.get(league) if league is not None else None
    if name:
        return name
    return "Unranked" if league == -1 else "Unknown"


def _rank_fields(rank: Optional[Dict[str, Any]]) -> Tuple[str, Optional[str], str]:
    """(rank, division, full_rank) in lower case, e.g. ("gold", "div_0", "gold div_0")."""
    rank = rank or {}
    name = league_name(rank.get("current_league", -1)).lower()
    div = rank.get("current_division")
    # only divisions 0-2 exist in ranked play
    division = f"div_{div}" if isinstance(div, int) and div <= 2 else None
    full = f"{name} {division}" if division else name
    return name, division, full


@dataclass(frozen=True)
class PlayerStats:
    goals: int = 0
    assists: int = 0
    games: int = 0
    mvps: int = 0
    passes: int = 0
    interceptions: int = 0
    saves: int = 0
    win_rate: float = 0.0

    @classmethod
    def from_lifetime(cls, lifetime: Optional[Dict[str, Any]]) -> "PlayerStats":
        s = (lifetime or {}).get("All") or {}
        games = s.get("matches_played") or 0
        return cls(
            goals=s.get("goals") or 0,
            assists=s.get("assists") or 0,
            games=games,
            mvps=s.get("mvps") or 0,
            passes=s.get("passes") or 0,
            interceptions=s.get("intercepted_passes") or 0,
            saves=s.get("saves") or 0,
            win_rate=(s.get("wins") or 0) / games if games > 0 else 0.0,
        )


@dataclass(frozen=True)
class ResolvedProfile:
    """A player as returned by one resolve + profile round trip."""

    platform: str
    platform_id: str
    display_name: str
    rank: str
    division: Optional[str]
    full_rank: str
    rank_3v3: str
    division_3v3: Optional[str]
    full_rank_3v3: str
    stats: PlayerStats = field(default_factory=PlayerStats)
    # None when the profile payload carried no match history at all
    match_history: Optional[Tuple[Dict[str, Any], ...]] = ()

    @property
    def last_match(self) -> Optional[Dict[str, Any]]:
        return self.match_history[0] if self.match_history else None

    @classmethod
    def from_profile(
        cls,
        data: Dict[str, Any],
        platform: str,
        with_history: bool = True,
    ) -> "ResolvedProfile":
        """Build from a ``/scrap/profile`` payload.

        ``platform`` is used when the payload does not name one itself.
        """
        player = data.get("player") or {}
        rank, division, full_rank = _rank_fields(data.get("rank"))
        rank3, division3, full_rank3 = _rank_fields(data.get("rank3v3"))
        history: Optional[Tuple[Dict[str, Any], ...]] = ()
        if with_history:
            raw = data.get("match_history")
            history = tuple(raw.get("items") or []) if isinstance(raw, dict) else None
        return cls(
            platform=player.get("platform") or platform,
            platform_id=str(player.get("platform_id") or ""),
            display_name=player.get("display_name") or "",
            rank=rank,
            division=division,
            full_rank=full_rank,
            rank_3v3=rank3,
            division_3v3=division3,
            full_rank_3v3=full_rank3,
            stats=PlayerStats.from_lifetime(data.get("lifetime_stats")),
            match_history=history,
        )
