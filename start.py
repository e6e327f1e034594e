from __future__ import annotations

import logging
import os
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Dict, Optional

import questionary as q
from colorama import Fore, Style as CStyle, init as colorama_init
from questionary import Style
from rich.console import Console
from rich.theme import Theme

from rematch_lookup.config import load_config
from rematch_lookup.errors import RematchError
from rematch_lookup.profiles import ResolvedProfile
from rematch_lookup.resolver import PLATFORMS, PlayerResolver, make_resolver
from rematch_lookup.utils import setup_logging


# ────────────────────────────── Initialization

colorama_init(autoreset=True)

THEME = Theme({"accent": "cyan", "hint": "cyan", "warn": "yellow"})
console = Console(theme=THEME)
log = logging.getLogger("rematch_lookup.cli")


def app_root() -> Path:
    if getattr(sys, "frozen", False):
        return Path(sys.executable).parent
    return Path(__file__).parent


ROOT = app_root()
PROFILES = ROOT / "profiles"
ENV = ROOT / ".env"

# ────────────────────────────── Styles (CMD-Safe)
CUSTOM_STYLE = Style(
    [
        ("qmark", "fg:yellow bold"),
        ("question", "fg:cyan bold"),
        ("answer", "fg:green bold"),
        ("pointer", "fg:yellow bold"),
        ("selected", "fg:black bg:yellow bold"),
        ("highlighted", "fg:black bg:yellow bold"),
        ("instruction", "fg:gray"),
        ("text", ""),
        ("disabled", "fg:gray"),
    ]
)


def print_banner() -> None:
    print(Fore.CYAN + CStyle.BRIGHT + "rematch-lookup" + CStyle.RESET_ALL)
    print(Fore.CYAN + "-" * 70 + "\n")


# ────────────────────────────── Config

def _load_cfg() -> Dict:
    profile = PROFILES / "default.yaml"
    cfg = load_config(profile if profile.exists() else None, env_file=ENV)
    cache = Path(cfg["secret_cache"])
    if not cache.is_absolute():
        cfg["secret_cache"] = str(ROOT / cache)
    return cfg


# ────────────────────────────── Prompts

def _ask_username() -> Optional[str]:
    s = q.text("Player username", style=CUSTOM_STYLE).ask()
    return s.strip() if s else None


def _ask_platform() -> Optional[str]:
    return q.select("Platform:", choices=[*PLATFORMS, "Back"], style=CUSTOM_STYLE).ask()


def _show(profile: Optional[ResolvedProfile], username: str) -> None:
    if profile is None:
        console.print(f"Could not find player {username}.", style="warn")
        return
    data = asdict(profile)
    if profile.match_history is None:
        data["match_history"] = "not available"
    else:
        data["match_history"] = f"{len(profile.match_history)} match(es)"
    data["last_match"] = profile.last_match
    console.print_json(data=data)


# ────────────────────────────── Actions

def lookup_any(resolver: PlayerResolver) -> None:
    username = _ask_username()
    if username:
        _show(resolver.search_user_multi_platform(username), username)


def lookup_on_platform(resolver: PlayerResolver) -> None:
    platform = _ask_platform()
    if not platform or platform == "Back":
        return
    username = _ask_username()
    if username:
        _show(resolver.search_user_by_platform(username, platform), username)


def recent_matches(resolver: PlayerResolver) -> None:
    matches = resolver.get_recent_matches(limit=10)
    if not matches:
        console.print("No recent matches", style="warn")
        return
    console.print_json(data=matches)


def clear_secret(resolver: PlayerResolver) -> None:
    resolver.api.secrets.invalidate()
    console.print("Cached secret removed; the next lookup extracts a new one.", style="accent")


# ────────────────────────────── Entry point
def _run() -> None:
    if os.name == "nt":
        os.system("chcp 65001 >nul")
    print_banner()
    cfg = _load_cfg()
    setup_logging(cfg.get("log_level", "INFO"), console=console)
    resolver = make_resolver(cfg)

    actions = {
        "Search by username (all platforms)": lookup_any,
        "Search on one platform": lookup_on_platform,
        "Recent matches": recent_matches,
        "Clear cached secret": clear_secret,
    }

    while True:
        choice = q.select(
            "What do you want to do?",
            choices=[*actions, "Quit"],
            style=CUSTOM_STYLE,
        ).ask()

        if not choice or choice == "Quit":
            break
        try:
            actions[choice](resolver)
        except RematchError as exc:
            log.debug("Lookup aborted", exc_info=True)
            console.print(f"Service unavailable: {exc}", style="warn")


def main() -> None:
    try:
        _run()
    except KeyboardInterrupt:
        console.print("\n[warn]ctrl-c; bye")


if __name__ == "__main__":
    main()
