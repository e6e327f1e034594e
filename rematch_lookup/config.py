from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

DEFAULT_CFG = Path(__file__).parent / "config_default.yaml"

_ENV_KEYS = {
    "REMATCH_API_BASE": "api_base",
    "REMATCH_APP_ORIGIN": "app_origin",
    "REMATCH_SECRET_CACHE": "secret_cache",
    "REMATCH_LOG_LEVEL": "log_level",
}


def _merge(base: Dict[str, Any], extra: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for k, v in extra.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = v
    return out


def load_config(
    path: Optional[Path] = None,
    env_file: Optional[Path] = None,
) -> Dict[str, Any]:
    """Defaults, then an optional YAML profile, then environment overrides."""
    cfg = yaml.safe_load(DEFAULT_CFG.read_text(encoding="utf-8"))
    if path is not None:
        cfg = _merge(cfg, yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {})

    load_dotenv(dotenv_path=env_file)
    for env, key in _ENV_KEYS.items():
        value = os.getenv(env, "").strip()
        if value:
            cfg[key] = value
    headless = os.getenv("REMATCH_HEADLESS", "").strip().lower()
    if headless:
        cfg.setdefault("extraction", {})["headless"] = headless not in {"0", "false", "no"}
    return cfg
