"""
Engine configuration.

Settings live in a JSON file merged over defaults; STORYWEAVE_* environment
variables override both.
"""

import json
import logging
import os
from pathlib import Path
from typing import TypedDict

logger = logging.getLogger(__name__)


class Config(TypedDict, total=False):
    """Engine configuration."""
    focus_character: str  # NPC whose emotions memories and consequences affect
    main_arc_id: str  # Arc whose chapter drives pacing
    tension_window: int  # How many recent memories count toward tension
    tension_divisor: float  # Sum of |impact| that saturates tension at 1.0
    long_term_impact_threshold: float  # Impact at which any memory becomes long-term
    strict_conditions: bool  # Reject unknown condition grammar when building catalogs
    snapshot_dir: str  # Where JsonSnapshotStore writes saves
    event_history_limit: int  # Events kept by the bus for debugging


DEFAULT_CONFIG: Config = {
    "focus_character": "cha_hae_in",
    "main_arc_id": "main_romance_arc",
    "tension_window": 10,
    "tension_divisor": 50.0,
    "long_term_impact_threshold": 8.0,
    "strict_conditions": False,
    "snapshot_dir": "saves",
    "event_history_limit": 100,
}

ENV_PREFIX = "STORYWEAVE_"


def get_config_path(data_dir: Path | str = ".") -> Path:
    """Get path to config file."""
    return Path(data_dir) / "storyweave.json"


def _coerce(key: str, raw: str):
    default = DEFAULT_CONFIG[key]
    if isinstance(default, bool):
        return raw.strip().lower() in ("1", "true", "yes", "on")
    if isinstance(default, int):
        return int(raw)
    if isinstance(default, float):
        return float(raw)
    return raw


def apply_env_overrides(config: Config, environ: dict | None = None) -> Config:
    """Override config keys from STORYWEAVE_<KEY> environment variables."""
    environ = os.environ if environ is None else environ
    for key in DEFAULT_CONFIG:
        raw = environ.get(f"{ENV_PREFIX}{key.upper()}")
        if raw is None:
            continue
        try:
            config[key] = _coerce(key, raw)
        except ValueError:
            logger.warning(f"Ignoring {ENV_PREFIX}{key.upper()}={raw!r}: not a valid value")
    return config


def load_config(data_dir: Path | str = ".", environ: dict | None = None) -> Config:
    """Load config from file and environment, or return defaults."""
    config = DEFAULT_CONFIG.copy()
    path = get_config_path(data_dir)

    if path.exists():
        try:
            with open(path, "r", encoding="utf-8") as f:
                saved = json.load(f)
            config.update({k: v for k, v in saved.items() if k in DEFAULT_CONFIG})
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Could not read {path}, using defaults: {e}")

    return apply_env_overrides(config, environ)


def save_config(config: Config, data_dir: Path | str = ".") -> bool:
    """Save config to file. Returns True on success."""
    path = get_config_path(data_dir)
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)
        return True
    except IOError:
        return False
