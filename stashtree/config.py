"""Persistent JSON settings and the immutable ``StashConfig`` value.

Settings live in a JSON object under the platform config directory. A missing
or malformed file yields defaults, and each key is validated on its own so one
bad value does not discard the rest. Components receive a ``StashConfig`` at
construction and get a new one through ``update_config`` when settings change.
"""

from __future__ import annotations

import codecs
import json
from dataclasses import dataclass, replace
from pathlib import Path

from platformdirs import user_config_dir

APP_NAME = "stashtree"
CONFIG_FILENAME = "config.json"
DEFAULT_CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
CONFIG_PATH = DEFAULT_CONFIG_PATH

ITEM_DISPLAY_MODES = ("indicate-empty", "hide-empty", "none")
DECORATION_MODES = ("badge, color", "badge", "color", "none")

FORCE_REFRESH_DELAY_SECONDS = 0.25
PASSIVE_REFRESH_DELAY_SECONDS = 0.75


@dataclass(frozen=True)
class StashConfig:
    """Settings read by the core components.

    ``repository_search_depth`` follows the discovery convention: ``0`` scans
    workspace folders only, negative values walk that many ancestor levels and
    positive values walk that many subdirectory levels.
    """

    git_executable: str = "git"
    encoding: str = "utf-8"
    repository_search_depth: int = 0
    eager_load_stashes: bool = False
    item_display_mode: str = "indicate-empty"
    decorations: str = "badge, color"
    force_refresh_delay: float = FORCE_REFRESH_DELAY_SECONDS
    passive_refresh_delay: float = PASSIVE_REFRESH_DELAY_SECONDS


def load_config_data(path: Path | None = None) -> dict[str, object]:
    """Load the persisted JSON object, or ``{}`` when unavailable or invalid."""
    config_path = path or CONFIG_PATH
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except Exception:
        return {}
    return data if isinstance(data, dict) else {}


def save_config_data(data: dict[str, object], path: Path | None = None) -> None:
    """Persist settings as pretty-printed JSON.

    Filesystem and serialization errors are ignored; settings are a convenience.
    """
    config_path = path or CONFIG_PATH
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except Exception:
        pass


def _coerce_str(value: object, default: str, allowed: tuple[str, ...] | None = None) -> str:
    if not isinstance(value, str):
        return default
    stripped = value.strip()
    if not stripped:
        return default
    if allowed is not None and stripped not in allowed:
        return default
    return stripped


def _coerce_encoding(value: object, default: str) -> str:
    name = _coerce_str(value, default)
    try:
        codecs.lookup(name)
    except LookupError:
        return default
    return name


def _coerce_int(value: object, default: int) -> int:
    # bool is an int subclass; JSON true/false is never a depth.
    if isinstance(value, bool) or not isinstance(value, int):
        return default
    return value


def _coerce_bool(value: object, default: bool) -> bool:
    return value if isinstance(value, bool) else default


def _coerce_delay(value: object, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if value < 0:
        return default
    return float(value)


def config_from_data(data: dict[str, object]) -> StashConfig:
    """Build a ``StashConfig`` from raw JSON data, validating each key."""
    defaults = StashConfig()
    return StashConfig(
        git_executable=_coerce_str(data.get("git_executable"), defaults.git_executable),
        encoding=_coerce_encoding(data.get("encoding"), defaults.encoding),
        repository_search_depth=_coerce_int(
            data.get("repository_search_depth"),
            defaults.repository_search_depth,
        ),
        eager_load_stashes=_coerce_bool(data.get("eager_load_stashes"), defaults.eager_load_stashes),
        item_display_mode=_coerce_str(
            data.get("item_display_mode"),
            defaults.item_display_mode,
            ITEM_DISPLAY_MODES,
        ),
        decorations=_coerce_str(data.get("decorations"), defaults.decorations, DECORATION_MODES),
        force_refresh_delay=_coerce_delay(data.get("force_refresh_delay"), defaults.force_refresh_delay),
        passive_refresh_delay=_coerce_delay(
            data.get("passive_refresh_delay"),
            defaults.passive_refresh_delay,
        ),
    )


def load_stash_config(path: Path | None = None) -> StashConfig:
    """Load settings from disk into a validated ``StashConfig``."""
    return config_from_data(load_config_data(path))


def with_overrides(config: StashConfig, **overrides: object) -> StashConfig:
    """Return ``config`` with non-``None`` overrides applied (CLI flags)."""
    changes = {key: value for key, value in overrides.items() if value is not None}
    return replace(config, **changes) if changes else config


__all__ = [
    "APP_NAME",
    "CONFIG_PATH",
    "DECORATION_MODES",
    "ITEM_DISPLAY_MODES",
    "StashConfig",
    "config_from_data",
    "load_config_data",
    "load_stash_config",
    "save_config_data",
    "with_overrides",
]
