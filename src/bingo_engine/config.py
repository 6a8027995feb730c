from __future__ import annotations

import hashlib
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple

import yaml

from .card import CardLayout
from .feasibility import check_interval, check_layout
from .rng import ENGINES
from .win import DEFAULT_PATTERNS, PATTERN_GROUPS

ENV_PREFIX = "BINGO_ENGINE_"

DEFAULTS: Dict[str, Any] = {
    "max_players": 100,
    "call_interval": {"min": 3.0, "max": 5.0},
    "countdown_sec": 10,
    "countdown_tick_sec": 1.0,
    "cards_per_player": 1,
    "layout": {"columns": 5, "rows": 5, "span": 15, "free_center": True},
    "win_patterns": list(DEFAULT_PATTERNS),
    "auto_start": False,
    "seed": {"engine": "py_random", "value": 0},
    "players": 2,
    "reaction_sec": 0.5,
    "log_level": "INFO",
    "log_format": "text",
}


@dataclass
class EngineConfig:
    """Rules and timing of one match."""

    max_players: int = 100
    call_interval: Tuple[float, float] = (3.0, 5.0)
    countdown_sec: int = 10
    countdown_tick_sec: float = 1.0
    cards_per_player: int = 1
    layout: CardLayout = field(default_factory=CardLayout)
    win_patterns: Tuple[str, ...] = DEFAULT_PATTERNS
    auto_start: bool = False
    seed: int = 0
    rng_engine: str = "py_random"

    def __post_init__(self) -> None:
        reasons = []
        if self.max_players < 2:
            reasons.append("max_players must be >= 2")
        if self.countdown_sec < 0:
            reasons.append("countdown_sec must be >= 0")
        if self.countdown_tick_sec <= 0:
            reasons.append("countdown_tick_sec must be > 0")
        if self.cards_per_player < 1:
            reasons.append("cards_per_player must be >= 1")
        if not self.win_patterns:
            reasons.append("win_patterns must not be empty")
        unknown = set(self.win_patterns) - set(PATTERN_GROUPS)
        if unknown:
            reasons.append(f"unknown win_patterns: {sorted(unknown)}")
        if self.rng_engine not in ENGINES:
            reasons.append(f"unsupported rng engine: {self.rng_engine}")
        reasons.extend(check_interval(*self.call_interval).reasons)
        reasons.extend(check_layout(self.layout).reasons)
        if reasons:
            raise ValueError("Invalid engine config: " + "; ".join(reasons))


def _read_config_file(config_path: Path | None) -> Dict[str, Any]:
    if not config_path:
        return {}
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    suffix = config_path.suffix.lower()
    text = config_path.read_text(encoding="utf-8")
    if suffix in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text)
    else:
        raise ValueError(f"Unsupported config extension: {suffix}")
    if not isinstance(data, dict):
        raise ValueError("Top-level config must be a mapping")
    return data


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


_ENV_KEYS: Dict[str, Tuple[str, Any]] = {
    "MAX_PLAYERS": ("max_players", int),
    "CALL_INTERVAL_MIN": ("call_interval.min", float),
    "CALL_INTERVAL_MAX": ("call_interval.max", float),
    "COUNTDOWN_SEC": ("countdown_sec", int),
    "COUNTDOWN_TICK_SEC": ("countdown_tick_sec", float),
    "CARDS_PER_PLAYER": ("cards_per_player", int),
    "LAYOUT_COLUMNS": ("layout.columns", int),
    "LAYOUT_ROWS": ("layout.rows", int),
    "LAYOUT_SPAN": ("layout.span", int),
    "LAYOUT_FREE_CENTER": ("layout.free_center", _parse_bool),
    "WIN_PATTERNS": ("win_patterns", _parse_list),
    "AUTO_START": ("auto_start", _parse_bool),
    "SEED_VALUE": ("seed.value", int),
    "SEED_ENGINE": ("seed.engine", str),
    "PLAYERS": ("players", int),
    "REACTION_SEC": ("reaction_sec", float),
    "LOG_LEVEL": ("log_level", str),
    "LOG_FORMAT": ("log_format", str),
    "LOG_FILE": ("log_file", str),
    "OUT_RECORD": ("out_record", str),
    "CALLS_CSV": ("calls_csv", str),
}


def _collect_env_vars(env: Mapping[str, str]) -> Dict[str, Any]:
    """Map BINGO_ENGINE_* variables to dotted config keys.

    Values that fail conversion are passed through as strings and rejected
    later by ``build_engine_config``.
    """
    result: Dict[str, Any] = {}
    for suffix, (cfg_key, convert) in _ENV_KEYS.items():
        raw = env.get(ENV_PREFIX + suffix)
        if raw is None:
            continue
        try:
            result[cfg_key] = convert(raw)
        except ValueError:
            result[cfg_key] = raw
    return result


def _set_nested(config: Dict[str, Any], dotted_key: str, value: Any) -> None:
    parts = dotted_key.split(".")
    cursor = config
    for part in parts[:-1]:
        if part not in cursor or not isinstance(cursor[part], dict):
            cursor[part] = {}
        cursor = cursor[part]
    cursor[parts[-1]] = value


def _merge(base: Dict[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = json.loads(json.dumps(base))  # deep copy via JSON
    for key, value in overrides.items():
        if "." in key:
            _set_nested(merged, key, value)
        elif isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def canonical_json_dumps(data: Any) -> str:
    return json.dumps(data, ensure_ascii=True, sort_keys=True, separators=(",", ":"))


HASHED_KEYS = (
    "max_players",
    "call_interval",
    "countdown_sec",
    "countdown_tick_sec",
    "cards_per_player",
    "layout",
    "win_patterns",
    "auto_start",
    "seed",
)


def compute_params_hash(resolved: Mapping[str, Any]) -> str:
    """Hash of the settings that affect game outcome; logging and paths are excluded."""
    contract = {key: resolved[key] for key in HASHED_KEYS if key in resolved}
    if isinstance(contract.get("win_patterns"), list):
        contract["win_patterns"] = sorted(set(str(x) for x in contract["win_patterns"]))
    digest = hashlib.sha256(canonical_json_dumps(contract).encode("utf-8")).hexdigest()
    return f"sha256:{digest}"


PATH_KEYS = ("out_record", "calls_csv", "log_file")


def resolve_paths(
    resolved: Dict[str, Any],
    config_file: Path | None,
    cli_overrides: Mapping[str, Any],
) -> Dict[str, Any]:
    """Paths from the config file are relative to its directory; all others to CWD."""
    cwd = Path.cwd()
    cfg_dir = config_file.parent if config_file else None
    result = dict(resolved)
    for key in PATH_KEYS:
        value = resolved.get(key)
        if value is None or value == "":
            continue
        p = Path(str(value))
        if p.is_absolute():
            result[key] = str(p)
            continue
        base = cwd if key in cli_overrides else (cfg_dir or cwd)
        result[key] = str((base / p).resolve())
    return result


def resolve_parameters(
    *,
    config_path_str: str | None,
    cli_overrides: Mapping[str, Any],
    env: Mapping[str, str] | None = None,
) -> Tuple[Dict[str, Any], str, Path | None]:
    """Resolve parameters with precedence CLI > ENV > config > defaults.

    Returns (resolved_params, params_hash, config_path)
    """
    config_path = Path(config_path_str).resolve() if config_path_str else None
    file_cfg = _read_config_file(config_path) if config_path else {}
    env_map = _collect_env_vars(os.environ if env is None else env)

    merged = _merge(DEFAULTS, file_cfg)
    merged = _merge(merged, env_map)
    merged = _merge(merged, cli_overrides)
    merged = resolve_paths(merged, config_path, cli_overrides)
    return merged, compute_params_hash(merged), config_path


def build_engine_config(resolved: Mapping[str, Any]) -> EngineConfig:
    try:
        interval = resolved.get("call_interval", {})
        layout = resolved.get("layout", {})
        seed = resolved.get("seed", {})
        return EngineConfig(
            max_players=int(resolved.get("max_players", 100)),
            call_interval=(float(interval.get("min", 3.0)), float(interval.get("max", 5.0))),
            countdown_sec=int(resolved.get("countdown_sec", 10)),
            countdown_tick_sec=float(resolved.get("countdown_tick_sec", 1.0)),
            cards_per_player=int(resolved.get("cards_per_player", 1)),
            layout=CardLayout(
                columns=int(layout.get("columns", 5)),
                rows=int(layout.get("rows", 5)),
                span=int(layout.get("span", 15)),
                free_center=bool(layout.get("free_center", True)),
                letters=str(layout.get("letters", "BINGO")),
            ),
            win_patterns=tuple(str(p) for p in resolved.get("win_patterns", DEFAULT_PATTERNS)),
            auto_start=bool(resolved.get("auto_start", False)),
            seed=int(seed.get("value", 0)),
            rng_engine=str(seed.get("engine", "py_random")).strip().lower(),
        )
    except (TypeError, AttributeError) as exc:
        raise ValueError(f"Invalid engine config: {exc}") from exc
