from __future__ import annotations

import os
from pathlib import Path

import pytest

from bingo_engine.config import EngineConfig, build_engine_config, resolve_parameters


def test_env_precedence_over_config(tmp_path: Path, monkeypatch):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("max_players: 10\ncountdown_sec: 5\n", encoding="utf-8")
    monkeypatch.setenv("BINGO_ENGINE_MAX_PLAYERS", "20")

    resolved, params_hash, _ = resolve_parameters(
        config_path_str=str(cfg), cli_overrides={}, env=os.environ
    )
    assert resolved["max_players"] == 20
    assert resolved["countdown_sec"] == 5
    assert params_hash.startswith("sha256:")


def test_cli_precedence_over_env(tmp_path: Path, monkeypatch):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("seed:\n  value: 1\n", encoding="utf-8")
    monkeypatch.setenv("BINGO_ENGINE_SEED_VALUE", "2")

    resolved, _hash, _ = resolve_parameters(
        config_path_str=str(cfg), cli_overrides={"seed.value": 3}, env=os.environ
    )
    assert resolved["seed"]["value"] == 3
    # nested defaults survive a partial override
    assert resolved["seed"]["engine"] == "py_random"


def test_nested_file_values_merge_with_defaults(tmp_path: Path):
    cfg = tmp_path / "config.json"
    cfg.write_text('{"call_interval": {"max": 8.0}, "layout": {"free_center": false}}', encoding="utf-8")
    resolved, _hash, _ = resolve_parameters(config_path_str=str(cfg), cli_overrides={}, env={})
    config = build_engine_config(resolved)
    assert config.call_interval == (3.0, 8.0)
    assert config.layout.free_center is False
    assert config.layout.rows == 5


def test_env_lists_and_bools():
    env = {"BINGO_ENGINE_WIN_PATTERNS": "rows, blackout", "BINGO_ENGINE_AUTO_START": "yes"}
    resolved, _hash, _ = resolve_parameters(config_path_str=None, cli_overrides={}, env=env)
    config = build_engine_config(resolved)
    assert config.win_patterns == ("rows", "blackout")
    assert config.auto_start is True


def test_path_normalization_cli_vs_config(tmp_path: Path, monkeypatch):
    cfg_dir = tmp_path / "cfg"
    cfg_dir.mkdir()
    cfg = cfg_dir / "conf.yaml"
    cfg.write_text("out_record: record.json\n", encoding="utf-8")

    monkeypatch.chdir(tmp_path)
    resolved, _hash, _ = resolve_parameters(
        config_path_str=str(cfg),
        cli_overrides={"calls_csv": "calls.csv"},
        env={},
    )
    assert Path(resolved["out_record"]).parent == cfg_dir.resolve()
    assert Path(resolved["calls_csv"]).parent == tmp_path.resolve()


def test_params_hash_ignores_logging_and_paths():
    base = {"seed.value": 20250824, "cards_per_player": 2, "log_level": "INFO", "out_record": "a.json"}
    _, h1, _ = resolve_parameters(config_path_str=None, cli_overrides=base, env={})
    altered = dict(base, log_level="DEBUG", out_record="b.json")
    _, h2, _ = resolve_parameters(config_path_str=None, cli_overrides=altered, env={})
    assert h1 == h2
    _, h3, _ = resolve_parameters(config_path_str=None, cli_overrides=dict(base, cards_per_player=3), env={})
    assert h3 != h1


def test_defaults_build_the_standard_game():
    resolved, _hash, _ = resolve_parameters(config_path_str=None, cli_overrides={}, env={})
    assert build_engine_config(resolved) == EngineConfig()


@pytest.mark.parametrize(
    "override",
    [
        {"max_players": 1},
        {"call_interval.min": 6.0},
        {"countdown_sec": -1},
        {"cards_per_player": 0},
        {"win_patterns": ["corners"]},
        {"seed.engine": "mt"},
        {"layout.span": 3},
    ],
)
def test_invalid_settings_rejected(override):
    resolved, _hash, _ = resolve_parameters(config_path_str=None, cli_overrides=override, env={})
    with pytest.raises(ValueError):
        build_engine_config(resolved)


def test_missing_config_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        resolve_parameters(config_path_str=str(tmp_path / "nope.yaml"), cli_overrides={}, env={})
