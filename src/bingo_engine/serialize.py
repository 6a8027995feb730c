from __future__ import annotations

import csv
import json
import platform
import sys
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from .card import letter_for_number
from .hashing import calls_hash, cards_hash, matrix_hash
from .match import Match


def ensure_parent(path: Path, *, mkdirs: bool) -> None:
    parent = path.parent
    if not parent.exists() and mkdirs:
        parent.mkdir(parents=True, exist_ok=True)


def _refuse_overwrite(path: Path, overwrite: bool) -> None:
    if path.exists() and not overwrite:
        raise FileExistsError(f"Refusing to overwrite existing file without --force: {path}")


def write_json(path: Path, data: object, *, mkdirs: bool, overwrite: bool) -> None:
    _refuse_overwrite(path, overwrite)
    ensure_parent(path, mkdirs=mkdirs)
    text = json.dumps(data, ensure_ascii=True, sort_keys=True, indent=2)
    path.write_text(text + "\n", encoding="utf-8")


def build_run_meta(*, app_version: str, params_hash: str, seed: int, rng_engine: str) -> Dict[str, object]:
    return {
        "app_version": app_version,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "python_version": sys.version.split()[0],
        "platform": platform.system().lower(),
        "params_hash": params_hash,
        "seed": seed,
        "rng_engine": rng_engine,
        "hash_algorithm": "sha256",
    }


def build_match_record(match: Match, *, run_meta: Dict[str, object]) -> Dict[str, Any]:
    """Audit record of a match: who played which card, every call, and the outcome."""
    players = [
        {"id": pid, "name": match.player(pid).name, "joined": match.player(pid).joined}
        for pid in match.players
    ]
    cards: List[Dict[str, object]] = []
    for pid in match.players:
        for card in match.cards_of(pid):
            columns = card.column_numbers()
            cards.append(
                {
                    "card_id": card.card_id,
                    "player_id": pid,
                    "columns": columns,
                    "matrix_hash": matrix_hash(columns),
                }
            )
    calls = list(match.drawn)
    return {
        "run_meta": run_meta,
        "layout": asdict(match.config.layout),
        "win_patterns": list(match.config.win_patterns),
        "players": players,
        "cards": cards,
        "cards_hash": cards_hash([c["columns"] for c in cards]),  # type: ignore[misc]
        "calls": calls,
        "calls_hash": calls_hash(calls),
        "outcome": {
            "status": match.status.value,
            "end_reason": match.end_reason,
            "winner": match.winner,
            "card_id": match.winning_card,
            "pattern": str(match.win_pattern) if match.win_pattern else None,
        },
    }


def emit_match_record(path: Path, *, record: Dict[str, Any], mkdirs: bool, overwrite: bool) -> None:
    write_json(path, record, mkdirs=mkdirs, overwrite=overwrite)


def load_record(path: Path) -> Dict[str, Any]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Top-level record must be a mapping")
    return data


def emit_calls_csv(path: Path, *, match: Match, mkdirs: bool, overwrite: bool) -> None:
    _refuse_overwrite(path, overwrite)
    ensure_parent(path, mkdirs=mkdirs)
    layout = match.config.layout
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["order", "letter", "number"])
        for order, number in enumerate(match.drawn, start=1):
            writer.writerow([order, letter_for_number(number, layout), number])
