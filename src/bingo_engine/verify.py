from __future__ import annotations

from collections import defaultdict
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .card import CardLayout, generate_card
from .feasibility import check_layout
from .hashing import calls_hash, cards_hash, matrix_hash
from .pool import DrawPool
from .rng import create_rng, derive_seed
from .win import LinePattern, pattern_cells, priority_order


def check_card_columns(columns: Sequence[Sequence[Optional[int]]], layout: CardLayout) -> List[str]:
    """Column ranges, distinct numbers and the free cell of one card."""
    problems: List[str] = []
    if len(columns) != layout.columns or any(len(col) != layout.rows for col in columns):
        return [f"shape is not {layout.columns}x{layout.rows}"]
    seen = set()
    for c, col in enumerate(columns):
        low, high = layout.column_range(c)
        for r, value in enumerate(col):
            if layout.center == (r, c):
                if value is not None:
                    problems.append(f"free cell holds {value}")
                continue
            if value is None:
                problems.append(f"({r},{c}) has no number")
                continue
            if not low <= value <= high:
                problems.append(f"{value} outside column {c} range [{low},{high}]")
            if value in seen:
                problems.append(f"{value} appears twice")
            seen.add(value)
    return problems


def check_calls(calls: Sequence[int], max_number: int) -> List[str]:
    problems: List[str] = []
    if len(set(calls)) != len(calls):
        problems.append("duplicate calls")
    out_of_range = [x for x in calls if not 1 <= x <= max_number]
    if out_of_range:
        problems.append(f"calls out of range: {out_of_range[:5]}")
    return problems


def check_outcome(record: Mapping[str, Any], layout: CardLayout) -> List[str]:
    outcome = record.get("outcome", {})
    calls = set(record.get("calls", []))
    problems: List[str] = []
    reason = outcome.get("end_reason")
    if reason == "exhausted" and len(calls) != layout.max_number:
        problems.append(f"exhausted with only {len(calls)} calls")
    winner = outcome.get("winner")
    if reason != "win":
        if winner is not None:
            problems.append(f"winner recorded for end_reason={reason}")
        return problems

    cards = {c["card_id"]: c for c in record.get("cards", [])}
    card = cards.get(outcome.get("card_id"))
    if card is None or card.get("player_id") != winner:
        return problems + ["winning card missing or not held by the winner"]
    try:
        pattern = LinePattern.parse(str(outcome.get("pattern")))
    except ValueError as exc:
        return problems + [str(exc)]
    allowed = priority_order(layout, record.get("win_patterns", ["rows", "columns", "diagonals"]))
    if pattern not in allowed:
        problems.append(f"pattern {pattern} is not enabled")
        return problems
    columns = card["columns"]
    for r, c in pattern_cells(layout, pattern):
        value = columns[c][r]
        if value is not None and value not in calls:
            problems.append(f"winning pattern {pattern} uses uncalled {value}")
    return problems


def replay(record: Mapping[str, Any], layout: CardLayout) -> List[str]:
    """Regenerate cards and calls from the recorded seed and compare."""
    meta = record.get("run_meta", {})
    if "seed" not in meta or "rng_engine" not in meta:
        return []
    seed, engine = int(meta["seed"]), str(meta["rng_engine"])
    problems: List[str] = []

    calls = list(record.get("calls", []))
    pool = DrawPool(create_rng(engine, derive_seed(seed, "pool")), size=layout.max_number)
    if [pool.draw() for _ in range(len(calls))] != calls:
        problems.append("calls do not replay from the recorded seed")

    joined = {p["id"]: int(p["joined"]) for p in record.get("players", [])}
    by_player: Dict[str, List[Mapping[str, Any]]] = defaultdict(list)
    for card in record.get("cards", []):
        by_player[card["player_id"]].append(card)
    for pid, cards in by_player.items():
        if pid not in joined:
            problems.append(f"card holder {pid!r} is not a player")
            continue
        rng = create_rng(engine, derive_seed(seed, "card", joined[pid]))
        for card in cards:
            regenerated = generate_card(rng, card_id=card["card_id"], player_id=pid, layout=layout)
            if regenerated.column_numbers() != card["columns"]:
                problems.append(f"card {card['card_id']} does not replay from the recorded seed")
    return problems


def verify_record(record: Mapping[str, Any], *, replay_seed: bool = True) -> Dict[str, object]:
    layout = CardLayout(**record.get("layout", {}))
    feas = check_layout(layout)
    if not feas.feasible:
        return {"ok": False, "errors": feas.reasons}

    errors: List[str] = []
    cards = record.get("cards", [])
    bad_cards = 0
    for card in cards:
        problems = check_card_columns(card["columns"], layout)
        if matrix_hash(card["columns"]) != card.get("matrix_hash"):
            problems.append("matrix_hash mismatch")
        if problems:
            bad_cards += 1
            errors.extend(f"{card['card_id']}: {p}" for p in problems)
    if cards_hash([c["columns"] for c in cards]) != record.get("cards_hash"):
        errors.append("cards_hash mismatch")

    calls = list(record.get("calls", []))
    errors.extend(check_calls(calls, layout.max_number))
    if calls_hash(calls) != record.get("calls_hash"):
        errors.append("calls_hash mismatch")

    errors.extend(check_outcome(record, layout))
    if replay_seed:
        errors.extend(replay(record, layout))

    return {
        "ok": not errors,
        "errors": errors,
        "cards_checked": len(cards),
        "bad_cards": bad_cards,
        "calls_checked": len(calls),
    }
