from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from .card import CardLayout


@dataclass
class Feasibility:
    feasible: bool
    reasons: List[str]


def check_layout(layout: "CardLayout") -> Feasibility:
    reasons: List[str] = []
    if layout.columns < 1 or layout.rows < 1:
        reasons.append("columns and rows must be >= 1")
    if layout.span < layout.rows:
        reasons.append("span < rows: a column cannot supply distinct numbers")
    if layout.free_center and (layout.rows % 2 == 0 or layout.columns % 2 == 0):
        reasons.append("free_center requires an odd number of rows and columns")
    if len(layout.letters) != layout.columns:
        reasons.append("letters must name every column exactly once")
    return Feasibility(feasible=not reasons, reasons=reasons)


def check_interval(low: float, high: float) -> Feasibility:
    """Call interval bounds in seconds."""
    ok = 0 < low <= high
    return Feasibility(feasible=ok, reasons=[] if ok else ["call interval must satisfy 0 < low <= high"])
