from __future__ import annotations

import hashlib
import json
from typing import Iterable, Optional, Sequence


def _sha256(payload: object) -> str:
    text = json.dumps(payload, ensure_ascii=True, separators=(",", ":"))
    return "sha256:" + hashlib.sha256(text.encode("utf-8")).hexdigest()


def matrix_hash(columns: Sequence[Sequence[Optional[int]]]) -> str:
    """Hash of a card's numbers, column-major, free cell as null."""
    return _sha256([list(col) for col in columns])


def cards_hash(matrices: Iterable[Sequence[Sequence[Optional[int]]]]) -> str:
    return _sha256([matrix_hash(m) for m in matrices])


def calls_hash(calls: Sequence[int]) -> str:
    return _sha256(list(calls))
