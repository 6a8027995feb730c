from __future__ import annotations

import hashlib
import random
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np


@dataclass
class RandomSource:
    """Explicit random source handed to every component that needs chance.

    Nothing in the engine touches the module-level ``random`` state, so a
    seed fully determines cards and call order.
    """

    engine: str

    def randrange(self, n: int) -> int:
        raise NotImplementedError

    def uniform(self, low: float, high: float) -> float:
        raise NotImplementedError

    def sample(self, seq: Sequence[int], k: int) -> List[int]:
        raise NotImplementedError


class PyRandomSource(RandomSource):
    def __init__(self, seed: int):
        super().__init__(engine="py_random")
        self._rng = random.Random(seed)

    def randrange(self, n: int) -> int:
        return self._rng.randrange(n)

    def uniform(self, low: float, high: float) -> float:
        return self._rng.uniform(low, high)

    def sample(self, seq: Sequence[int], k: int) -> List[int]:
        return self._rng.sample(list(seq), k)


class NumpyPCG64Source(RandomSource):
    def __init__(self, seed: int):
        super().__init__(engine="numpy_pcg64")
        self._rng = np.random.Generator(np.random.PCG64(seed))

    def randrange(self, n: int) -> int:
        return int(self._rng.integers(low=0, high=n))

    def uniform(self, low: float, high: float) -> float:
        return float(self._rng.uniform(low, high))

    def sample(self, seq: Sequence[int], k: int) -> List[int]:
        idxs = self._rng.choice(len(seq), size=k, replace=False)
        return [seq[int(i)] for i in idxs]


ENGINES = ("py_random", "numpy_pcg64")


def create_rng(engine: str, seed: int) -> RandomSource:
    engine = (engine or "py_random").strip().lower()
    if engine == "py_random":
        return PyRandomSource(seed)
    if engine == "numpy_pcg64":
        return NumpyPCG64Source(seed)
    raise ValueError(f"Unsupported RNG engine: {engine}")


def derive_seed(base_seed: int, purpose: str, index: int = 0) -> int:
    """Derive a stable sub-seed for one purpose (pool, a player's card, ...).

    Returns a 63-bit positive integer suitable for seeding either engine.
    """
    s = f"{base_seed}|{purpose}|{index}".encode("utf-8")
    digest = hashlib.sha256(s).digest()
    return int.from_bytes(digest[:8], byteorder="big") & ((1 << 63) - 1)
