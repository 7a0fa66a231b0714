# sim/rng.py
from __future__ import annotations

from functools import cache
from zlib import crc32

import numpy as np


def _u32(x: int) -> int:
    return int(x & 0xFFFFFFFF)


def _tag(p: object) -> int:
    if isinstance(p, (int, np.integer)):
        return _u32(int(p))
    text = p if isinstance(p, str) else repr(p)
    return _u32(crc32(text.encode("utf-8")))


class RNGRegistry:
    """
    Deterministic numpy Generators keyed by name.

    Each stream is seeded from [master_seed, scenario, name, *parts], so the
    draws of one stream never depend on which other streams were used first.
    """

    def __init__(self, master_seed: int, *, scenario: str | int = 0):
        self.master_seed = _u32(master_seed)
        self.scenario_tag = _tag(str(scenario))

    @cache
    def _generator(self, key: tuple[int, ...]) -> np.random.Generator:
        ss = np.random.SeedSequence(entropy=[self.master_seed, self.scenario_tag, *key])
        return np.random.Generator(np.random.PCG64(ss))

    def stream(self, name: str) -> np.random.Generator:
        return self._generator((_tag(name),))

    def substream(self, name: str, *parts: object) -> np.random.Generator:
        return self._generator((_tag(name), *(_tag(p) for p in parts)))
