"""Randomness sources and selection primitives.

Random nodes draw floats in [0, 1) from a generator exposing ``random()``.
Two generators are supported:
- ``random.Random()`` for non-deterministic renders
- ``SeededRandom``, a linear-congruential generator for reproducible renders

The selection helpers (uniform index, weighted index, inclusive range,
Fisher-Yates shuffle) only depend on ``random()``, so they behave the same
with either source.
"""

from __future__ import annotations

import random
from typing import Any, List, Optional, Protocol, Sequence

LCG_MULTIPLIER = 1103515245
LCG_INCREMENT = 12345
LCG_MASK = 0x7FFFFFFF


class RandomGenerator(Protocol):
    def random(self) -> float:
        ...


class SeededRandom:
    """Deterministic LCG: ``state = (state * 1103515245 + 12345) & 0x7fffffff``.

    The same seed always yields the same sequence of draws, which keeps
    seeded renders stable across runs and platforms.
    """

    def __init__(self, seed: int):
        self.seed = seed
        self._state = seed & LCG_MASK

    def random(self) -> float:
        self._state = (self._state * LCG_MULTIPLIER + LCG_INCREMENT) & LCG_MASK
        return self._state / LCG_MASK


class LegacySeededRandom(SeededRandom):
    """The same LCG stepped in IEEE double arithmetic.

    Renders made before generators were shared computed the step on
    doubles and truncated to a 32-bit integer before masking, so the
    product loses low bits once it grows past 2**53. Reproducing
    those renders needs the same rounding.
    """

    def __init__(self, seed: int):
        self.seed = seed
        self._state = seed

    def random(self) -> float:
        x = float(self._state) * float(LCG_MULTIPLIER) + float(LCG_INCREMENT)
        self._state = (int(x) % 2**32) & LCG_MASK
        return self._state / LCG_MASK


class RandomSource:
    """Hands out the generator each random node draws from.

    By default one generator is shared by every random node of a render,
    so independent nodes get independent draws. With ``legacy_reseed``,
    each node gets a fresh ``LegacySeededRandom(seed)`` instead, reproducing
    renders made before generators were shared.
    """

    def __init__(self, seed: Optional[int] = None, *, legacy_reseed: bool = False):
        self.seed = seed
        self.legacy_reseed = legacy_reseed and seed is not None
        self._shared: RandomGenerator = (
            SeededRandom(seed) if seed is not None else random.Random()
        )

    @classmethod
    def for_output(
        cls, seed: Optional[int], output_index: int, *, legacy_reseed: bool = False
    ) -> "RandomSource":
        """Source for the ``output_index``-th output of a batch."""
        if seed is None or legacy_reseed:
            return cls(seed, legacy_reseed=legacy_reseed)
        return cls(seed + output_index)

    @property
    def is_seeded(self) -> bool:
        return self.seed is not None

    def generator(self) -> RandomGenerator:
        if self.legacy_reseed:
            return LegacySeededRandom(self.seed)
        return self._shared


# -----------------------------------------------------------------------------
# Selection primitives
# -----------------------------------------------------------------------------


def uniform_index(rng: RandomGenerator, size: int) -> int:
    """Uniform index in ``[0, size)``. Clamped because seeded draws can hit 1.0."""
    return min(int(rng.random() * size), size - 1)


def weighted_index(rng: RandomGenerator, weights: Sequence[float]) -> Optional[int]:
    """Pick a bucket with probability proportional to its weight.

    Draws ``r`` in ``[0, total)`` and returns the first bucket whose
    cumulative weight exceeds ``r``. Returns None when no weight is positive.
    """
    positive = [max(w, 0.0) for w in weights]
    total = sum(positive)
    if total <= 0:
        return None
    r = rng.random() * total
    cumulative = 0.0
    for i, weight in enumerate(positive):
        cumulative += weight
        if r < cumulative:
            return i
    # Float rounding at the top of the range
    return max(i for i, weight in enumerate(positive) if weight > 0)


def inclusive_range(rng: RandomGenerator, low: int, high: int) -> int:
    """Uniform integer in ``[low, high]``."""
    return low + uniform_index(rng, high - low + 1)


def fisher_yates(rng: RandomGenerator, items: Sequence[Any]) -> List[Any]:
    """Return a shuffled copy of ``items``."""
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = uniform_index(rng, i + 1)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def sample_indices(
    rng: RandomGenerator, size: int, count: int, *, allow_duplicates: bool = False
) -> List[int]:
    """Draw ``count`` indices from ``range(size)``.

    Without duplicates, drawing stops early once the pool is exhausted.
    """
    available = list(range(size))
    picked: List[int] = []
    while len(picked) < count and available:
        position = uniform_index(rng, len(available))
        picked.append(available[position])
        if not allow_duplicates:
            available.pop(position)
    return picked
