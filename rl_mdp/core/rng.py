"""Process-wide uniform random source."""

from __future__ import annotations

from typing import Sequence, TypeVar

import numpy as np

T = TypeVar("T")


class RandomSource:
    """Thin wrapper over a numpy `Generator` exposing the draws the solvers need."""

    def __init__(self, seed: int | None = None) -> None:
        self._generator = np.random.default_rng(seed)

    def seed(self, seed: int | None) -> None:
        self._generator = np.random.default_rng(seed)

    def uniform(self) -> float:
        """Returns a float in `[0, 1)`."""
        return float(self._generator.random())

    def integer(self, high: int) -> int:
        """Returns an integer in `[0, high)`."""
        if high <= 0:
            raise ValueError("`high` must be positive.")
        return int(self._generator.integers(high))

    def choice(self, items: Sequence[T]) -> T:
        if not items:
            raise ValueError("Cannot choose from an empty sequence.")
        return items[self.integer(len(items))]


DEFAULT_RNG = RandomSource()


def seed_everything(seed: int | None) -> None:
    DEFAULT_RNG.seed(seed)
