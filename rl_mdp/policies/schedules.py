"""Learning-rate schedules indexed by visit count."""

from __future__ import annotations

from dataclasses import dataclass

import gin


def _clamp_unit(value: float) -> float:
    return min(1.0, max(0.0, float(value)))


@gin.configurable
@dataclass(slots=True)
class LearningRate:
    """Constant learning rate, clamped into `[0, 1]`."""

    initial_value: float = 0.1

    def __post_init__(self) -> None:
        self.initial_value = _clamp_unit(self.initial_value)

    def rate(self, visits: int) -> float:
        return self.initial_value


@gin.configurable
@dataclass(slots=True)
class DecayLearningRate(LearningRate):
    """`rate(n) = rate0 / (1 + rate0 * decay * n)`."""

    initial_value: float = 0.99
    decay: float = 0.1

    def __post_init__(self) -> None:
        LearningRate.__post_init__(self)
        if self.decay < 0.0:
            raise ValueError("`decay` must be non-negative.")

    def rate(self, visits: int) -> float:
        decay_factor = self.initial_value * self.decay
        return _clamp_unit(self.initial_value / (1.0 + decay_factor * visits))
