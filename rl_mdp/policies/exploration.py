"""Exploration functions applied to action values before greedy selection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import gin


class Exploration(Protocol):
    """Maps a value estimate and its visit count to the value used for selection."""

    def estimated_reward(self, value: float, frequency: int) -> float:
        ...


@gin.configurable
@dataclass(slots=True)
class SimpleExploration(Exploration):
    """Optimistic value for pairs tried fewer than `frequency_threshold` times."""

    frequency_threshold: int
    max_reward: float = 1.0

    def estimated_reward(self, value: float, frequency: int) -> float:
        if frequency < self.frequency_threshold:
            return self.max_reward
        return value


@gin.configurable
@dataclass(slots=True)
class NoExploration(Exploration):
    def estimated_reward(self, value: float, frequency: int) -> float:
        return value
