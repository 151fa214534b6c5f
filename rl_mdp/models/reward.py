"""State reward models."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Iterable, Mapping

from rl_mdp.core.types import State, ensure_key

LOGGER = logging.getLogger(__name__)


class Reward(ABC):
    @abstractmethod
    def reward(self, state: State) -> float:
        ...

    @abstractmethod
    def optimistic_reward(self) -> float:
        """Upper bound at least as large as any reward the model returns."""


class SelectedReward(Reward):
    """Default reward with per-state overrides."""

    def __init__(
        self,
        default_value: float,
        specific_rewards: Mapping[State, float] | Iterable[tuple[State, float]] | None = None,
    ) -> None:
        self.default_value = float(default_value)
        self._max_reward = self.default_value
        self._rewards: dict[State, float] = {}
        if specific_rewards is not None:
            if not self.add_specific_rewards(specific_rewards):
                raise ValueError("Could not initialise specific rewards.")

    def reward(self, state: State) -> float:
        return self._rewards.get(state, self.default_value)

    def add_specific_reward(self, state: State, value: float) -> bool:
        if state in self._rewards:
            LOGGER.error("Duplicate specific reward for state %s.", state)
            return False
        self._rewards[ensure_key(state)] = float(value)
        self._max_reward = max(self._max_reward, float(value))
        return True

    def add_specific_rewards(
        self, rewards: Mapping[State, float] | Iterable[tuple[State, float]]
    ) -> bool:
        items = rewards.items() if isinstance(rewards, Mapping) else rewards
        for state, value in items:
            if not self.add_specific_reward(state, value):
                return False
        return True

    def optimistic_reward(self) -> float:
        # 10% above the best reward, also for negative maxima.
        return self._max_reward + 0.1 * abs(self._max_reward)

    def __len__(self) -> int:
        return len(self._rewards)
