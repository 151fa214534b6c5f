"""State utility tables."""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from typing import Iterator

from rl_mdp.core.types import State, ensure_key


class Utility(ABC):
    @abstractmethod
    def utility(self, state: State) -> float:
        ...

    @abstractmethod
    def experience_utility(self, state: State, value: float) -> None:
        """Sets the utility of `state`, inserting it when unseen."""

    @abstractmethod
    def clone(self) -> Utility:
        """Returns an independent copy."""

    def format(self) -> str:
        return ""


class MappedUtility(Utility):
    """Utility table backed by a dict with a default for unseen states."""

    def __init__(self, default_value: float = 0.0) -> None:
        self.default_value = float(default_value)
        self._values: dict[State, float] = {}

    def utility(self, state: State) -> float:
        return self._values.get(state, self.default_value)

    def experience_utility(self, state: State, value: float) -> None:
        if state not in self._values:
            ensure_key(state)
        self._values[state] = float(value)

    def clone(self) -> MappedUtility:
        return copy.deepcopy(self)

    def items(self) -> Iterator[tuple[State, float]]:
        return iter(sorted(self._values.items()))

    def __len__(self) -> int:
        return len(self._values)

    def format(self) -> str:
        return "\n".join(f"{state} -> {value}" for state, value in self.items())
