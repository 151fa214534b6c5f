"""State to action policies."""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from typing import Iterator

from rl_mdp.core.types import Action, State, ensure_key


class Policy(ABC):
    @abstractmethod
    def get_action(self, state: State) -> Action | None:
        """Returns the action for `state`, or `None` when the policy has no entry."""

    @abstractmethod
    def best_action(self, state: State, action: Action) -> None:
        """Records `action` for `state`, replacing any previous entry."""

    @abstractmethod
    def clone(self) -> Policy:
        ...

    def format(self) -> str:
        return ""


class LookupPolicy(Policy):
    def __init__(self) -> None:
        self._actions: dict[State, Action] = {}

    def get_action(self, state: State) -> Action | None:
        return self._actions.get(state)

    def best_action(self, state: State, action: Action) -> None:
        if state not in self._actions:
            ensure_key(state)
        self._actions[state] = action

    def clone(self) -> LookupPolicy:
        return copy.deepcopy(self)

    def items(self) -> Iterator[tuple[State, Action]]:
        return iter(sorted(self._actions.items()))

    def __contains__(self, state: object) -> bool:
        return state in self._actions

    def __len__(self) -> int:
        return len(self._actions)

    def format(self) -> str:
        return "\n".join(f"{state} -> {action}" for state, action in self.items())
