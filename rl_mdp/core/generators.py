"""Enumerators over the state and action spaces of a domain."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Iterator

from rl_mdp.core.rng import DEFAULT_RNG, RandomSource
from rl_mdp.core.types import Action, State, ensure_key


class StateGenerator(ABC):
    """Enumerates every state of a domain in a fixed order."""

    @abstractmethod
    def states(self) -> Iterator[State]:
        ...

    def random_state(self, rng: RandomSource = DEFAULT_RNG) -> State:
        return rng.choice(list(self.states()))

    def __iter__(self) -> Iterator[State]:
        return self.states()


class ActionGenerator(ABC):
    """Enumerates every action of a domain in a fixed order."""

    @abstractmethod
    def actions(self) -> Iterator[Action]:
        ...

    def random_action(self, rng: RandomSource = DEFAULT_RNG) -> Action:
        return rng.choice(list(self.actions()))

    def default_action(self) -> Action:
        """First enumerated action, used where no learned action is available."""
        for action in self.actions():
            return action
        raise ValueError("Action generator enumerates no actions.")

    def __iter__(self) -> Iterator[Action]:
        return self.actions()


class FiniteStateGenerator(StateGenerator):
    def __init__(self, states: Iterable[State]) -> None:
        self._states = tuple(ensure_key(state) for state in states)
        if not self._states:
            raise ValueError("`states` must not be empty.")

    def states(self) -> Iterator[State]:
        return iter(self._states)

    def random_state(self, rng: RandomSource = DEFAULT_RNG) -> State:
        return rng.choice(self._states)


class FiniteActionGenerator(ActionGenerator):
    def __init__(self, actions: Iterable[Action]) -> None:
        self._actions = tuple(ensure_key(action) for action in actions)
        if not self._actions:
            raise ValueError("`actions` must not be empty.")

    def actions(self) -> Iterator[Action]:
        return iter(self._actions)

    def random_action(self, rng: RandomSource = DEFAULT_RNG) -> Action:
        return rng.choice(self._actions)
