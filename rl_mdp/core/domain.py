"""Domain facade bundling the models that define an MDP."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterator

from rl_mdp.core.generators import ActionGenerator, StateGenerator
from rl_mdp.core.rng import DEFAULT_RNG, RandomSource
from rl_mdp.core.types import Action, State
from rl_mdp.models.reward import Reward
from rl_mdp.models.transition import Transition


class Domain(ABC):
    """Abstract base class describing the interface domains must implement."""

    @abstractmethod
    def transition(self) -> Transition:
        ...

    @abstractmethod
    def reward(self) -> Reward:
        ...

    @abstractmethod
    def state_generator(self) -> StateGenerator:
        ...

    @abstractmethod
    def action_generator(self) -> ActionGenerator:
        ...

    @abstractmethod
    def start_state(self) -> State:
        ...

    @abstractmethod
    def is_terminal_state(self, state: State) -> bool:
        ...

    def applicable_actions(self, state: State) -> Iterator[Action]:
        return self.action_generator().actions()

    def transfer_state(
        self, state: State, action: Action, rng: RandomSource = DEFAULT_RNG
    ) -> State:
        """Samples a successor of `state` under `action`.

        Terminal states and pairs without successors stay where they are.
        """
        if self.is_terminal_state(state):
            return state
        successors = self.transition().transition_states(state, action)
        if not successors:
            return state
        draw = rng.uniform()
        cumulative = 0.0
        for entry in successors:
            cumulative += entry.weight
            if draw < cumulative:
                return entry.state
        return successors[-1].state
