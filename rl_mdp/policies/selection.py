"""Action-selection policies over explicit action/value candidates."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Protocol, Sequence

from rl_mdp.core.rng import RandomSource
from rl_mdp.core.types import Action, ActionValue


def first_best(candidates: Sequence[ActionValue]) -> ActionValue:
    """Returns the candidate with the strictly greatest value, first one on ties."""
    if not candidates:
        raise ValueError("Cannot select from an empty candidate list.")
    best = candidates[0]
    for candidate in candidates[1:]:
        if candidate.value > best.value:
            best = candidate
    return best


class ActionSelectionPolicy(Protocol):
    def select(
        self, rng: RandomSource, candidates: Sequence[ActionValue]
    ) -> tuple[Action, Dict[str, float]]:
        ...


@dataclass(slots=True)
class GreedyPolicy(ActionSelectionPolicy):
    def select(
        self, rng: RandomSource, candidates: Sequence[ActionValue]
    ) -> tuple[Action, Dict[str, float]]:
        return first_best(candidates).action, {"exploratory": 0.0}


@dataclass(slots=True)
class EpsilonGreedyPolicy(ActionSelectionPolicy):
    """Chooses the greedy action with probability 1 - epsilon; otherwise a uniform one."""

    epsilon: float = 0.1

    def select(
        self, rng: RandomSource, candidates: Sequence[ActionValue]
    ) -> tuple[Action, Dict[str, float]]:
        if rng.uniform() >= self.epsilon:
            return first_best(candidates).action, {"exploratory": 0.0}
        return rng.choice(candidates).action, {"exploratory": 1.0}
