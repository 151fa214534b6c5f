"""Expected-utility maximisation over the actions of a state."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable

from rl_mdp.core.errors import ProbabilityMassError
from rl_mdp.core.floats import ZERO_EPSILON, nearly_equal
from rl_mdp.core.types import Action, ActionValue, State
from rl_mdp.models.transition import Transition
from rl_mdp.models.utility import Utility


@dataclass(slots=True)
class MaxUtilityResult:
    """Best action found for a state, or the error that stopped the search.

    `best` is `None` when no action had successors.
    """

    best: ActionValue | None = None
    error: ProbabilityMassError | None = None

    @property
    def found(self) -> bool:
        return self.best is not None

    def unwrap(self) -> ActionValue | None:
        if self.error is not None:
            raise self.error
        return self.best


def expected_utility(
    utility: Utility, transition: Transition, state: State, action: Action
) -> tuple[float, float] | None:
    """Returns `(sum p * U(s'), sum p)` for the pair, `None` when it has no successors."""
    successors = transition.transition_states(state, action)
    if not successors:
        return None
    value = 0.0
    mass = 0.0
    for entry in successors:
        value += entry.weight * utility.utility(entry.state)
        mass += entry.weight
    return value, mass


def max_utility_action(
    utility: Utility,
    transition: Transition,
    state: State,
    actions: Iterable[Action],
) -> MaxUtilityResult:
    """Computes `argmax_a sum_s' T(s, a, s') U(s')`; the first action wins ties."""
    best_action = None
    best_value = -math.inf
    found = False
    for action in actions:
        evaluated = expected_utility(utility, transition, state, action)
        if evaluated is None:
            continue
        value, mass = evaluated
        if not nearly_equal(mass, 1.0, ZERO_EPSILON, ZERO_EPSILON):
            return MaxUtilityResult(error=ProbabilityMassError(state, action, mass))
        if not found or value > best_value:
            best_action = action
            best_value = value
            found = True
    if not found:
        return MaxUtilityResult()
    return MaxUtilityResult(best=ActionValue(best_action, best_value))
