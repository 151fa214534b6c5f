"""Modified policy iteration: bounded evaluation sweeps followed by greedy improvement."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable

import gin

from rl_mdp.agents.base import LearningController, LearningStatus
from rl_mdp.agents.max_utility import expected_utility, max_utility_action
from rl_mdp.agents.value_iteration import (
    ActionsFn,
    TerminalFn,
    ValueIterationUpdate,
    clamp_discount,
    never_terminal,
)
from rl_mdp.core.domain import Domain
from rl_mdp.core.errors import NoApplicableActionError
from rl_mdp.core.generators import ActionGenerator, StateGenerator
from rl_mdp.core.rng import DEFAULT_RNG, RandomSource
from rl_mdp.core.types import Action, State
from rl_mdp.models.reward import Reward
from rl_mdp.models.transition import Transition
from rl_mdp.models.utility import MappedUtility, Utility
from rl_mdp.policies.lookup import LookupPolicy, Policy

LOGGER = logging.getLogger(__name__)


def _enumerate_all(action_generator: ActionGenerator) -> ActionsFn:
    def actions(state: State) -> Iterable[Action]:
        return action_generator.actions()

    return actions


@dataclass(slots=True)
class PolicyIterationResult:
    policy: Policy
    utility: Utility
    iterations: int


def initialize_random_policy(
    policy: Policy,
    states: StateGenerator,
    action_generator: ActionGenerator,
    rng: RandomSource = DEFAULT_RNG,
) -> Policy:
    """Assigns a uniformly random action to every state."""
    for state in states.states():
        policy.best_action(state, action_generator.random_action(rng))
    return policy


def improve_policy(
    policy: Policy,
    utility: Utility,
    transition: Transition,
    actions: ActionsFn,
    states: StateGenerator,
    *,
    is_terminal: TerminalFn = never_terminal,
) -> bool:
    """Greedy improvement step; returns whether any state's action changed.

    An action is only replaced when the best action is strictly better.
    """
    changed = False
    for state in states.states():
        if is_terminal(state):
            continue
        best = max_utility_action(utility, transition, state, actions(state)).unwrap()
        if best is None:
            raise NoApplicableActionError(state)
        current_action = policy.get_action(state)
        current_value = -math.inf
        if current_action is not None:
            evaluated = expected_utility(utility, transition, state, current_action)
            if evaluated is not None:
                current_value = evaluated[0]
        if best.value > current_value:
            policy.best_action(state, best.action)
            changed = True
    return changed


def policy_iteration(
    utility: Utility,
    policy: Policy,
    reward: Reward,
    transition: Transition,
    states: StateGenerator,
    action_generator: ActionGenerator,
    discount: float,
    evaluation_sweeps: int = 5,
    *,
    actions: ActionsFn | None = None,
    is_terminal: TerminalFn = never_terminal,
    rng: RandomSource = DEFAULT_RNG,
) -> PolicyIterationResult:
    """Alternates `evaluation_sweeps` fixed-policy sweeps with improvement until no action changes.

    `policy` is reinitialized randomly and improved in place. The evaluated
    utility carries over from one iteration to the next.
    """
    if evaluation_sweeps <= 0:
        raise ValueError("`evaluation_sweeps` must be positive.")
    if actions is None:
        actions = _enumerate_all(action_generator)
    discount = clamp_discount(discount)
    initialize_random_policy(policy, states, action_generator, rng)
    evaluation = ValueIterationUpdate(
        utility.clone(), reward, transition, None, discount, policy=policy, is_terminal=is_terminal
    )

    iterations = 0
    changed = True
    while changed:
        for _ in range(evaluation_sweeps):
            result = evaluation.sweep(states.states())
            if not result.ok:
                raise result.error
        changed = improve_policy(
            policy, evaluation.utility, transition, actions, states, is_terminal=is_terminal
        )
        iterations += 1
        LOGGER.debug("Policy iteration %d, changed=%s", iterations, changed)
    LOGGER.info("Policy iteration converged after %d iterations.", iterations)
    return PolicyIterationResult(policy=policy, utility=evaluation.utility, iterations=iterations)


@gin.configurable
class PolicyIterationController(LearningController):
    """Solves the domain by modified policy iteration when initialized."""

    def __init__(
        self,
        domain: Domain,
        default_utility: float = 0.0,
        discount: float = 1.0,
        evaluation_sweeps: int = 5,
        train: bool = True,
        rng: RandomSource = DEFAULT_RNG,
    ) -> None:
        super().__init__(domain, train=train)
        self.default_utility = default_utility
        self.discount = discount
        self.evaluation_sweeps = evaluation_sweeps
        self.rng = rng
        self._policy = LookupPolicy()
        self._utility: Utility | None = None
        self._iterations = 0

    @property
    def is_online_learner(self) -> bool:
        return False

    def reset_start_state(self, start_state: State) -> None:
        return None

    def policy(self) -> Policy:
        return self._policy

    def utility(self) -> Utility | None:
        return self._utility

    def finished_learning(self) -> LearningStatus:
        return LearningStatus.OFFLINE_COMPLETE if self.initialized else LearningStatus.UNINITIALIZED

    def format_values(self) -> str:
        return "Learned policy:\n" + self._policy.format()

    def format_stats(self) -> str:
        return f"iterations: {self._iterations} policy size: {len(self._policy)}"

    def stats(self) -> Dict[str, float]:
        return {"iterations": float(self._iterations), "policy_size": float(len(self._policy))}

    def _initialize_impl(self, start_state: State) -> bool:
        return True

    def _learn_offline(self, start_state: State) -> bool:
        LOGGER.info("Start policy iteration.")
        result = policy_iteration(
            MappedUtility(self.default_utility),
            self._policy,
            self.domain.reward(),
            self.domain.transition(),
            self.domain.state_generator(),
            self.domain.action_generator(),
            self.discount,
            self.evaluation_sweeps,
            actions=self.domain.applicable_actions,
            is_terminal=self.domain.is_terminal_state,
            rng=self.rng,
        )
        self._utility = result.utility
        self._iterations = result.iterations
        return True

    def _get_best_action(self, state: State) -> Action:
        if not self.initialized:
            LOGGER.error("Can't get best action, because learning has not been successful.")
            return self.domain.action_generator().default_action()
        action = self._policy.get_action(state)
        if action is None:
            LOGGER.error("Could not get the best action for the state %s.", state)
            return self.domain.action_generator().default_action()
        return action
