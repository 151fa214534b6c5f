"""Value iteration over a domain's known transition and reward models."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List

import gin

from rl_mdp.agents.base import LearningController, LearningStatus
from rl_mdp.agents.max_utility import expected_utility, max_utility_action
from rl_mdp.core.domain import Domain
from rl_mdp.core.errors import DomainConsistencyError, MissingPolicyEntryError, NoApplicableActionError
from rl_mdp.core.floats import MACHINE_EPSILON
from rl_mdp.core.generators import StateGenerator
from rl_mdp.core.types import Action, State
from rl_mdp.models.reward import Reward
from rl_mdp.models.transition import Transition
from rl_mdp.models.utility import MappedUtility, Utility
from rl_mdp.policies.lookup import LookupPolicy, Policy

LOGGER = logging.getLogger(__name__)

ActionsFn = Callable[[State], Iterable[Action]]
TerminalFn = Callable[[State], bool]


def clamp_discount(discount: float) -> float:
    """Clamps `discount` into `[0, 1 - eps]` so that `(1 - discount)` never vanishes."""
    if discount >= 1.0:
        return 1.0 - MACHINE_EPSILON
    if discount < 0.0:
        return 0.0
    return float(discount)


def stopping_bound(max_error: float, discount: float) -> float:
    """Largest sweep delta that guarantees a utility error below `max_error`."""
    if discount == 0.0:
        return math.inf
    return max_error * (1.0 - discount) / discount


def never_terminal(state: State) -> bool:
    return False


@dataclass(slots=True)
class SweepResult:
    delta: float = 0.0
    error: DomainConsistencyError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ValueIterationUpdate:
    """One double-buffered Bellman sweep.

    Reads go to `utility`, writes to a shadow clone that replaces it once the
    sweep is complete. With a `policy` the sweep evaluates the policy's fixed
    action per state instead of maximising over actions.
    """

    def __init__(
        self,
        utility: Utility,
        reward: Reward,
        transition: Transition,
        actions: ActionsFn | None,
        discount: float,
        *,
        policy: Policy | None = None,
        is_terminal: TerminalFn = never_terminal,
    ) -> None:
        if actions is None and policy is None:
            raise ValueError("Either `actions` or `policy` must be provided.")
        self.utility = utility
        self.reward = reward
        self.transition = transition
        self.actions = actions
        self.policy = policy
        self.discount = discount
        self.is_terminal = is_terminal

    def sweep(self, states: Iterable[State]) -> SweepResult:
        shadow = self.utility.clone()
        delta = 0.0
        for state in states:
            value, error = self._backup(state)
            if error is not None:
                return SweepResult(delta=delta, error=error)
            shadow.experience_utility(state, value)
            delta = max(delta, abs(value - self.utility.utility(state)))
        self.utility = shadow
        return SweepResult(delta=delta)

    def _backup(self, state: State) -> tuple[float, DomainConsistencyError | None]:
        reward = self.reward.reward(state)
        if self.policy is not None:
            action = self.policy.get_action(state)
            if action is None:
                return 0.0, MissingPolicyEntryError(state)
            if self.is_terminal(state):
                return reward, None
            evaluated = expected_utility(self.utility, self.transition, state, action)
            if evaluated is None:
                return reward, None
            return reward + self.discount * evaluated[0], None

        if self.is_terminal(state):
            return reward, None
        result = max_utility_action(self.utility, self.transition, state, self.actions(state))
        if result.error is not None:
            return 0.0, result.error
        if result.best is None:
            return 0.0, NoApplicableActionError(state)
        return reward + self.discount * result.best.value, None


def value_iteration(
    utility: Utility,
    reward: Reward,
    transition: Transition,
    actions: ActionsFn,
    states: StateGenerator,
    discount: float,
    max_error: float,
    *,
    is_terminal: TerminalFn = never_terminal,
    deltas: List[float] | None = None,
) -> Utility:
    """Runs Bellman sweeps until the sweep delta drops below the error bound.

    Returns the converged utility table; `utility` itself is left untouched.
    Per-sweep deltas are appended to `deltas` when given.
    """
    if max_error < 0.0:
        raise ValueError("`max_error` must be non-negative.")
    discount = clamp_discount(discount)
    min_delta = stopping_bound(max_error, discount)
    LOGGER.info(
        "Starting value iteration with discount=%s, max_error=%s, min_delta=%s",
        discount,
        max_error,
        min_delta,
    )
    update = ValueIterationUpdate(
        utility.clone(), reward, transition, actions, discount, is_terminal=is_terminal
    )
    sweeps = 0
    while True:
        result = update.sweep(states.states())
        if not result.ok:
            raise result.error
        sweeps += 1
        if deltas is not None:
            deltas.append(result.delta)
        LOGGER.debug("Finished sweep %d, delta=%s", sweeps, result.delta)
        if result.delta <= min_delta:
            break
    LOGGER.info("Value iteration converged after %d sweeps.", sweeps)
    return update.utility


def generate_policy(
    utility: Utility,
    transition: Transition,
    actions: ActionsFn,
    states: StateGenerator,
    *,
    is_terminal: TerminalFn = never_terminal,
) -> LookupPolicy:
    """Greedy policy with respect to `utility`; terminal states get no entry."""
    policy = LookupPolicy()
    for state in states.states():
        if is_terminal(state):
            continue
        best = max_utility_action(utility, transition, state, actions(state)).unwrap()
        if best is None:
            raise NoApplicableActionError(state)
        policy.best_action(state, best.action)
    return policy


@gin.configurable
class ValueIterationController(LearningController):
    """Solves the domain by value iteration when initialized."""

    def __init__(
        self,
        domain: Domain,
        default_utility: float = 0.0,
        discount: float = 1.0,
        max_error: float = 0.01,
        train: bool = True,
    ) -> None:
        if max_error < 0.0:
            raise ValueError("`max_error` must be non-negative.")
        super().__init__(domain, train=train)
        self._utility: Utility = MappedUtility(default_utility)
        self.discount = discount
        self.max_error = max_error
        self._policy: LookupPolicy | None = None
        self._deltas: list[float] = []

    @property
    def is_online_learner(self) -> bool:
        return False

    def reset_start_state(self, start_state: State) -> None:
        return None

    def policy(self) -> Policy | None:
        if not self.initialized:
            LOGGER.error("Can't get policy, because learning has not been successful.")
            return None
        if self._policy is None:
            self._policy = generate_policy(
                self._utility,
                self.domain.transition(),
                self.domain.applicable_actions,
                self.domain.state_generator(),
                is_terminal=self.domain.is_terminal_state,
            )
        return self._policy

    def utility(self) -> Utility:
        return self._utility

    def finished_learning(self) -> LearningStatus:
        return LearningStatus.OFFLINE_COMPLETE if self.initialized else LearningStatus.UNINITIALIZED

    def format_values(self) -> str:
        policy = self.policy()
        if policy is None:
            return ""
        return "Policy:\n" + policy.format()

    def format_stats(self) -> str:
        if not self._deltas:
            return "No sweeps performed"
        return f"sweeps: {len(self._deltas)} final delta: {self._deltas[-1]}"

    def stats(self) -> Dict[str, float]:
        if not self._deltas:
            return {}
        return {"sweeps": float(len(self._deltas)), "final_delta": float(self._deltas[-1])}

    def _initialize_impl(self, start_state: State) -> bool:
        LOGGER.info("Value iteration initialized.")
        return True

    def _learn_offline(self, start_state: State) -> bool:
        LOGGER.info("Starting offline learning of value iteration.")
        self._deltas = []
        self._utility = value_iteration(
            self._utility,
            self.domain.reward(),
            self.domain.transition(),
            self.domain.applicable_actions,
            self.domain.state_generator(),
            self.discount,
            self.max_error,
            is_terminal=self.domain.is_terminal_state,
            deltas=self._deltas,
        )
        self._policy = None
        return True

    def _get_best_action(self, state: State) -> Action:
        if not self.initialized:
            LOGGER.error("Can't get best action, because learning has not been successful.")
            return self.domain.action_generator().default_action()
        best = max_utility_action(
            self._utility, self.domain.transition(), state, self.domain.applicable_actions(state)
        ).unwrap()
        if best is None:
            return self.domain.action_generator().default_action()
        return best.action
