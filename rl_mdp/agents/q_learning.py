"""Classical tabular Q-learning over sparse, state-keyed tables."""

from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Dict, Iterator

import gin
import numpy as np

from rl_mdp.agents.base import LearningController, LearningStatus
from rl_mdp.agents.value_iteration import clamp_discount
from rl_mdp.core.domain import Domain
from rl_mdp.core.errors import UpdateResult
from rl_mdp.core.floats import MACHINE_EPSILON
from rl_mdp.core.rng import DEFAULT_RNG, RandomSource
from rl_mdp.core.types import Action, ActionValue, State, StateActionPair
from rl_mdp.models.transition import LearnableTransitionMap
from rl_mdp.models.utility import Utility
from rl_mdp.policies.exploration import Exploration, NoExploration
from rl_mdp.policies.lookup import LookupPolicy, Policy
from rl_mdp.policies.schedules import DecayLearningRate, LearningRate
from rl_mdp.policies.selection import (
    ActionSelectionPolicy,
    EpsilonGreedyPolicy,
    GreedyPolicy,
    first_best,
)

LOGGER = logging.getLogger(__name__)


@gin.configurable
class QLearningController(LearningController):
    """Standard off-policy Q-learning driven by the states of a simulation.

    Every call to `update_and_get_action` updates the Q-value of the previous
    state/action pair with the reward of the newly observed state and picks
    the next action epsilon-greedily over exploration-adjusted values.
    """

    def __init__(
        self,
        domain: Domain,
        learning_rate: LearningRate | None = None,
        discount: float = 1.0,
        default_q: float = 0.0,
        exploration: Exploration | None = None,
        epsilon_greedy: float = 0.1,
        train: bool = True,
        learn_transition: bool = False,
        average_window: int | None = 10000,
        rng: RandomSource = DEFAULT_RNG,
    ) -> None:
        super().__init__(domain, train=train)
        self.learning_rate = learning_rate if learning_rate is not None else DecayLearningRate()
        self.discount = clamp_discount(discount)
        self.default_q = float(default_q)
        self.exploration = exploration if exploration is not None else NoExploration()
        self._epsilon = float(epsilon_greedy)
        self.selection: ActionSelectionPolicy = (
            EpsilonGreedyPolicy(epsilon=self._epsilon) if self._epsilon > 0.0 else GreedyPolicy()
        )
        self.rng = rng

        self._q: Dict[State, Dict[Action, float]] = {}
        self._frequencies: Dict[StateActionPair, int] = {}
        self._last_state: State | None = None
        self._last_action: Action | None = None
        self._last_reward = 0.0

        self._transition = LearnableTransitionMap() if learn_transition else None
        self._changes: Deque[float] | None = (
            deque(maxlen=average_window) if average_window else None
        )

    @property
    def epsilon_greedy(self) -> float:
        return self._epsilon

    @property
    def is_online_learner(self) -> bool:
        return True

    @property
    def last_state(self) -> State | None:
        return self._last_state

    @property
    def last_action(self) -> Action | None:
        return self._last_action

    @property
    def last_reward(self) -> float:
        return self._last_reward

    def q_value(self, state: State, action: Action) -> float:
        return self._q.get(state, {}).get(action, self.default_q)

    def has_q_value(self, state: State, action: Action) -> bool:
        return action in self._q.get(state, {})

    def frequency(self, state: State, action: Action) -> int:
        return self._frequencies.get(StateActionPair(state, action), 0)

    def learned_transition(self) -> LearnableTransitionMap | None:
        return self._transition

    def average_change(self) -> float:
        if not self._changes:
            return 0.0
        return float(np.mean(self._changes))

    def update(self, state: State, reward: float) -> UpdateResult:
        """Learns from arriving in `state` with `reward` and selects the next action."""
        result = UpdateResult()
        if self._last_state is not None:
            if self._transition is not None:
                learned = self._transition.experience_transition(
                    self._last_state, self._last_action, state
                )
                if not learned.ok:
                    return learned
            result.q_change = self._update_q_table(state, reward)

        if self.domain.is_terminal_state(state):
            self._last_state = None
            self._last_reward = 0.0
            return result

        candidates = [
            ActionValue(
                action,
                self.exploration.estimated_reward(
                    self.q_value(state, action), self.frequency(state, action)
                ),
            )
            for action in self.domain.applicable_actions(state)
        ]
        if not candidates:
            message = f"No actions were applicable in state {state}; resetting the episode link."
            LOGGER.warning(message)
            result.warnings.append(message)
            self._last_state = None
            return result

        action, _ = self.selection.select(self.rng, candidates)
        self._last_state = state
        self._last_action = action
        self._last_reward = reward
        return result

    def _update_q_table(self, state: State, reward: float) -> float:
        pair = StateActionPair(self._last_state, self._last_action)
        visits = self._frequencies.get(pair, 0) + 1
        self._frequencies[pair] = visits

        rate = self.learning_rate.rate(visits - 1)
        if rate < MACHINE_EPSILON:
            self._record_change(0.0)
            return 0.0

        if self.domain.is_terminal_state(state):
            best_q = 0.0
        else:
            values = [self.q_value(state, action) for action in self.domain.applicable_actions(state)]
            if values:
                best_q = max(values)
            else:
                LOGGER.warning("No actions were applicable in state %s.", state)
                best_q = self.default_q

        target = reward + self.discount * best_q
        old_q = self.q_value(pair.state, pair.action)
        change = rate * (target - old_q)
        self._q.setdefault(pair.state, {})[pair.action] = old_q + change
        self._record_change(change)
        return change

    def _record_change(self, change: float) -> None:
        if self._changes is not None:
            self._changes.append(change)

    def _max_q_entry(self, state: State) -> ActionValue | None:
        entries = self._q.get(state)
        if not entries:
            return None
        return first_best([ActionValue(a, v) for a, v in sorted(entries.items())])

    def get_best_learned_action(self, state: State) -> Action:
        best = self._max_q_entry(state)
        if best is None:
            LOGGER.warning("There is no action learned for state %s. Choosing random action.", state)
            return self.domain.action_generator().random_action(self.rng)
        return best.action

    def learned_policy(self) -> LookupPolicy:
        policy = LookupPolicy()
        for state in sorted(self._q):
            best = self._max_q_entry(state)
            if best is not None:
                policy.best_action(state, best.action)
        return policy

    def policy(self) -> Policy:
        return self.learned_policy()

    def utility(self) -> Utility | None:
        return None

    def reset_start_state(self, start_state: State) -> None:
        self._last_state = None

    def finished_learning(self) -> LearningStatus:
        return LearningStatus.UNKNOWN if self.initialized else LearningStatus.UNINITIALIZED

    def q_items(self) -> Iterator[tuple[State, Action, float]]:
        for state in sorted(self._q):
            for action, value in sorted(self._q[state].items()):
                yield state, action, value

    def format_values(self) -> str:
        lines = []
        if self._transition is not None:
            lines.append("## Learned transition:")
            lines.append(self._transition.format())
        lines.append("## Trials:")
        for pair in sorted(self._frequencies):
            lines.append(f"{pair} : {self._frequencies[pair]}")
        lines.append("## Q-Table:")
        for state, action, value in self.q_items():
            lines.append(f"{state} / Action={action}, value={value}")
        lines.append("")
        lines.append("## Current policy:")
        lines.append(self.learned_policy().format())
        return "\n".join(lines)

    def format_stats(self) -> str:
        text = f"size of q-table: {len(self._q)}"
        if self._changes is not None:
            text += (
                f" average q-change in the last {self._changes.maxlen} updates: "
                f"{self.average_change()}"
            )
        return text

    def stats(self) -> Dict[str, float]:
        metrics = {
            "q_table_size": float(len(self._q)),
            "visited_pairs": float(len(self._frequencies)),
        }
        if self._changes is not None:
            metrics["average_q_change"] = self.average_change()
        return metrics

    def _initialize_impl(self, start_state: State) -> bool:
        return True

    def _learn_online(self, state: State) -> bool:
        reward = self.domain.reward().reward(state)
        result = self.update(state, reward)
        result.raise_for_error()
        return True

    def _get_best_action(self, state: State) -> Action:
        if self._last_action is None:
            return self.domain.action_generator().default_action()
        return self._last_action
