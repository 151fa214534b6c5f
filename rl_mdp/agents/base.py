"""Controller interface shared by offline planners and online learners."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import IntEnum
from typing import Dict

from rl_mdp.core.domain import Domain
from rl_mdp.core.errors import MDPError
from rl_mdp.core.types import Action, State
from rl_mdp.models.utility import Utility
from rl_mdp.policies.lookup import Policy

LOGGER = logging.getLogger(__name__)


class LearningStatus(IntEnum):
    UNINITIALIZED = -2
    NOT_CONVERGED = -1
    UNKNOWN = 0
    CONVERGED = 1
    OFFLINE_COMPLETE = 2


class LearningController(ABC):
    """Drives a learner from the states of a simulation.

    Offline learners (value and policy iteration) solve the domain's models in
    `initialize` and afterwards only look up their policy. Online learners
    (Q-learning) update their tables on every call to `update_and_get_action`.

    The controller borrows the domain and owns the tables it learns.
    """

    def __init__(self, domain: Domain, train: bool = True) -> None:
        self.domain = domain
        self.train = train
        self.initialized = False

    def initialize(self, start_state: State) -> bool:
        """Prepares the learner; offline learners solve the domain here.

        Domain consistency errors raised while solving propagate to the caller.
        """
        if not self._initialize_impl(start_state):
            LOGGER.error("Could not successfully initialize %s.", type(self).__name__)
            return False
        if self.train and not self._learn_offline(start_state):
            LOGGER.error("Offline learning of %s failed.", type(self).__name__)
            return False
        self.initialized = True
        return True

    def update_and_get_action(self, state: State) -> Action:
        if not self.initialized:
            LOGGER.error("%s used before initialization; returning the default action.", type(self).__name__)
            return self.domain.action_generator().default_action()
        if self.train:
            try:
                learned = self._learn_online(state)
            except MDPError:
                LOGGER.exception("Could not update the learning process at state %s.", state)
                raise
            if not learned:
                LOGGER.error("Could not update the learning process at state %s.", state)
            return self._get_best_action(state)
        return self.get_best_learned_action(state)

    def get_best_learned_action(self, state: State) -> Action:
        return self._get_best_action(state)

    def set_training(self, on: bool) -> None:
        self.train = on

    @property
    @abstractmethod
    def is_online_learner(self) -> bool:
        ...

    @abstractmethod
    def reset_start_state(self, start_state: State) -> None:
        """Forgets any link to the previously visited state."""

    @abstractmethod
    def policy(self) -> Policy | None:
        ...

    @abstractmethod
    def utility(self) -> Utility | None:
        ...

    @abstractmethod
    def finished_learning(self) -> LearningStatus:
        ...

    @abstractmethod
    def format_values(self) -> str:
        """Human-readable dump of the learned tables."""

    def format_stats(self) -> str:
        return "No stats implementation"

    def stats(self) -> Dict[str, float]:
        return {}

    @abstractmethod
    def _get_best_action(self, state: State) -> Action:
        ...

    def _learn_online(self, state: State) -> bool:
        return True

    def _learn_offline(self, start_state: State) -> bool:
        return True

    @abstractmethod
    def _initialize_impl(self, start_state: State) -> bool:
        ...
