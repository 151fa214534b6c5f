"""Controllers solving or learning a domain."""

from rl_mdp.agents.base import LearningController, LearningStatus
from rl_mdp.agents.max_utility import MaxUtilityResult, expected_utility, max_utility_action
from rl_mdp.agents.policy_iteration import PolicyIterationController, policy_iteration
from rl_mdp.agents.q_learning import QLearningController
from rl_mdp.agents.value_iteration import ValueIterationController, generate_policy, value_iteration

__all__ = [
    "LearningController",
    "LearningStatus",
    "MaxUtilityResult",
    "PolicyIterationController",
    "QLearningController",
    "ValueIterationController",
    "expected_utility",
    "generate_policy",
    "max_utility_action",
    "policy_iteration",
    "value_iteration",
]
