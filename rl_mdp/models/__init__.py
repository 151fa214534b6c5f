"""Transition, reward and utility models."""

from rl_mdp.models.reward import Reward, SelectedReward
from rl_mdp.models.transition import FixedTransition, LearnableTransitionMap, Transition, TransitionMap
from rl_mdp.models.utility import MappedUtility, Utility

__all__ = [
    "FixedTransition",
    "LearnableTransitionMap",
    "MappedUtility",
    "Reward",
    "SelectedReward",
    "Transition",
    "TransitionMap",
    "Utility",
]
