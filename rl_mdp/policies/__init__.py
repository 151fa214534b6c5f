"""Policies, exploration functions and learning-rate schedules."""

from rl_mdp.policies.exploration import Exploration, NoExploration, SimpleExploration
from rl_mdp.policies.lookup import LookupPolicy, Policy
from rl_mdp.policies.schedules import DecayLearningRate, LearningRate
from rl_mdp.policies.selection import EpsilonGreedyPolicy, GreedyPolicy, first_best

__all__ = [
    "DecayLearningRate",
    "EpsilonGreedyPolicy",
    "Exploration",
    "GreedyPolicy",
    "LearningRate",
    "LookupPolicy",
    "NoExploration",
    "Policy",
    "SimpleExploration",
    "first_best",
]
