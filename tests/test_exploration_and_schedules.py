from __future__ import annotations

import pytest

from rl_mdp.core.types import ActionValue
from rl_mdp.policies import DecayLearningRate, LearningRate, NoExploration, SimpleExploration
from rl_mdp.policies.selection import EpsilonGreedyPolicy, GreedyPolicy, first_best


class ScriptedRng:
    def __init__(self, draw: float) -> None:
        self.draw = draw
        self.choices = 0

    def uniform(self) -> float:
        return self.draw

    def choice(self, items):
        self.choices += 1
        return items[-1]


def test_simple_exploration_is_optimistic_below_threshold() -> None:
    exploration = SimpleExploration(frequency_threshold=3, max_reward=2.0)
    assert exploration.estimated_reward(0.5, 0) == 2.0
    assert exploration.estimated_reward(0.5, 2) == 2.0
    assert exploration.estimated_reward(0.5, 3) == 0.5
    assert NoExploration().estimated_reward(0.5, 0) == 0.5


def test_constant_learning_rate_is_clamped() -> None:
    assert LearningRate(0.3).rate(100) == 0.3
    assert LearningRate(1.5).rate(0) == 1.0
    assert LearningRate(-0.2).rate(0) == 0.0


def test_decay_learning_rate_follows_harmonic_schedule() -> None:
    schedule = DecayLearningRate()
    assert schedule.rate(0) == pytest.approx(0.99)
    assert schedule.rate(10) == pytest.approx(0.99 / (1 + 0.99 * 0.1 * 10))
    assert schedule.rate(1000) < schedule.rate(10)
    assert DecayLearningRate(initial_value=0.5, decay=0.0).rate(1000) == 0.5


def test_first_best_breaks_ties_by_order() -> None:
    candidates = [ActionValue("a", 1.0), ActionValue("b", 2.0), ActionValue("c", 2.0)]
    assert first_best(candidates).action == "b"
    with pytest.raises(ValueError):
        first_best([])


def test_epsilon_greedy_explores_below_epsilon() -> None:
    candidates = [ActionValue("a", 1.0), ActionValue("b", 0.0)]
    policy = EpsilonGreedyPolicy(epsilon=0.3)

    greedy_rng = ScriptedRng(0.5)
    assert policy.select(greedy_rng, candidates) == ("a", {"exploratory": 0.0})
    assert greedy_rng.choices == 0

    exploring_rng = ScriptedRng(0.1)
    assert policy.select(exploring_rng, candidates) == ("b", {"exploratory": 1.0})
    assert exploring_rng.choices == 1

    assert GreedyPolicy().select(exploring_rng, candidates)[0] == "a"


def test_decay_learning_rate_rejects_negative_decay() -> None:
    with pytest.raises(ValueError, match="decay"):
        DecayLearningRate(initial_value=1.0, decay=-0.1)
    assert DecayLearningRate(initial_value=1.5, decay=0.0).rate(3) == 1.0
