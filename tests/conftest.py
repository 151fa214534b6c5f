from __future__ import annotations

import pytest

from rl_mdp.core.rng import RandomSource
from rl_mdp.environments import GridDomain, Move, TabularDomain

CHAIN_LENGTH = 5


@pytest.fixture(autouse=True)
def _allow_mlflow_file_store(monkeypatch: pytest.MonkeyPatch) -> None:
    """mlflow>=3 refuses file:// tracking stores unless explicitly allowed."""
    monkeypatch.setenv("MLFLOW_ALLOW_FILE_STORE", "true")


def make_chain(step_reward: float = -0.1, goal_reward: float = 1.0) -> TabularDomain:
    """Deterministic corridor 0..4; `right` moves towards the terminal goal at 4."""
    goal = CHAIN_LENGTH - 1
    transitions = {}
    for state in range(goal):
        transitions[(state, "left")] = {max(state - 1, 0): 1.0}
        transitions[(state, "right")] = {state + 1: 1.0}
    return TabularDomain(
        states=range(CHAIN_LENGTH),
        actions=["left", "right"],
        transitions=transitions,
        rewards={goal: goal_reward},
        default_reward=step_reward,
        terminal_states=[goal],
        start_state=0,
    )


@pytest.fixture
def chain() -> TabularDomain:
    return make_chain()


@pytest.fixture
def grid() -> GridDomain:
    return GridDomain()


@pytest.fixture
def rng() -> RandomSource:
    return RandomSource(seed=1234)


@pytest.fixture
def optimal_grid_policy() -> dict[tuple[int, int], Move]:
    """Optimal moves of the default grid world for a step reward of -0.04."""
    return {
        (0, 0): Move.UP,
        (1, 0): Move.LEFT,
        (2, 0): Move.LEFT,
        (3, 0): Move.LEFT,
        (0, 1): Move.UP,
        (2, 1): Move.UP,
        (0, 2): Move.RIGHT,
        (1, 2): Move.RIGHT,
        (2, 2): Move.RIGHT,
    }
