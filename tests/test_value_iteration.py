from __future__ import annotations

import pytest

from rl_mdp.agents import LearningStatus, ValueIterationController, generate_policy, value_iteration
from rl_mdp.agents.value_iteration import ValueIterationUpdate, clamp_discount, stopping_bound
from rl_mdp.core.errors import MissingPolicyEntryError, NoApplicableActionError
from rl_mdp.core.floats import MACHINE_EPSILON
from rl_mdp.environments import GridWorldState, Move, TabularDomain
from rl_mdp.models import MappedUtility
from rl_mdp.policies import LookupPolicy


def _solve(domain, discount: float = 1.0, max_error: float = 0.01, deltas=None):
    return value_iteration(
        MappedUtility(0.0),
        domain.reward(),
        domain.transition(),
        domain.applicable_actions,
        domain.state_generator(),
        discount,
        max_error,
        is_terminal=domain.is_terminal_state,
        deltas=deltas,
    )


def test_discount_is_clamped_below_one() -> None:
    assert clamp_discount(1.0) == 1.0 - MACHINE_EPSILON
    assert clamp_discount(-0.5) == 0.0
    assert clamp_discount(0.9) == 0.9
    assert stopping_bound(0.01, 0.0) == float("inf")
    assert stopping_bound(0.01, 0.5) == pytest.approx(0.01)


def test_grid_utilities_match_reference_values(grid) -> None:
    utility = _solve(grid)

    assert utility.utility(GridWorldState(2, 2)) == pytest.approx(0.918, abs=0.01)
    assert utility.utility(GridWorldState(0, 0)) == pytest.approx(0.705, abs=0.01)
    assert utility.utility(GridWorldState(3, 2)) == 1.0
    assert utility.utility(GridWorldState(3, 1)) == -1.0


def test_grid_policy_is_optimal(grid, optimal_grid_policy) -> None:
    utility = _solve(grid)
    policy = generate_policy(
        utility,
        grid.transition(),
        grid.applicable_actions,
        grid.state_generator(),
        is_terminal=grid.is_terminal_state,
    )

    assert {(s.x, s.y): a for s, a in policy.items()} == optimal_grid_policy


def test_sweep_deltas_do_not_increase(grid) -> None:
    deltas: list[float] = []
    _solve(grid, discount=0.9, deltas=deltas)

    assert len(deltas) > 1
    for previous, current in zip(deltas, deltas[1:]):
        assert current <= previous + 1e-12
    assert deltas[-1] <= stopping_bound(0.01, 0.9)


def test_zero_discount_returns_rewards_after_one_sweep(grid) -> None:
    deltas: list[float] = []
    utility = _solve(grid, discount=0.0, deltas=deltas)

    assert len(deltas) == 1
    for state in grid.state_generator():
        assert utility.utility(state) == grid.reward().reward(state)


def test_input_utility_is_not_modified(chain) -> None:
    initial = MappedUtility(0.0)
    value_iteration(
        initial,
        chain.reward(),
        chain.transition(),
        chain.applicable_actions,
        chain.state_generator(),
        1.0,
        0.001,
        is_terminal=chain.is_terminal_state,
    )
    assert len(initial) == 0


def test_chain_utilities_count_steps_to_goal(chain) -> None:
    utility = _solve(chain, max_error=0.0001)
    for state, expected in enumerate([0.6, 0.7, 0.8, 0.9, 1.0]):
        assert utility.utility(state) == pytest.approx(expected, abs=1e-4)


def test_non_terminal_state_without_actions_raises() -> None:
    domain = TabularDomain(
        states=["dead", "goal"],
        actions=["go"],
        transitions={},
        rewards={"goal": 1.0},
        terminal_states=["goal"],
    )
    with pytest.raises(NoApplicableActionError):
        _solve(domain)


def test_policy_sweep_reports_missing_entry(chain) -> None:
    update = ValueIterationUpdate(
        MappedUtility(0.0),
        chain.reward(),
        chain.transition(),
        None,
        0.9,
        policy=LookupPolicy(),
        is_terminal=chain.is_terminal_state,
    )
    result = update.sweep(chain.state_generator().states())

    assert not result.ok
    assert isinstance(result.error, MissingPolicyEntryError)


def test_controller_solves_on_initialize(grid) -> None:
    controller = ValueIterationController(grid)
    assert controller.policy() is None
    assert controller.finished_learning() == LearningStatus.UNINITIALIZED

    assert controller.initialize(grid.start_state())

    assert controller.finished_learning() == LearningStatus.OFFLINE_COMPLETE
    assert not controller.is_online_learner
    assert controller.update_and_get_action(GridWorldState(2, 1)) == Move.UP
    assert controller.policy().get_action(GridWorldState(0, 2)) == Move.RIGHT
    assert controller.format_values().startswith("Policy:\n")
    assert controller.stats()["sweeps"] >= 1


def test_negative_max_error_is_rejected(grid) -> None:
    with pytest.raises(ValueError, match="max_error"):
        _solve(grid, discount=0.9, max_error=-0.01)
    with pytest.raises(ValueError, match="max_error"):
        ValueIterationController(grid, discount=0.9, max_error=-0.01)
