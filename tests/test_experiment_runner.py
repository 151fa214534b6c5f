from __future__ import annotations

from typing import Any, Dict, List

import pytest

from rl_mdp.agents.base import LearningController, LearningStatus
from rl_mdp.experiment import ExperimentConfig, ExperimentRunner, flatten_params


class DummyController(LearningController):
    def __init__(self, domain, action: str = "right", *, online: bool = True, init_ok: bool = True) -> None:
        super().__init__(domain)
        self.action = action
        self.online = online
        self.init_ok = init_ok
        self.seen: List[Any] = []
        self.resets: List[Any] = []

    @property
    def is_online_learner(self) -> bool:
        return self.online

    def reset_start_state(self, start_state: Any) -> None:
        self.resets.append(start_state)

    def policy(self):
        return None

    def utility(self):
        return None

    def finished_learning(self) -> LearningStatus:
        return LearningStatus.UNKNOWN

    def format_values(self) -> str:
        return f"always {self.action}"

    def stats(self) -> Dict[str, float]:
        return {"calls": float(len(self.seen))}

    def _get_best_action(self, state: Any) -> str:
        self.seen.append(state)
        return self.action

    def _initialize_impl(self, start_state: Any) -> bool:
        return self.init_ok


class RecordingTracker:
    def __init__(self) -> None:
        self.started: List[tuple[str, Dict[str, Any]]] = []
        self.logged_metrics: List[tuple[Dict[str, Any], int]] = []
        self.texts: Dict[str, str] = {}
        self.flush_calls = 0
        self.ended: List[str] = []

    def start_run(self, run_name: str, params: Dict[str, Any]) -> None:
        self.started.append((run_name, dict(params)))

    def log_metrics(self, metrics: Dict[str, Any], step: int) -> None:
        self.logged_metrics.append((dict(metrics), step))

    def log_params(self, params: Dict[str, Any]) -> None:  # pragma: no cover - not used
        return None

    def log_text(self, text: str, artifact_file: str) -> None:
        self.texts[artifact_file] = text

    def flush(self) -> None:
        self.flush_calls += 1

    def end_run(self, status: str) -> None:
        self.ended.append(status)


def test_experiment_runner_collects_trials(chain, rng) -> None:
    controller = DummyController(chain)
    config = ExperimentConfig(name="dummy_experiment", num_trials=3, max_steps_per_trial=10, log_every=1)
    tracker = RecordingTracker()
    runner = ExperimentRunner(controller, chain, config, tracker=tracker, rng=rng)

    results = runner.run()

    assert len(results) == config.num_trials
    assert tracker.started[0][0] == "dummy_experiment_seed0"
    assert tracker.ended == ["FINISHED"]
    assert tracker.flush_calls == 1
    assert tracker.texts["values.txt"] == "always right"

    first = results[0]
    assert first.phase == "train"
    assert first.start_state == 0
    assert first.length == 4
    assert first.terminated
    assert first.total_reward == pytest.approx(0.6)
    for stats in results:
        assert stats.terminated
        assert "train/trial_reward" in stats.metrics
        assert "train/calls" in stats.metrics
    assert [step for _, step in tracker.logged_metrics] == [1, 2, 3]


def test_later_trials_start_from_non_terminal_states(chain, rng) -> None:
    controller = DummyController(chain)
    config = ExperimentConfig(num_trials=20, max_steps_per_trial=10)
    results = ExperimentRunner(controller, chain, config, rng=rng).run()

    assert all(trial.start_state != 4 for trial in results)
    assert len(controller.resets) == 20


def test_trials_are_truncated(chain, rng) -> None:
    controller = DummyController(chain, action="left")
    config = ExperimentConfig(num_trials=1, max_steps_per_trial=3)

    (trial,) = ExperimentRunner(controller, chain, config, rng=rng).run()

    assert not trial.terminated
    assert trial.length == 3
    assert trial.total_reward == pytest.approx(-0.4)


def test_offline_learners_only_run_evaluation_trials(chain, rng) -> None:
    controller = DummyController(chain, online=False)
    config = ExperimentConfig(num_trials=50, num_eval_trials=2, max_steps_per_trial=10)

    results = ExperimentRunner(controller, chain, config, rng=rng).run()

    assert [trial.phase for trial in results] == ["eval", "eval"]
    assert not controller.train


def test_failed_initialization_ends_run_as_failed(chain, rng) -> None:
    tracker = RecordingTracker()
    controller = DummyController(chain, init_ok=False)
    runner = ExperimentRunner(controller, chain, ExperimentConfig(num_trials=1), tracker=tracker, rng=rng)

    with pytest.raises(RuntimeError):
        runner.run()

    assert tracker.ended == ["FAILED"]
    assert "values.txt" not in tracker.texts


def test_controller_metadata_logged_for_tracking(chain, rng) -> None:
    tracker = RecordingTracker()
    config = ExperimentConfig(name="metadata_experiment", num_trials=1, max_steps_per_trial=1)
    controller_metadata = {
        "name": "test_controller",
        "params": {
            "alpha": 0.1,
            "schedule": [1, 2],
            "seed": None,
        },
    }
    domain_metadata = {"name": "chain", "params": {"num_states": 5, "num_actions": 2}}

    runner = ExperimentRunner(
        DummyController(chain),
        chain,
        config,
        tracker=tracker,
        controller_metadata=controller_metadata,
        domain_metadata=domain_metadata,
        rng=rng,
    )
    runner.run()

    assert tracker.started, "Tracker did not record any runs."
    _, params = tracker.started[0]
    assert params["controller.name"] == "test_controller"
    assert params["controller.params.alpha"] == "0.1"
    assert params["controller.params.schedule[1]"] == "2"
    assert params["controller.params.seed"] == "None"
    assert params["controller.python_class"].endswith("DummyController")
    assert params["domain.name"] == "chain"
    assert params["domain.params.num_states"] == "5"
    assert params["domain.python_class"].endswith("TabularDomain")
    assert params["experiment.name"] == "metadata_experiment"
    assert params["experiment.max_steps_per_trial"] == "1"


def test_flatten_params_handles_nested_values() -> None:
    assert flatten_params("", {"a": {"b": [1, {"c": True}]}}) == {"a.b[0]": "1", "a.b[1].c": "True"}


def test_config_rejects_invalid_counts() -> None:
    with pytest.raises(ValueError):
        ExperimentConfig(num_trials=-1)
    with pytest.raises(ValueError):
        ExperimentConfig(max_steps_per_trial=0)
