"""Simulation loop driving a controller through trials of a domain."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping

import gin
import numpy as np

from rl_mdp.agents.base import LearningController
from rl_mdp.core.domain import Domain
from rl_mdp.core.rng import DEFAULT_RNG, RandomSource
from rl_mdp.core.types import State
from rl_mdp.tracking.base import NullTracker, Tracker

LOGGER = logging.getLogger(__name__)


@gin.configurable
@dataclass(slots=True)
class ExperimentConfig:
    """How many trials to run and how often to report them."""

    name: str = "gridworld"
    num_trials: int = 10000
    max_steps_per_trial: int = 1000
    num_eval_trials: int = 0
    log_every: int = 100
    seed: int = 0

    def __post_init__(self) -> None:
        if self.num_trials < 0 or self.num_eval_trials < 0:
            raise ValueError("Trial counts must be non-negative.")
        if self.max_steps_per_trial <= 0:
            raise ValueError("`max_steps_per_trial` must be positive.")
        if self.log_every <= 0:
            raise ValueError("`log_every` must be positive.")


@dataclass(slots=True)
class TrialStats:
    """Outcome of one trial from its start state to a terminal state or truncation."""

    index: int
    phase: str
    start_state: State
    total_reward: float
    length: int
    terminated: bool
    metrics: Dict[str, float] = field(default_factory=dict)


def flatten_params(prefix: str, value: Any) -> Dict[str, str]:
    """Flattens nested metadata into `a.b[0].c`-style keys with string values."""
    flat: Dict[str, str] = {}
    if isinstance(value, Mapping):
        for key, item in value.items():
            flat.update(flatten_params(f"{prefix}.{key}" if prefix else str(key), item))
    elif isinstance(value, (list, tuple)):
        for idx, item in enumerate(value):
            flat.update(flatten_params(f"{prefix}[{idx}]", item))
    else:
        flat[prefix] = str(value)
    return flat


def _python_class(obj: object) -> str:
    cls = type(obj)
    return f"{cls.__module__}.{cls.__qualname__}"


class ExperimentRunner:
    """Runs training trials for online learners, then greedy evaluation trials.

    A trial ends when the controller has been shown a terminal state or after
    `max_steps_per_trial` transitions. Every following trial starts from a
    uniformly drawn non-terminal state.
    """

    def __init__(
        self,
        controller: LearningController,
        domain: Domain,
        config: ExperimentConfig,
        *,
        tracker: Tracker | None = None,
        controller_metadata: Mapping[str, Any] | None = None,
        domain_metadata: Mapping[str, Any] | None = None,
        experiment_metadata: Mapping[str, Any] | None = None,
        rng: RandomSource = DEFAULT_RNG,
    ) -> None:
        self.controller = controller
        self.domain = domain
        self.config = config
        self.tracker = tracker or NullTracker()
        self.controller_metadata = dict(controller_metadata or {})
        self.domain_metadata = dict(domain_metadata or {})
        self.experiment_metadata = dict(experiment_metadata or asdict(config))
        self.rng = rng

    def run_params(self) -> Dict[str, str]:
        params: Dict[str, str] = {}
        params.update(flatten_params("controller", self.controller_metadata))
        params["controller.python_class"] = _python_class(self.controller)
        params.update(flatten_params("domain", self.domain_metadata))
        params["domain.python_class"] = _python_class(self.domain)
        params.update(flatten_params("experiment", self.experiment_metadata))
        return params

    def run(self) -> List[TrialStats]:
        run_name = f"{self.config.name}_seed{self.config.seed}"
        self.tracker.start_run(run_name=run_name, params=self.run_params())
        status = "FAILED"
        try:
            results = self._run_trials()
            self.tracker.log_text(self.controller.format_values(), "values.txt")
            status = "FINISHED"
            return results
        finally:
            self.tracker.flush()
            self.tracker.end_run(status=status)

    def _run_trials(self) -> List[TrialStats]:
        start = self.domain.start_state()
        if not self.controller.initialize(start):
            raise RuntimeError(f"Could not initialize {type(self.controller).__name__}.")

        results: List[TrialStats] = []
        if self.controller.is_online_learner:
            self.controller.set_training(True)
            results.extend(self._run_phase("train", self.config.num_trials, start))
            start = self._random_start()
            self.controller.reset_start_state(start)

        if self.config.num_eval_trials > 0:
            self.controller.set_training(False)
            results.extend(self._run_phase("eval", self.config.num_eval_trials, start))

        LOGGER.info("%s: %s", type(self.controller).__name__, self.controller.format_stats())
        return results

    def _run_phase(self, phase: str, num_trials: int, start: State) -> List[TrialStats]:
        results: List[TrialStats] = []
        for index in range(num_trials):
            if index > 0:
                start = self._random_start()
                self.controller.reset_start_state(start)
            stats = self._run_trial(phase, index, start)
            results.append(stats)
            if (index + 1) % self.config.log_every == 0 or index + 1 == num_trials:
                self._log_progress(phase, results)
        return results

    def _run_trial(self, phase: str, index: int, start: State) -> TrialStats:
        reward_model = self.domain.reward()
        state = start
        total_reward = 0.0
        steps = 0
        while True:
            action = self.controller.update_and_get_action(state)
            total_reward += reward_model.reward(state)
            if self.domain.is_terminal_state(state):
                return TrialStats(index, phase, start, total_reward, steps, terminated=True)
            if steps >= self.config.max_steps_per_trial:
                return TrialStats(index, phase, start, total_reward, steps, terminated=False)
            state = self.domain.transfer_state(state, action, self.rng)
            steps += 1

    def _random_start(self) -> State:
        generator = self.domain.state_generator()
        candidates = [s for s in generator.states() if not self.domain.is_terminal_state(s)]
        if not candidates:
            raise RuntimeError("Domain has no non-terminal state to start a trial from.")
        return self.rng.choice(candidates)

    def _log_progress(self, phase: str, results: List[TrialStats]) -> None:
        window = results[-self.config.log_every :]
        rewards = np.asarray([trial.total_reward for trial in window], dtype=float)
        lengths = np.asarray([trial.length for trial in window], dtype=float)
        latest = results[-1]
        metrics: Dict[str, float] = {
            f"{phase}/trial_reward": latest.total_reward,
            f"{phase}/trial_length": float(latest.length),
            f"{phase}/mean_reward": float(np.mean(rewards)),
            f"{phase}/mean_length": float(np.mean(lengths)),
            f"{phase}/terminated_rate": float(np.mean([t.terminated for t in window])),
        }
        metrics.update({f"{phase}/{k}": v for k, v in self.controller.stats().items()})
        latest.metrics = metrics
        self.tracker.log_metrics(metrics, step=latest.index + 1)
        LOGGER.info(
            "%s trial %d: mean reward %.4f over the last %d trials",
            phase,
            latest.index + 1,
            metrics[f"{phase}/mean_reward"],
            len(window),
        )
