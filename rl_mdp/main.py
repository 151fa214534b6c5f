"""Command-line entry point: solve or learn a domain and report the result."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Annotated, Literal

import gin
import tyro

from rl_mdp.agents import (
    LearningController,
    PolicyIterationController,
    QLearningController,
    ValueIterationController,
)
from rl_mdp.core.domain import Domain
from rl_mdp.core.rng import DEFAULT_RNG, seed_everything
from rl_mdp.environments import DOMAINS
from rl_mdp.experiment import ExperimentConfig, ExperimentRunner
from rl_mdp.policies import LearningRate, SimpleExploration
from rl_mdp.tracking.base import NullTracker, Tracker

LOGGER = logging.getLogger(__name__)

Algorithm = Literal["value_iteration", "policy_iteration", "q_learning"]


@gin.configurable
def build_domain(name: str = "gridworld") -> Domain:
    return DOMAINS.create(name)


@gin.configurable
def build_controller(
    algorithm: Algorithm,
    domain: Domain,
    learning_rate: LearningRate | None = None,
    exploration_threshold: int | None = 20,
) -> LearningController:
    """Creates the controller for `algorithm`; remaining parameters come from gin bindings.

    Q-learning explores optimistically with the domain's optimistic reward until
    a pair was tried `exploration_threshold` times.
    """
    if algorithm == "value_iteration":
        return ValueIterationController(domain)
    if algorithm == "policy_iteration":
        return PolicyIterationController(domain)
    if algorithm == "q_learning":
        exploration = None
        if exploration_threshold is not None:
            exploration = SimpleExploration(
                frequency_threshold=exploration_threshold,
                max_reward=domain.reward().optimistic_reward(),
            )
        return QLearningController(domain, learning_rate=learning_rate, exploration=exploration)
    raise ValueError(f"Unknown algorithm `{algorithm}`.")


def default_config(algorithm: Algorithm) -> Path:
    return Path(str(resources.files("rl_mdp.configs").joinpath(f"{algorithm}.gin")))


def make_tracker(args: Args) -> Tracker:
    if not args.mlflow:
        return NullTracker()
    from rl_mdp.tracking.mlflow import MLFlowTracker

    return MLFlowTracker(
        args.experiment_name,
        tracking_uri=args.tracking_uri,
        tags={"algorithm": args.algorithm},
    )


@dataclass
class Args:
    """Arguments for solving or learning an MDP."""

    algorithm: Annotated[Algorithm, tyro.conf.arg(help="Solver to run.")] = "value_iteration"
    config: Annotated[
        Path | None,
        tyro.conf.arg(help="Path to a gin config file (defaults to the bundled one for the algorithm)."),
    ] = None
    binding: Annotated[
        list[str],
        tyro.conf.arg(
            help=(
                "Optional gin binding overrides (repeatable). "
                "Example: --binding QLearningController.epsilon_greedy=0.05"
            ),
        ),
    ] = field(default_factory=list)
    seed: Annotated[int | None, tyro.conf.arg(help="Seed of the process-wide random source.")] = None
    domain: Annotated[
        str | None,
        tyro.conf.arg(help="Registered domain to run on (overrides the gin binding of `build_domain.name`)."),
    ] = None
    mlflow: Annotated[bool, tyro.conf.arg(help="Log the run to MLflow.")] = False
    tracking_uri: Annotated[str | None, tyro.conf.arg(help="MLflow tracking URI.")] = None
    experiment_name: Annotated[str, tyro.conf.arg(help="MLflow experiment name.")] = "rl-mdp"
    verbose: Annotated[bool, tyro.conf.arg(help="Log every sweep and trial.")] = False


def main(args: Args) -> None:
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )
    config_path = args.config or default_config(args.algorithm)
    gin.parse_config_files_and_bindings([str(config_path)], args.binding)

    config = ExperimentConfig()
    if args.seed is not None:
        config.seed = args.seed
    seed_everything(config.seed)

    domain = build_domain(args.domain) if args.domain else build_domain()
    controller = build_controller(args.algorithm, domain)
    LOGGER.debug("Registered domains:\n%s", DOMAINS.describe())
    LOGGER.info("Running %s on %s", type(controller).__name__, type(domain).__name__)

    runner = ExperimentRunner(
        controller,
        domain,
        config,
        tracker=make_tracker(args),
        controller_metadata={"algorithm": args.algorithm, "bindings": gin.config_str()},
        rng=DEFAULT_RNG,
    )
    results = runner.run()

    print(controller.format_values())
    print(controller.format_stats())
    evaluated = [trial for trial in results if trial.phase == "eval"]
    if evaluated:
        mean_reward = sum(trial.total_reward for trial in evaluated) / len(evaluated)
        print(f"Mean reward over {len(evaluated)} evaluation trials: {mean_reward:.4f}")


def cli() -> None:
    main(tyro.cli(Args))


if __name__ == "__main__":
    cli()
