from __future__ import annotations

import pytest
from mlflow import MlflowClient

from rl_mdp.tracking import NullTracker
from rl_mdp.tracking.mlflow import MLFlowTracker, get_or_create_experiment


def test_null_tracker_accepts_every_call() -> None:
    tracker = NullTracker()
    tracker.start_run("run", {"a": 1})
    tracker.log_metrics({"x": 1.0}, step=1)
    tracker.log_text("values", "values.txt")
    tracker.flush()
    tracker.end_run("FINISHED")


def test_mlflow_tracker_records_run(tmp_path) -> None:
    uri = tmp_path.as_uri()
    tracker = MLFlowTracker("rl-mdp-tests", tracking_uri=uri, tags={"algorithm": "q_learning"})

    with pytest.raises(RuntimeError):
        tracker.log_metrics({"x": 1.0}, step=1)

    params = {f"controller.param{idx}": idx for idx in range(150)}
    tracker.start_run("chain_seed0", params)
    run_id = tracker.run_id
    with pytest.raises(RuntimeError):
        tracker.start_run("second", {})
    tracker.log_metrics({"train/trial_reward": 0.5, "train/terminated_rate": True}, step=1)
    tracker.log_text("0 -> right", "values.txt")
    tracker.end_run("FINISHED")

    run = MlflowClient(tracking_uri=uri).get_run(run_id)
    assert run.info.status == "FINISHED"
    assert run.info.run_name == "chain_seed0"
    assert len(run.data.params) == 150
    assert run.data.params["controller.param7"] == "7"
    assert run.data.metrics["train/trial_reward"] == 0.5
    assert run.data.metrics["train/terminated_rate"] == 1.0
    assert run.data.tags["algorithm"] == "q_learning"
    assert tracker.run_id is None


def test_experiment_is_reused_by_name(tmp_path) -> None:
    client = MlflowClient(tracking_uri=tmp_path.as_uri())
    first = get_or_create_experiment(client, "shared")
    assert get_or_create_experiment(client, "shared") == first
