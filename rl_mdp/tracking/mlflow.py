"""MLflow backend for experiment runs, logging through an explicit `MlflowClient`."""

from __future__ import annotations

import logging
import time
from typing import List, Mapping

from mlflow import MlflowClient
from mlflow.entities import Metric, Param
from mlflow.exceptions import MlflowException

from rl_mdp.tracking.base import Metrics, RunStatus

LOGGER = logging.getLogger(__name__)

# Upper limit of params accepted by a single `log_batch` call.
_PARAM_BATCH = 100


def get_or_create_experiment(client: MlflowClient, name: str, max_tries: int = 10) -> str:
    """Returns the id of experiment `name`, creating it if needed.

    Concurrent runs may race on the creation; the loser looks the experiment up again.
    """
    for _ in range(max_tries):
        experiment = client.get_experiment_by_name(name)
        if experiment is not None:
            return experiment.experiment_id
        try:
            return client.create_experiment(name)
        except MlflowException:
            LOGGER.debug("Experiment %s was created concurrently; retrying lookup.", name)
    raise RuntimeError(f"Could not get or create MLflow experiment '{name}'.")


class MLFlowTracker:
    """Logs each controller run to an MLflow experiment.

    Metrics and params are sent in batches against the run id, so several
    trackers can be active in the same process.
    """

    def __init__(
        self,
        experiment_name: str,
        *,
        tracking_uri: str | None = None,
        tags: Mapping[str, str] | None = None,
    ) -> None:
        self.client = MlflowClient(tracking_uri=tracking_uri)
        self.experiment_id = get_or_create_experiment(self.client, experiment_name)
        self.tags = dict(tags or {})
        self.run_id: str | None = None

    def _active_run(self, what: str) -> str:
        if self.run_id is None:
            raise RuntimeError(f"Cannot log {what} without an active MLflow run.")
        return self.run_id

    def start_run(self, run_name: str, params: Mapping[str, object]) -> None:
        if self.run_id is not None:
            raise RuntimeError(f"MLflow run {self.run_id} is still active.")
        run = self.client.create_run(self.experiment_id, tags=self.tags, run_name=run_name)
        self.run_id = run.info.run_id
        LOGGER.info("Started MLflow run %s (%s).", run_name, self.run_id)
        self.log_params(params)

    def log_metrics(self, metrics: Metrics, step: int) -> None:
        run_id = self._active_run("metrics")
        timestamp = int(time.time() * 1000)
        batch = [Metric(key, float(value), timestamp, step) for key, value in metrics.items()]
        self.client.log_batch(run_id, metrics=batch)

    def log_params(self, params: Mapping[str, object]) -> None:
        run_id = self._active_run("params")
        batch: List[Param] = [Param(key, str(value)) for key, value in params.items()]
        for start in range(0, len(batch), _PARAM_BATCH):
            self.client.log_batch(run_id, params=batch[start : start + _PARAM_BATCH])

    def log_text(self, text: str, artifact_file: str) -> None:
        self.client.log_text(self._active_run("artifacts"), text, artifact_file)

    def flush(self) -> None:
        # Batches are sent synchronously.
        return None

    def end_run(self, status: RunStatus) -> None:
        if self.run_id is None:
            return
        self.client.set_terminated(self.run_id, status=status)
        self.run_id = None
