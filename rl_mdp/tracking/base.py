"""Sinks for the parameters, trial metrics and learned tables of an experiment run."""

from __future__ import annotations

from typing import Literal, Mapping, Protocol

RunStatus = Literal["FINISHED", "FAILED", "KILLED"]
Metrics = Mapping[str, float | int | bool]


class Tracker(Protocol):
    """One run per `start_run`/`end_run`; the runner logs flattened string params."""

    def start_run(self, run_name: str, params: Mapping[str, object]) -> None:
        ...

    def log_metrics(self, metrics: Metrics, step: int) -> None:
        ...

    def log_params(self, params: Mapping[str, object]) -> None:
        ...

    def log_text(self, text: str, artifact_file: str) -> None:
        """Stores `text` (e.g. a formatted policy) as an artifact of the active run."""

    def flush(self) -> None:
        ...

    def end_run(self, status: RunStatus) -> None:
        ...


class NullTracker:
    """Discards everything; used when no tracking backend is configured."""

    def start_run(self, run_name: str, params: Mapping[str, object]) -> None:
        del run_name, params

    def log_metrics(self, metrics: Metrics, step: int) -> None:
        del metrics, step

    def log_params(self, params: Mapping[str, object]) -> None:
        del params

    def log_text(self, text: str, artifact_file: str) -> None:
        del text, artifact_file

    def flush(self) -> None:
        return None

    def end_run(self, status: RunStatus) -> None:
        del status
