from rl_mdp.tracking.base import Metrics, NullTracker, RunStatus, Tracker

__all__ = ["Metrics", "NullTracker", "RunStatus", "Tracker"]
