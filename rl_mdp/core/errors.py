"""Error taxonomy and result values returned by update routines."""

from __future__ import annotations

from dataclasses import dataclass, field


class MDPError(Exception):
    """Base class for all solver errors."""


class DomainConsistencyError(MDPError):
    """The domain's models contradict each other or the MDP definition."""


class ProbabilityMassError(DomainConsistencyError):
    """Successor probabilities of a state/action pair do not sum to one."""

    def __init__(self, state: object, action: object, total: float) -> None:
        super().__init__(
            f"Probabilities for `{state} / {action}` sum to {total}, expected 1."
        )
        self.state = state
        self.action = action
        self.total = total


class NoApplicableActionError(DomainConsistencyError):
    """A non-terminal state offers no action with successors."""

    def __init__(self, state: object) -> None:
        super().__init__(f"Non-terminal state `{state}` has no applicable action.")
        self.state = state


class InconsistentModelError(DomainConsistencyError):
    """Parallel tables of a learned model went out of step."""


class MissingPolicyEntryError(DomainConsistencyError):
    def __init__(self, state: object) -> None:
        super().__init__(f"Policy has no action for state `{state}`.")
        self.state = state


class ImmutableModelError(MDPError):
    """Raised when writing to a model that is fixed by construction."""


@dataclass(slots=True)
class UpdateResult:
    """Outcome of a single model or table update.

    Recoverable problems are collected in `warnings`; a fatal problem is kept
    in `error` and raised by the caller that owns the solve.
    """

    q_change: float = 0.0
    warnings: list[str] = field(default_factory=list)
    error: MDPError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error
