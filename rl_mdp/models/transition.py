"""Transition model abstractions shared across planners and learners."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterator, Sequence

from rl_mdp.core.errors import ImmutableModelError, InconsistentModelError, UpdateResult
from rl_mdp.core.types import Action, State, StateActionPair, StateTransition, ensure_key


class Transition(ABC):
    """Interface for models answering `T(s, a, .)`."""

    @abstractmethod
    def transition_states(self, state: State, action: Action) -> Sequence[StateTransition]:
        """Returns the successors of `(state, action)`; empty when the pair has none."""

    @abstractmethod
    def set_transition_state(
        self, state: State, action: Action, next_state: State, weight: float = 1.0
    ) -> None:
        """Sets the weight of one successor, inserting it when absent."""

    def format(self) -> str:
        return ""


class FixedTransition(Transition):
    """Analytic model whose successors are computed, never stored."""

    def set_transition_state(
        self, state: State, action: Action, next_state: State, weight: float = 1.0
    ) -> None:
        del state, action, next_state, weight
        raise ImmutableModelError(f"{type(self).__name__} is fixed and cannot be written to.")


class TransitionMap(Transition):
    """Mutable table of `(s, a) -> [(s', weight), ...]` in insertion order."""

    def __init__(self) -> None:
        self._table: dict[StateActionPair, list[StateTransition]] = {}

    def transition_states(self, state: State, action: Action) -> Sequence[StateTransition]:
        return tuple(self._table.get(StateActionPair(state, action), ()))

    def set_transition_state(
        self, state: State, action: Action, next_state: State, weight: float = 1.0
    ) -> None:
        key = StateActionPair(ensure_key(state), ensure_key(action))
        successors = self._table.setdefault(key, [])
        for idx, entry in enumerate(successors):
            if entry.state == next_state:
                successors[idx] = StateTransition(next_state, weight)
                return
        successors.append(StateTransition(ensure_key(next_state), weight))

    def pairs(self) -> Iterator[StateActionPair]:
        return iter(sorted(self._table))

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, key: object) -> bool:
        return key in self._table

    def format(self) -> str:
        lines = []
        for pair in self.pairs():
            for entry in self._table[pair]:
                lines.append(f"{pair}:  {entry.state} / {entry.weight}")
        return "\n".join(lines)


class LearnableTransitionMap(TransitionMap):
    """Transition map estimated from experienced transitions.

    A parallel counting map stores how often each successor was observed; the
    probabilities are the counts normalized by the number of trials of the
    pair. Both maps keep their successors in the same order.
    """

    def __init__(self) -> None:
        super().__init__()
        self._counts = TransitionMap()

    def count(self, state: State, action: Action, next_state: State) -> int:
        for entry in self._counts.transition_states(state, action):
            if entry.state == next_state:
                return int(entry.weight)
        return 0

    def trials(self, state: State, action: Action) -> int:
        return int(sum(entry.weight for entry in self._counts.transition_states(state, action)))

    def experience_transition(self, state: State, action: Action, next_state: State) -> UpdateResult:
        """Counts one observed `state --action--> next_state` and renormalizes the pair."""
        if self.count(state, action, next_state) == 0:
            self._counts.set_transition_state(state, action, next_state, 0)
            self.set_transition_state(state, action, next_state, 0.0)
        self._counts.set_transition_state(
            state, action, next_state, self.count(state, action, next_state) + 1
        )

        counted = self._counts.transition_states(state, action)
        probabilities = self._table[StateActionPair(state, action)]
        if len(counted) != len(probabilities):
            return UpdateResult(
                error=InconsistentModelError(
                    f"Count and probability tables of `{state} / {action}` differ in length "
                    f"({len(counted)} != {len(probabilities)})."
                )
            )

        total = sum(entry.weight for entry in counted)
        for idx, (count_entry, prob_entry) in enumerate(zip(counted, probabilities)):
            if count_entry.state != prob_entry.state:
                return UpdateResult(
                    error=InconsistentModelError(
                        f"Successor `{count_entry.state}` of `{state} / {action}` is not aligned "
                        f"with `{prob_entry.state}`."
                    )
                )
            probabilities[idx] = StateTransition(prob_entry.state, count_entry.weight / total)
        return UpdateResult()
