"""Domains given as explicit transition tables."""

from __future__ import annotations

from typing import Iterable, Iterator, Mapping, Sequence

from rl_mdp.core.domain import Domain
from rl_mdp.core.errors import ProbabilityMassError
from rl_mdp.core.floats import ZERO_EPSILON, nearly_equal
from rl_mdp.core.generators import FiniteActionGenerator, FiniteStateGenerator
from rl_mdp.core.types import Action, State, StateActionPair, StateTransition, ensure_key
from rl_mdp.models.reward import SelectedReward
from rl_mdp.models.transition import FixedTransition

TransitionTable = Mapping[tuple[State, Action], Mapping[State, float]]


class TabularTransition(FixedTransition):
    """Precomputed `(s, a) -> {s': p}` table; every listed pair must carry unit mass."""

    def __init__(self, table: TransitionTable) -> None:
        self._table: dict[StateActionPair, tuple[StateTransition, ...]] = {}
        for (state, action), successors in table.items():
            entries = tuple(
                StateTransition(ensure_key(next_state), float(p))
                for next_state, p in successors.items()
                if p > 0.0
            )
            if not entries:
                continue
            mass = sum(entry.weight for entry in entries)
            if not nearly_equal(mass, 1.0, ZERO_EPSILON, ZERO_EPSILON):
                raise ProbabilityMassError(state, action, mass)
            self._table[StateActionPair(ensure_key(state), ensure_key(action))] = entries

    def transition_states(self, state: State, action: Action) -> Sequence[StateTransition]:
        return self._table.get(StateActionPair(state, action), ())

    def pairs(self) -> Iterator[StateActionPair]:
        return iter(sorted(self._table))

    def format(self) -> str:
        return "\n".join(
            f"{pair}:  {entry.state} / {entry.weight}"
            for pair in self.pairs()
            for entry in self._table[pair]
        )


class TabularDomain(Domain):
    """Finite MDP defined by state and action lists, a transition table and rewards.

    Actions without successors in a state are not applicable there.
    """

    def __init__(
        self,
        states: Iterable[State],
        actions: Iterable[Action],
        transitions: TransitionTable,
        rewards: Mapping[State, float] | None = None,
        *,
        default_reward: float = 0.0,
        terminal_states: Iterable[State] = (),
        start_state: State | None = None,
    ) -> None:
        self._states = FiniteStateGenerator(states)
        self._actions = FiniteActionGenerator(actions)
        self._transition = TabularTransition(transitions)
        self._reward = SelectedReward(default_reward, rewards or {})
        self._terminal = frozenset(terminal_states)
        if start_state is None:
            start_state = next(self._states.states())
        self._start = start_state

    def transition(self) -> TabularTransition:
        return self._transition

    def reward(self) -> SelectedReward:
        return self._reward

    def state_generator(self) -> FiniteStateGenerator:
        return self._states

    def action_generator(self) -> FiniteActionGenerator:
        return self._actions

    def start_state(self) -> State:
        return self._start

    def is_terminal_state(self, state: State) -> bool:
        return state in self._terminal

    def applicable_actions(self, state: State) -> Iterator[Action]:
        for action in self._actions.actions():
            if self._transition.transition_states(state, action):
                yield action
