"""Stochastic grid world with a goal, a pit and one blocked cell."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Iterator, Sequence

import gin

from rl_mdp.core.domain import Domain
from rl_mdp.core.floats import is_zero
from rl_mdp.core.generators import ActionGenerator, StateGenerator
from rl_mdp.core.rng import DEFAULT_RNG, RandomSource
from rl_mdp.core.types import StateTransition
from rl_mdp.environments.base import DOMAINS
from rl_mdp.models.reward import SelectedReward
from rl_mdp.models.transition import FixedTransition


@dataclass(frozen=True, order=True, slots=True)
class GridWorldState:
    x: int
    y: int

    def __str__(self) -> str:
        return f"{self.x}/{self.y}"


class Move(IntEnum):
    RIGHT = 0
    UP = 1
    DOWN = 2
    LEFT = 3

    def __str__(self) -> str:
        return self.name


# Order in which moves are enumerated; ties between moves go to the earlier one.
MOVE_ORDER: tuple[Move, ...] = (Move.UP, Move.RIGHT, Move.DOWN, Move.LEFT)

_OFFSETS = {
    Move.RIGHT: (1, 0),
    Move.UP: (0, 1),
    Move.DOWN: (0, -1),
    Move.LEFT: (-1, 0),
}

# Main direction followed by the two perpendicular slips, in successor order.
_SLIPS = {
    Move.UP: (Move.RIGHT, Move.LEFT),
    Move.DOWN: (Move.RIGHT, Move.LEFT),
    Move.RIGHT: (Move.DOWN, Move.UP),
    Move.LEFT: (Move.DOWN, Move.UP),
}


@dataclass(frozen=True, slots=True)
class GridLayout:
    width: int = 4
    height: int = 3
    goal: GridWorldState = GridWorldState(3, 2)
    pit: GridWorldState = GridWorldState(3, 1)
    block: GridWorldState = GridWorldState(1, 1)

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError("`width` and `height` must be positive.")
        for name in ("goal", "pit", "block"):
            cell = getattr(self, name)
            if not self.inside(cell):
                raise ValueError(f"`{name}` {cell} lies outside the {self.width}x{self.height} grid.")

    def inside(self, state: GridWorldState) -> bool:
        return 0 <= state.x < self.width and 0 <= state.y < self.height

    def can_move(self, state: GridWorldState, move: Move) -> bool:
        target = step(state, move)
        return self.inside(target) and target != self.block

    def is_terminal(self, state: GridWorldState) -> bool:
        return state == self.goal or state == self.pit


def step(state: GridWorldState, move: Move) -> GridWorldState:
    dx, dy = _OFFSETS[move]
    return GridWorldState(state.x + dx, state.y + dy)


class GridWorldStateGenerator(StateGenerator):
    """Every cell except the blocked one, column by column."""

    def __init__(self, layout: GridLayout) -> None:
        self.layout = layout

    def states(self) -> Iterator[GridWorldState]:
        for x in range(self.layout.width):
            for y in range(self.layout.height):
                state = GridWorldState(x, y)
                if state != self.layout.block:
                    yield state


class GridWorldActionGenerator(ActionGenerator):
    def actions(self) -> Iterator[Move]:
        return iter(MOVE_ORDER)

    def random_action(self, rng: RandomSource = DEFAULT_RNG) -> Move:
        return rng.choice(MOVE_ORDER)


class GridWorldTransition(FixedTransition):
    """Moves succeed with `1 - 2 * side_probability` and slip sideways otherwise.

    Moves into a wall or the blocked cell leave the agent where it is.
    """

    def __init__(self, layout: GridLayout, side_probability: float = 0.1) -> None:
        if not 0.0 <= side_probability <= 0.5:
            raise ValueError("`side_probability` must lie in [0, 0.5].")
        self.layout = layout
        self.side_probability = side_probability

    def transition_states(self, state: GridWorldState, action: Move) -> Sequence[StateTransition]:
        if self.layout.is_terminal(state) or state == self.layout.block:
            return ()
        main = 1.0 - 2.0 * self.side_probability
        side_a, side_b = _SLIPS[action]
        successors = []
        bump = 0.0
        for move, probability in ((action, main), (side_a, self.side_probability), (side_b, self.side_probability)):
            if is_zero(probability):
                continue
            if self.layout.can_move(state, move):
                successors.append(StateTransition(step(state, move), probability))
            else:
                bump += probability
        if not is_zero(bump):
            successors.append(StateTransition(state, bump))
        return tuple(successors)

    def format(self) -> str:
        return "No transition print provided for grid world"


@DOMAINS.register("gridworld")
@gin.configurable
class GridDomain(Domain):
    """The 4x3 grid world of Russell and Norvig, with configurable geometry and rewards."""

    def __init__(
        self,
        width: int = 4,
        height: int = 3,
        goal: tuple[int, int] = (3, 2),
        pit: tuple[int, int] = (3, 1),
        block: tuple[int, int] = (1, 1),
        default_reward: float = -0.04,
        goal_reward: float = 1.0,
        pit_reward: float = -1.0,
        side_probability: float = 0.1,
        start: tuple[int, int] = (0, 0),
    ) -> None:
        self.layout = GridLayout(
            width=width,
            height=height,
            goal=GridWorldState(*goal),
            pit=GridWorldState(*pit),
            block=GridWorldState(*block),
        )
        self._start = GridWorldState(*start)
        if not self.layout.inside(self._start) or self._start == self.layout.block:
            raise ValueError(f"Start state {self._start} is not a free cell of the grid.")
        self._transition = GridWorldTransition(self.layout, side_probability)
        self._reward = SelectedReward(
            default_reward,
            [(self.layout.goal, goal_reward), (self.layout.pit, pit_reward)],
        )
        self._states = GridWorldStateGenerator(self.layout)
        self._actions = GridWorldActionGenerator()

    def transition(self) -> GridWorldTransition:
        return self._transition

    def reward(self) -> SelectedReward:
        return self._reward

    def state_generator(self) -> GridWorldStateGenerator:
        return self._states

    def action_generator(self) -> GridWorldActionGenerator:
        return self._actions

    def start_state(self) -> GridWorldState:
        return self._start

    def is_terminal_state(self, state: GridWorldState) -> bool:
        return self.layout.is_terminal(state)
