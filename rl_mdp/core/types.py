"""Shared type definitions used across the solvers."""

from __future__ import annotations

from collections.abc import Hashable
from typing import Any, NamedTuple, Protocol, TypeVar


class OrderedKey(Hashable, Protocol):
    """Identity contract for states and actions: hashable, ordered and printable."""

    def __lt__(self, other: Any) -> bool:
        ...


State = Any
Action = Any

K = TypeVar("K", bound=OrderedKey)


def ensure_key(value: K) -> K:
    """Returns `value` unchanged if it can be used as a table key, raises `TypeError` otherwise."""
    try:
        hash(value)
    except TypeError as exc:
        raise TypeError(f"`{value!r}` is not hashable and cannot identify a state or action.") from exc
    try:
        value < value  # noqa: B015 - only the comparison support matters
    except TypeError as exc:
        raise TypeError(f"`{value!r}` does not support ordering with `<`.") from exc
    return value


class StateActionPair(NamedTuple):
    """Key of the frequency and transition tables, ordered by state then action."""

    state: State
    action: Action

    def __str__(self) -> str:
        return f"{self.state} / {self.action}"


class StateTransition(NamedTuple):
    """A successor state with either its probability or its observed count."""

    state: State
    weight: float

    def __str__(self) -> str:
        return f"{self.state} with p={self.weight}"


class ActionValue(NamedTuple):
    action: Action
    value: float
