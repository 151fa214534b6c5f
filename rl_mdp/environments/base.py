"""Named domain factories, so configs and the CLI can select a domain by name."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterator, Mapping, TypeVar

from rl_mdp.core.domain import Domain

DomainFactory = Callable[..., Domain]
F = TypeVar("F", bound=DomainFactory)


@dataclass(frozen=True, slots=True)
class DomainEntry:
    factory: DomainFactory
    description: str = ""


class DomainRegistry(Mapping[str, DomainEntry]):
    """Read-only view of registered domains; entries are added through `register`.

    `register` works as a plain call or as a class decorator::

        @DOMAINS.register("gridworld", description="4x3 grid world")
        class GridDomain(Domain): ...
    """

    def __init__(self) -> None:
        self._entries: dict[str, DomainEntry] = {}

    def register(
        self,
        name: str,
        factory: DomainFactory | None = None,
        *,
        description: str = "",
        overwrite: bool = False,
    ) -> Any:
        def add(target: F) -> F:
            if not overwrite and name in self._entries:
                raise ValueError(f"Domain '{name}' is already registered.")
            self._entries[name] = DomainEntry(target, description or (target.__doc__ or "").strip())
            return target

        if factory is None:
            return add
        return add(factory)

    def create(self, name: str, **kwargs: Any) -> Domain:
        if name not in self._entries:
            known = ", ".join(sorted(self._entries)) or "none"
            raise ValueError(f"Unknown domain '{name}'. Registered domains: {known}.")
        return self._entries[name].factory(**kwargs)

    def describe(self) -> str:
        return "\n".join(
            f"{name}: {entry.description.splitlines()[0] if entry.description else ''}"
            for name, entry in sorted(self._entries.items())
        )

    def __getitem__(self, key: str) -> DomainEntry:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


DOMAINS = DomainRegistry()
