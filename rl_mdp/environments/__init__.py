from rl_mdp.environments.base import DOMAINS, DomainEntry, DomainRegistry
from rl_mdp.environments.gridworld import (
    GridDomain,
    GridWorldActionGenerator,
    GridWorldState,
    GridWorldStateGenerator,
    GridWorldTransition,
    Move,
)
from rl_mdp.environments.tabular import TabularDomain, TabularTransition


__all__ = [
    "DOMAINS",
    "DomainEntry",
    "DomainRegistry",
    "GridDomain",
    "GridWorldActionGenerator",
    "GridWorldState",
    "GridWorldStateGenerator",
    "GridWorldTransition",
    "Move",
    "TabularDomain",
    "TabularTransition",
]
