"""Dependency graph resolution for deployment units."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from blueprints.core.units import DeploymentUnit
from blueprints.utils.errors import CyclicDependencyError, DuplicateUnitError, UnknownDependencyError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExecutionPlan:
    """Resolved execution order.

    Attributes:
        batches: Groups of mutually independent unit ids. Every dependency
            of a unit lives in an earlier batch.
        order: All unit ids, batch by batch.
    """

    batches: tuple[tuple[str, ...], ...]

    @property
    def order(self) -> tuple[str, ...]:
        return tuple(uid for batch in self.batches for uid in batch)

    def __len__(self) -> int:
        return sum(len(batch) for batch in self.batches)

    def position(self, unit_id: str) -> int:
        """Index of a unit in :attr:`order`."""
        return self.order.index(unit_id)


def resolve(units: Iterable[DeploymentUnit]) -> ExecutionPlan:
    """Order units so that every dependency precedes its dependents.

    Uses Kahn's algorithm level by level. Ties are broken by the order in
    which units were given, so the same input always yields the same plan.

    Args:
        units: Units in registration order

    Returns:
        ExecutionPlan with safe-to-parallelize batches

    Raises:
        DuplicateUnitError: If two units share an id
        UnknownDependencyError: If a dependency is not among the units
        CyclicDependencyError: If the dependencies form a cycle
    """
    registered: dict[str, DeploymentUnit] = {}
    for unit in units:
        if unit.id in registered:
            raise DuplicateUnitError(unit.id)
        registered[unit.id] = unit

    for unit in registered.values():
        for dep in unit.depends_on:
            if dep not in registered:
                raise UnknownDependencyError(unit.id, dep)

    rank = {uid: index for index, uid in enumerate(registered)}
    dependents: dict[str, list[str]] = {uid: [] for uid in registered}
    in_degree: dict[str, int] = {}
    for uid, unit in registered.items():
        in_degree[uid] = len(unit.depends_on)
        for dep in unit.depends_on:
            dependents[dep].append(uid)

    batches: list[tuple[str, ...]] = []
    ready = [uid for uid in registered if in_degree[uid] == 0]
    while ready:
        batch = tuple(sorted(ready, key=rank.__getitem__))
        batches.append(batch)
        ready = []
        for uid in batch:
            for child in dependents[uid]:
                in_degree[child] -= 1
                if in_degree[child] == 0:
                    ready.append(child)

    placed = sum(len(batch) for batch in batches)
    if placed != len(registered):
        remaining = [uid for uid in registered if in_degree[uid] > 0]
        raise CyclicDependencyError(_find_cycle(remaining, registered))

    plan = ExecutionPlan(batches=tuple(batches))
    logger.debug(f"Resolved {len(plan)} unit(s) into {len(batches)} batch(es)")
    return plan


def _find_cycle(remaining: list[str], registered: dict[str, DeploymentUnit]) -> list[str]:
    """Return one concrete cycle among the units Kahn's algorithm could not place.

    Every unplaced unit has at least one unplaced dependency, so walking
    dependencies from any of them must eventually revisit a unit.
    """
    pending = set(remaining)
    start = remaining[0]
    path: list[str] = []
    seen: dict[str, int] = {}
    node = start
    while node not in seen:
        seen[node] = len(path)
        path.append(node)
        node = next(dep for dep in registered[node].depends_on if dep in pending)

    # path follows "depends on" edges; report in execution (edge) order
    cycle = list(reversed(path[seen[node] :]))
    rank = {uid: index for index, uid in enumerate(registered)}
    first = min(range(len(cycle)), key=lambda i: rank[cycle[i]])
    return cycle[first:] + cycle[:first]
