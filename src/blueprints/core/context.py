"""Write-once context store shared between deployment units.

A unit publishes at most one mapping per run. Later units read it
through a :class:`UnitContext`, which is the only handle an action gets.
"""

import copy
import logging
import threading
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any

from blueprints.utils.errors import AlreadyPublishedError, ContextNotFoundError

logger = logging.getLogger(__name__)

PublishedContext = Mapping[str, Any]

_MISSING = object()


def _freeze(value: Any) -> Any:
    """Return a read-only copy: mappings become proxies, lists and sets become tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    if isinstance(value, (set, frozenset)):
        return frozenset(_freeze(item) for item in value)
    return copy.deepcopy(value)


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _thaw(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [_thaw(item) for item in value]
    if isinstance(value, frozenset):
        return {_thaw(item) for item in value}
    return value


class ContextStore:
    """Keyed, write-once store of published unit context.

    Readers either see ``ContextNotFoundError`` or the final value, never a
    partially written one: values are copied and frozen, nested
    containers included, before insertion.
    """

    def __init__(self) -> None:
        self._entries: dict[str, PublishedContext] = {}
        self._lock = threading.Lock()

    def publish(self, unit_id: str, data: Mapping[str, Any]) -> PublishedContext:
        """Publish context for a unit.

        Args:
            unit_id: Id of the publishing unit
            data: Mapping to publish; it is copied and frozen recursively

        Returns:
            The stored read-only mapping

        Raises:
            AlreadyPublishedError: If the unit already published in this run
        """
        frozen = _freeze(data)
        with self._lock:
            if unit_id in self._entries:
                raise AlreadyPublishedError(unit_id)
            self._entries[unit_id] = frozen
        logger.debug(f"Published context for '{unit_id}': keys={sorted(frozen)}")
        return frozen

    def read(self, unit_id: str) -> PublishedContext:
        """Read the context published by a unit.

        Raises:
            ContextNotFoundError: If nothing was published for the id
        """
        with self._lock:
            try:
                return self._entries[unit_id]
            except KeyError:
                raise ContextNotFoundError(unit_id) from None

    def __contains__(self, unit_id: object) -> bool:
        with self._lock:
            return unit_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def snapshot(self) -> dict[str, dict[str, Any]]:
        """Return a mutable copy of every published entry.

        Nested sequences come back as lists.
        """
        with self._lock:
            return {key: _thaw(value) for key, value in self._entries.items()}


class UnitContext:
    """Read view of the context store handed to a unit's action.

    Attributes:
        unit_id: Id of the unit running the action
        depends_on: Ids of every unit that finished before this one by
            dependency, transitive dependencies included. Reading from any
            other producer depends on execution order and is logged.
    """

    def __init__(self, unit_id: str, store: ContextStore, depends_on: Iterable[str] = ()):
        self.unit_id = unit_id
        self.depends_on = tuple(depends_on)
        self._store = store

    def _check_producer(self, producer_id: str) -> None:
        if producer_id not in self.depends_on:
            logger.warning(
                f"[{self.unit_id}] Reading context of '{producer_id}', "
                "which is not a dependency of this unit"
            )

    def published(self, producer_id: str) -> PublishedContext:
        """Return everything a producer published.

        Raises:
            ContextNotFoundError: If the producer has not published
        """
        self._check_producer(producer_id)
        return self._store.read(producer_id)

    def require(self, producer_id: str, key: str) -> Any:
        """Return a required value published by another unit.

        Missing context is a precondition failure for the calling unit and
        must not be retried.

        Raises:
            ContextNotFoundError: If the producer or key is missing
        """
        self._check_producer(producer_id)
        data = self._store.read(producer_id)
        value = data.get(key, _MISSING)
        if value is _MISSING:
            raise ContextNotFoundError(producer_id, key)
        return value

    def get(self, producer_id: str, key: str, default: Any = None) -> Any:
        """Return an optional value, or ``default`` when it is not available."""
        self._check_producer(producer_id)
        if producer_id not in self._store:
            return default
        return self._store.read(producer_id).get(key, default)
