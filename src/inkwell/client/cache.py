"""Client-side query cache with an explicit per-entry state machine.

Each cached response moves through four states:

* ``FRESH``: matches the last server read.
* ``STALE``: invalidated; the next read refetches it.
* ``PENDING``: an optimistic mutation is in flight. The entry keeps the
  pre-mutation snapshot so the mutation can be rolled back.
* ``RECONCILED``: the mutation settled (applied or rolled back); the next
  read refetches authoritative data.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class CacheStateError(RuntimeError):
    """Raised when an entry is asked to make a transition its state forbids."""


class CacheState(Enum):
    """Lifecycle states of a cache entry."""

    FRESH = "fresh"
    STALE = "stale"
    PENDING = "pending"
    RECONCILED = "reconciled"


_ALLOWED: dict[CacheState, frozenset[CacheState]] = {
    CacheState.FRESH: frozenset({CacheState.STALE, CacheState.PENDING}),
    CacheState.STALE: frozenset({CacheState.PENDING, CacheState.FRESH}),
    CacheState.PENDING: frozenset({CacheState.RECONCILED}),
    CacheState.RECONCILED: frozenset({CacheState.FRESH}),
}


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return tuple(sorted((str(k), _freeze(v)) for k, v in value.items()))
    if isinstance(value, (list, tuple, set, frozenset)):
        items = [_freeze(v) for v in value]
        return tuple(sorted(items, key=repr) if isinstance(value, (set, frozenset)) else items)
    return value


@dataclass(frozen=True)
class CacheKey:
    """Composite key: resource type, optional id and the query parameters."""

    resource: str
    resource_id: int | None = None
    params: tuple[tuple[str, Any], ...] = ()


def make_key(
    resource: str,
    resource_id: int | None = None,
    params: Mapping[str, Any] | None = None,
) -> CacheKey:
    """Build a key whose ``params`` part is order-independent and hashable.

    ``None`` values are dropped, so ``{"page": 1, "search": None}`` and
    ``{"page": 1}`` address the same entry.
    """
    cleaned = {k: v for k, v in (params or {}).items() if v is not None}
    return CacheKey(resource=resource, resource_id=resource_id, params=_freeze(cleaned))


@dataclass
class CacheEntry:
    """A cached response and where it stands relative to the server."""

    key: CacheKey
    data: Any
    state: CacheState = CacheState.FRESH
    snapshot: Any = field(default=None, repr=False)

    def _move(self, target: CacheState) -> None:
        if target not in _ALLOWED[self.state]:
            raise CacheStateError(
                f"{self.key.resource} entry cannot go from {self.state.value} to {target.value}"
            )
        self.state = target

    @property
    def needs_refetch(self) -> bool:
        return self.state in (CacheState.STALE, CacheState.RECONCILED)

    def mark_stale(self) -> None:
        self._move(CacheState.STALE)

    def begin_mutation(self, apply: Callable[[Any], Any]) -> None:
        """Apply an optimistic change, keeping a snapshot for rollback."""
        self._move(CacheState.PENDING)
        self.snapshot = copy.deepcopy(self.data)
        self.data = apply(copy.deepcopy(self.data))

    def rollback(self) -> None:
        """Restore the pre-mutation snapshot; the entry stays pending until settled."""
        if self.state is not CacheState.PENDING:
            raise CacheStateError(f"cannot roll back a {self.state.value} entry")
        self.data = self.snapshot

    def settle(self) -> None:
        self._move(CacheState.RECONCILED)
        self.snapshot = None

    def refresh(self, data: Any) -> None:
        """Replace the data with a server read."""
        self._move(CacheState.FRESH)
        self.data = data


class QueryCache:
    """In-memory store of cache entries keyed by :class:`CacheKey`."""

    def __init__(self) -> None:
        self._entries: dict[CacheKey, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get(self, key: CacheKey) -> CacheEntry | None:
        return self._entries.get(key)

    def store(self, key: CacheKey, data: Any) -> CacheEntry:
        """Record a server read under ``key``.

        Raises:
            CacheStateError: If the entry has a mutation in flight.
        """
        entry = self._entries.get(key)
        if entry is None or entry.state is CacheState.FRESH:
            entry = CacheEntry(key=key, data=data)
            self._entries[key] = entry
        else:
            entry.refresh(data)
        return entry

    def entries(
        self, resource: str | None = None, resource_id: int | None = None
    ) -> Iterator[CacheEntry]:
        """Iterate over entries, optionally restricted to a resource and id."""
        for entry in list(self._entries.values()):
            if resource is not None and entry.key.resource != resource:
                continue
            if resource_id is not None and entry.key.resource_id != resource_id:
                continue
            yield entry

    def invalidate(self, resource: str, resource_id: int | None = None) -> int:
        """Mark matching fresh entries stale and return how many changed.

        Entries that are already stale or reconciled will refetch anyway, and
        pending entries are reconciled when their mutation settles.
        """
        changed = 0
        for entry in self.entries(resource, resource_id):
            if entry.state is CacheState.FRESH:
                entry.mark_stale()
                changed += 1
        logger.debug("Invalidated %d %s entries (id=%s)", changed, resource, resource_id)
        return changed

    def evict(self, resource: str, resource_id: int | None = None) -> int:
        """Drop matching entries outright and return how many were removed."""
        doomed = [entry.key for entry in self.entries(resource, resource_id)]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    def clear(self) -> None:
        self._entries.clear()
