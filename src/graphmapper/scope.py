"""
Mapping scopes and the storage collaborators behind them.

A MappingScope is the explicit handle for one logical unit of work (a
request, a task, a test). It owns the instance cache that lets records
accumulate into shared objects, and keeps it in a pluggable ContextStorage:

- LocalStorage: a plain dict owned by the scope (default)
- ThreadLocalStorage: per-thread values, for scopes shared by a thread pool
- ContextVarStorage: per-context values, for scopes shared across asyncio tasks

Callers that do not want to pass scopes around can rely on current_scope(),
which binds one scope per execution context, or open a temporary scope with
the mapping_scope() context manager.
"""

import contextvars
import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional

from graphmapper.instance_cache import InstanceCache

logger = logging.getLogger(__name__)

#: Storage key of the instance cache
INSTANCE_CACHE_KEY = "graphmapper.InstanceCache"


class ContextStorage(ABC):
    """Stores values in whatever context the host application considers a scope."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the stored value, or None when absent."""

    @abstractmethod
    def store(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove ``key``; removing an absent key is not an error."""


class LocalStorage(ContextStorage):
    """Dict-backed storage owned by a single scope."""

    def __init__(self):
        self._values: Dict[str, Any] = {}

    def get(self, key: str) -> Optional[Any]:
        return self._values.get(key)

    def store(self, key: str, value: Any) -> None:
        self._values[key] = value

    def remove(self, key: str) -> None:
        self._values.pop(key, None)


class ThreadLocalStorage(ContextStorage):
    """Storage whose values are private to the calling thread."""

    def __init__(self):
        self._local = threading.local()

    def _values(self) -> Dict[str, Any]:
        values = getattr(self._local, 'values', None)
        if values is None:
            values = self._local.values = {}
        return values

    def get(self, key: str) -> Optional[Any]:
        return self._values().get(key)

    def store(self, key: str, value: Any) -> None:
        self._values()[key] = value

    def remove(self, key: str) -> None:
        self._values().pop(key, None)


class ContextVarStorage(ContextStorage):
    """Storage whose values are private to the current contextvars context.

    Values are kept in an immutable per-context dict, so a task that stores a
    value never leaks it into the context it was copied from.
    """

    def __init__(self, name: str = 'graphmapper_storage'):
        self._var: contextvars.ContextVar = contextvars.ContextVar(name)

    def get(self, key: str) -> Optional[Any]:
        return self._var.get({}).get(key)

    def store(self, key: str, value: Any) -> None:
        values = dict(self._var.get({}))
        values[key] = value
        self._var.set(values)

    def remove(self, key: str) -> None:
        values = self._var.get({})
        if key in values:
            values = dict(values)
            del values[key]
            self._var.set(values)


class MappingScope:
    """
    Explicit handle for one logical unit of work.

    Args:
        storage: Where the instance cache lives; defaults to LocalStorage
    """

    def __init__(self, storage: Optional[ContextStorage] = None):
        self.storage = storage if storage is not None else LocalStorage()

    @property
    def instance_cache(self) -> InstanceCache:
        """The scope's instance cache, created on first use."""
        cache = self.storage.get(INSTANCE_CACHE_KEY)
        if cache is None:
            cache = InstanceCache()
            self.storage.store(INSTANCE_CACHE_KEY, cache)
        return cache

    def clear_instance_cache(self) -> None:
        """Forget every instance built in this scope."""
        self.storage.remove(INSTANCE_CACHE_KEY)

    def __repr__(self) -> str:
        return f"MappingScope(storage={type(self.storage).__name__})"


# =============================================================================
# AMBIENT SCOPE
# =============================================================================

# No default: every context gets its own scope on first use
_current_scope: contextvars.ContextVar[MappingScope] = contextvars.ContextVar('graphmapper_current_scope')


def current_scope() -> MappingScope:
    """Return the scope bound to the current context, binding a new one if needed."""
    scope = _current_scope.get(None)
    if scope is None:
        scope = MappingScope()
        _current_scope.set(scope)
    return scope


@contextmanager
def mapping_scope(storage: Optional[ContextStorage] = None) -> Generator[MappingScope, None, None]:
    """
    Bind a fresh scope for the duration of a block.

    The scope's instance cache is cleared when the block exits, and the
    previously bound scope (if any) is restored.

    Usage:
        with mapping_scope() as scope:
            customers = list(map_records(Customer, rows))
    """
    scope = MappingScope(storage)
    token = _current_scope.set(scope)
    try:
        yield scope
    finally:
        scope.clear_instance_cache()
        _current_scope.reset(token)
