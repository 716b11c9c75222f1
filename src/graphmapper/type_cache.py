"""
Token-invalidated, thread-safe cache of type descriptors.

Descriptors are derived from the target type and the current configuration.
The cache is keyed by type and invalidated wholesale whenever the
configuration revision (the token) changes.

Readers never take the lock on a hit. A miss computes the descriptor outside
the lock and commits it with compute-if-absent semantics: when two threads
describe the same new type concurrently, the first committed descriptor wins
and the other computation is discarded.
"""

import logging
import threading
from typing import Callable, Dict, Generic, Optional, TypeVar

T = TypeVar('T')

logger = logging.getLogger(__name__)


class TypeCache(Generic[T]):
    """
    Per-type cache that drops its entries when a token changes.

    Example:
        cache = TypeCache(lambda: get_configuration().revision)
        descriptor = cache.get_or_compute(Customer, lambda: build(Customer))
    """

    def __init__(self, token_provider: Callable[[], int]):
        """
        Initialize type cache.

        Args:
            token_provider: Function that returns the current token value
        """
        self._token_provider = token_provider
        self._cache: Dict[type, T] = {}
        self._last_token: int = -1
        self._lock = threading.Lock()

    def _check_token(self) -> None:
        current_token = self._token_provider()
        if current_token != self._last_token:
            with self._lock:
                if current_token != self._last_token:
                    self._cache = {}
                    self._last_token = current_token

    def get_or_compute(self, key: type, compute_fn: Callable[[], T]) -> T:
        """
        Get cached value or compute and commit it.

        Args:
            key: Target type
            compute_fn: Function to compute the value on a miss

        Returns:
            The committed value for ``key``
        """
        self._check_token()
        token = self._last_token

        value = self._cache.get(key)
        if value is not None:
            return value

        computed = compute_fn()
        with self._lock:
            if token != self._last_token:
                # Configuration changed mid-computation; don't commit a stale value
                return computed
            return self._cache.setdefault(key, computed)

    def get(self, key: type) -> Optional[T]:
        self._check_token()
        return self._cache.get(key)

    def invalidate(self, key: Optional[type] = None) -> None:
        """Drop one type's entry, or every entry when ``key`` is None."""
        with self._lock:
            if key is None:
                self._cache = {}
                self._last_token = -1
            else:
                self._cache.pop(key, None)

    def __contains__(self, key: type) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._cache)


def _current_revision() -> int:
    from graphmapper.config import get_configuration
    return get_configuration().revision


descriptor_cache: TypeCache = TypeCache(_current_revision)


def clear_type_cache() -> None:
    """Drop every cached type descriptor."""
    descriptor_cache.invalidate()
    logger.debug("Cleared type descriptor cache")


def invalidate_type(cls: type) -> None:
    """Drop the cached descriptor of a single type."""
    descriptor_cache.invalidate(cls)
