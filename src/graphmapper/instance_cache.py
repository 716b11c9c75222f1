"""
Identity-keyed instance cache.

Maps an identity fingerprint to the instance built for it, so that several
flat records describing the same logical entity accumulate into one object.
A cache belongs to exactly one MappingScope and is never shared between
concurrent units of work, so it needs no locking.
"""

from typing import Any, Dict, Iterator, Optional, Tuple


class InstanceCache:
    """Fingerprint -> instance store for one mapping scope."""

    def __init__(self):
        self._instances: Dict[int, Any] = {}

    def get(self, fingerprint: int) -> Optional[Any]:
        return self._instances.get(fingerprint)

    def put(self, fingerprint: int, instance: Any) -> None:
        self._instances[fingerprint] = instance

    def clear(self) -> None:
        self._instances.clear()

    def items(self) -> Iterator[Tuple[int, Any]]:
        return iter(self._instances.items())

    def __contains__(self, fingerprint: int) -> bool:
        return fingerprint in self._instances

    def __len__(self) -> int:
        return len(self._instances)

    def __repr__(self) -> str:
        return f"InstanceCache({len(self._instances)} instance(s))"
