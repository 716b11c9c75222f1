"""
Collection adapters for collection-typed members.

A member whose declared type is a supported collection gets one adapter,
chosen once when its type is described. Adapters know the element type and
how to create, extend and search the concrete collection:

- GrowableAdapter: list-like members (List[X], Sequence[X], Iterable[X], ...)
  are backed by a ``list`` and appended to in place
- FixedSizeAdapter: Tuple[X, ...] members are rebuilt with the new element
"""
import collections.abc
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Tuple, get_args, get_origin


@dataclass(frozen=True)
class GrowableAdapter:
    """Adapter for list-backed collection members."""
    element_type: type

    def make_empty(self) -> list:
        return []

    def append(self, collection: Any, element: Any) -> Any:
        if isinstance(collection, collections.abc.MutableSequence):
            collection.append(element)
            return collection
        # Immutable iterable held by the member: copy into a list
        return [*collection, element]

    def contains(self, collection: Iterable, element: Any) -> bool:
        # Reference membership; value equality may recurse through back-references
        return any(item is element for item in collection)


@dataclass(frozen=True)
class FixedSizeAdapter:
    """Adapter for tuple collection members."""
    element_type: type

    def make_empty(self) -> tuple:
        return ()

    def append(self, collection: Any, element: Any) -> tuple:
        return (*collection, element)

    def contains(self, collection: Iterable, element: Any) -> bool:
        return any(item is element for item in collection)


CollectionAdapter = Any  # GrowableAdapter | FixedSizeAdapter

_GROWABLE_ORIGINS: Tuple[type, ...] = (
    list,
    collections.abc.MutableSequence,
    collections.abc.Sequence,
    collections.abc.Collection,
    collections.abc.Iterable,
)


def adapter_for(declared_type: Any) -> Optional[CollectionAdapter]:
    """
    Pick the adapter for a declared member type.

    Args:
        declared_type: Member type with Optional/Annotated already unwrapped

    Returns:
        An adapter, or None when the type is not a supported parameterized
        collection (bare ``list``, ``str``, mappings, sets, ...).
    """
    origin = get_origin(declared_type)
    args = get_args(declared_type)
    if origin is None or not args:
        return None

    if origin is tuple:
        # Only homogeneous variadic tuples behave like collections
        if len(args) == 2 and args[1] is Ellipsis:
            return FixedSizeAdapter(args[0])
        return None

    if origin in _GROWABLE_ORIGINS and len(args) == 1:
        return GrowableAdapter(args[0])
    return None
