"""
Entry points: map flat records to object graphs.

    rows = [
        {"Id": 1, "FirstName": "Bob", "Orders_Id": 10, "Orders_OrderTotal": 5.0},
        {"Id": 1, "Orders_Id": 11, "Orders_OrderTotal": 7.5},
    ]
    customers = list(map_records(Customer, rows))   # one Customer, two orders

Every entry point takes an optional MappingScope. Without one, the scope
bound to the current context is used (see graphmapper.scope), so records
mapped in separate calls within one context keep accumulating into the same
instances until the scope's instance cache is cleared.
"""

import logging
import types
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Type, TypeVar

from graphmapper.errors import RecordShapeError
from graphmapper.graph_builder import normalize_record, populate
from graphmapper.resolver import resolve_instance
from graphmapper.scope import MappingScope, current_scope
from graphmapper.type_cache import clear_type_cache

T = TypeVar('T')

logger = logging.getLogger(__name__)


def as_record(obj: Any) -> Mapping[str, Any]:
    """
    Interpret ``obj`` as a flat record.

    Accepts mappings, SQLAlchemy-style rows (``_mapping``), namedtuples
    (``_asdict()``), sqlite3-style rows (``keys()`` plus item access) and
    ``types.SimpleNamespace``.

    Raises:
        RecordShapeError: ``obj`` has none of these shapes
    """
    if isinstance(obj, Mapping):
        return obj

    mapping = getattr(obj, '_mapping', None)
    if isinstance(mapping, Mapping):
        return mapping

    if callable(getattr(obj, '_asdict', None)):
        return obj._asdict()

    if isinstance(obj, types.SimpleNamespace):
        return vars(obj)

    keys = getattr(obj, 'keys', None)
    if callable(keys) and hasattr(obj, '__getitem__'):
        return {key: obj[key] for key in keys()}

    raise RecordShapeError(f"Object of type {type(obj).__name__} cannot be converted to a flat record")


def _check_record_sequence(records: Any) -> None:
    if isinstance(records, (str, bytes, bytearray, Mapping)) or not isinstance(records, Iterable):
        raise RecordShapeError(
            f"Expected a sequence of flat records, got {type(records).__name__}"
        )


def _map_records(cls: Type[T], records: Iterable[Optional[Mapping[str, Any]]], scope: MappingScope) -> Iterator[T]:
    roots: Dict[int, Any] = {}
    count = 0

    for record in records:
        if record is None:
            continue
        if not isinstance(record, Mapping):
            raise RecordShapeError(f"Record of type {type(record).__name__} is not a mapping")

        normalized = normalize_record(record)
        resolved = resolve_instance(cls, normalized, 0, scope)
        roots.setdefault(resolved.fingerprint, resolved.instance)
        populate(normalized, resolved.instance, scope=scope)
        count += 1

    logger.debug(f"Mapped {count} record(s) into {len(roots)} {cls.__name__} instance(s)")
    yield from roots.values()


def map_records(
    cls: Type[T],
    records: Optional[Iterable[Optional[Mapping[str, Any]]]],
    scope: Optional[MappingScope] = None,
) -> Iterator[T]:
    """
    Map a sequence of flat records to instances of ``cls``.

    Records are consumed when the result is first iterated; every record is
    processed before the first instance is produced. None records are skipped.

    Args:
        cls: Root target type
        records: Flat records (mappings with string keys)
        scope: Scope whose instance cache is used; defaults to current_scope()

    Returns:
        Iterator over one instance per logical root entity

    Raises:
        RecordShapeError: ``records`` is not a sequence of mappings
    """
    if records is None:
        return iter(())
    _check_record_sequence(records)
    return _map_records(cls, records, scope if scope is not None else current_scope())


def map_record(cls: Type[T], record: Optional[Mapping[str, Any]], scope: Optional[MappingScope] = None) -> Optional[T]:
    """Map a single flat record to an instance of ``cls`` (None for a None record)."""
    if record is None:
        return None
    if not isinstance(record, Mapping):
        raise RecordShapeError(f"Record of type {type(record).__name__} is not a mapping")
    return next(map_records(cls, [record], scope), None)


def map_dynamic(cls: Type[T], obj: Any, scope: Optional[MappingScope] = None) -> Optional[T]:
    """Map one record-like object (row, namedtuple, namespace, mapping) to ``cls``."""
    if obj is None:
        return None
    return map_record(cls, as_record(obj), scope)


def map_dynamic_many(cls: Type[T], objs: Optional[Iterable[Any]], scope: Optional[MappingScope] = None) -> Iterator[T]:
    """
    Map a sequence of record-like objects to instances of ``cls``.

    Every item is interpreted eagerly, so a shape error is raised before any
    mapping happens. None items are skipped.
    """
    if objs is None:
        return iter(())
    _check_record_sequence(objs)
    records: List[Mapping[str, Any]] = [as_record(obj) for obj in objs if obj is not None]
    return map_records(cls, records, scope)


def clear_instance_cache(scope: Optional[MappingScope] = None) -> None:
    """Forget every instance built in ``scope`` (the current scope by default)."""
    (scope if scope is not None else current_scope()).clear_instance_cache()


def clear_all_caches(scope: Optional[MappingScope] = None) -> None:
    """Clear the type descriptor cache and the scope's instance cache."""
    clear_type_cache()
    clear_instance_cache(scope)
