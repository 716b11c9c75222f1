"""
Graph building: populate an instance (and its nested members) from a flat record.

Flat record keys address nested members with ``_`` as the namespace
separator. For a member ``orders`` every key starting with ``orders_`` is
stripped of that prefix and forms the nested record used to populate the
member's value. The separator is part of the prefix, so sibling members
such as ``order`` and ``order_detail`` never claim each other's keys unless
the path really runs through ``order``.

Nesting depth is unbounded.
"""

import logging
from typing import Any, Dict, Iterable, Mapping, Optional

from graphmapper.collection_adapters import CollectionAdapter
from graphmapper.config import get_configuration
from graphmapper.converters import TypeConverter
from graphmapper.introspection import create_instance, describe
from graphmapper.resolver import parent_fingerprint, resolve_instance
from graphmapper.scope import MappingScope

logger = logging.getLogger(__name__)

#: Separates a member name from the nested key it addresses
NAMESPACE_SEPARATOR = "_"


def normalize_record(record: Mapping[str, Any]) -> Dict[str, Any]:
    """Lowercase the keys of a flat record so lookups are case-insensitive."""
    return {str(key).lower(): value for key, value in record.items()}


def nested_record(record: Mapping[str, Any], member_key: str) -> Dict[str, Any]:
    """Collect the keys under ``{member_key}_`` with the prefix stripped."""
    prefix = member_key + NAMESPACE_SEPARATOR
    return {key[len(prefix):]: value for key, value in record.items() if key.startswith(prefix)}


def populate(
    record: Mapping[str, Any],
    instance: Any,
    parent_instance: Any = None,
    *,
    scope: MappingScope,
    converters: Optional[Iterable[TypeConverter]] = None,
) -> Any:
    """
    Populate ``instance`` from a flat record and return it.

    Args:
        record: Flat record with lowercased keys (see normalize_record)
        instance: Instance to mutate
        parent_instance: Instance that owns ``instance``, wired into
            back-reference members of the parent's type
        scope: Scope whose instance cache resolves collection elements
        converters: Converter chain; read from the configuration when omitted

    Returns:
        ``instance``
    """
    if converters is None:
        converters = get_configuration().type_converters

    descriptor = describe(type(instance))

    for key, member in descriptor.members.items():
        # Simple member: the record names it directly
        if key in record:
            member.assign(instance, record[key], converters)
            continue

        if not member.is_complex:
            continue

        nested = nested_record(record, key)
        if not nested:
            if parent_instance is not None and type(parent_instance) is member.value_type:
                # Child pointing back at its parent
                member.assign(instance, parent_instance, converters)
            continue

        if member.collection is not None:
            value = populate_collection(
                member.collection, nested, member.get(instance), instance,
                scope=scope, converters=converters,
            )
        else:
            value = member.get(instance)
            if value is None:
                value = create_instance(member.value_type)
            value = populate(nested, value, instance, scope=scope, converters=converters)

        member.assign(instance, value, converters)

    return instance


def populate_collection(
    adapter: CollectionAdapter,
    record: Mapping[str, Any],
    collection: Any,
    parent_instance: Any,
    *,
    scope: MappingScope,
    converters: Iterable[TypeConverter],
) -> Any:
    """
    Resolve one collection element from ``record`` and add it to ``collection``.

    A record whose values are all None stands for an empty collection: no
    element is created, but the returned collection is never None.

    Returns:
        The collection to assign back to the member (fixed-size collections
        are rebuilt rather than mutated)
    """
    if collection is None:
        collection = adapter.make_empty()

    if all(value is None for value in record.values()):
        return collection

    resolved = resolve_instance(adapter.element_type, record, parent_fingerprint(parent_instance), scope)
    element = populate(record, resolved.instance, parent_instance, scope=scope, converters=converters)

    if resolved.is_new or not adapter.contains(collection, element):
        collection = adapter.append(collection, element)
    return collection
