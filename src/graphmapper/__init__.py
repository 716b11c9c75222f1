"""
Convention-based mapping of flat key/value records to typed object graphs.

graphmapper turns loosely typed rows (query results, CSV lines, API payloads)
into dataclass and plain-class instances, including nested objects and
collections, by matching record keys to member names.

Key Features:
- Case-insensitive key matching, ``_``-delimited keys for nested members
- Identity-based instance caching: rows sharing identifiers merge into one
  object and accumulate into its child collections
- Identifier discovery by marker, explicit configuration or naming convention
- Pluggable, ordered type converters (UUIDs, enums, numbers, dates)
- Explicit mapping scopes with pluggable storage (dict, thread-local, contextvars)

Quick Start:
    >>> from dataclasses import dataclass, field
    >>> from typing import List
    >>> from graphmapper import map_records, mapping_scope
    >>>
    >>> @dataclass
    ... class Order:
    ...     Id: int = 0
    ...     OrderTotal: float = 0.0
    >>>
    >>> @dataclass
    ... class Customer:
    ...     Id: int = 0
    ...     FirstName: str = ""
    ...     Orders: List[Order] = field(default_factory=list)
    >>>
    >>> rows = [
    ...     {"Id": 1, "FirstName": "Bob", "Orders_Id": 10, "Orders_OrderTotal": 5.0},
    ...     {"Id": 1, "Orders_Id": 11, "Orders_OrderTotal": 7.5},
    ... ]
    >>> with mapping_scope() as scope:
    ...     [customer] = map_records(Customer, rows, scope)
    >>> [order.Id for order in customer.Orders]
    [10, 11]

Modules:
    - mapper: entry points (map_records, map_record, map_dynamic, ...)
    - graph_builder: recursive population of instances from flat records
    - resolver: identity fingerprints and fetch-or-create of instances
    - introspection: cached per-type member handles and identifiers
    - converters: ordered type converter chain
    - collection_adapters: list and tuple collection members
    - scope / instance_cache: scope-lived instance caching
    - config: process-wide configuration
"""

# Configuration
from graphmapper.config import (
    MapperConfiguration,
    get_configuration,
    set_configuration,
    reset_configuration,
)

# Identifiers
from graphmapper.identifiers import (
    Id,
    id_field,
    DEFAULT_IDENTIFIER_CONVENTIONS,
)

# Converters
from graphmapper.converters import (
    TypeConverter,
    UuidConverter,
    EnumConverter,
    ValueTypeConverter,
    convert_value,
    default_type_converters,
)

# Errors
from graphmapper.errors import (
    MappingError,
    RecordShapeError,
    MemberConversionError,
    MemberAssignmentError,
)

# Introspection
from graphmapper.introspection import (
    MemberHandle,
    TypeDescriptor,
    describe,
    get_identifiers,
    get_members,
    create_instance,
)
from graphmapper.type_cache import clear_type_cache, invalidate_type

# Scopes
from graphmapper.scope import (
    ContextStorage,
    LocalStorage,
    ThreadLocalStorage,
    ContextVarStorage,
    MappingScope,
    current_scope,
    mapping_scope,
)
from graphmapper.instance_cache import InstanceCache

# Engine
from graphmapper.resolver import ResolvedInstance, resolve_instance
from graphmapper.graph_builder import populate, normalize_record

# Entry points
from graphmapper.mapper import (
    map_record,
    map_records,
    map_dynamic,
    map_dynamic_many,
    clear_instance_cache,
    clear_all_caches,
)

__all__ = [
    # Configuration
    'MapperConfiguration',
    'get_configuration',
    'set_configuration',
    'reset_configuration',
    # Identifiers
    'Id',
    'id_field',
    'DEFAULT_IDENTIFIER_CONVENTIONS',
    # Converters
    'TypeConverter',
    'UuidConverter',
    'EnumConverter',
    'ValueTypeConverter',
    'convert_value',
    'default_type_converters',
    # Errors
    'MappingError',
    'RecordShapeError',
    'MemberConversionError',
    'MemberAssignmentError',
    # Introspection
    'MemberHandle',
    'TypeDescriptor',
    'describe',
    'get_identifiers',
    'get_members',
    'create_instance',
    'clear_type_cache',
    'invalidate_type',
    # Scopes
    'ContextStorage',
    'LocalStorage',
    'ThreadLocalStorage',
    'ContextVarStorage',
    'MappingScope',
    'current_scope',
    'mapping_scope',
    'InstanceCache',
    # Engine
    'ResolvedInstance',
    'resolve_instance',
    'populate',
    'normalize_record',
    # Entry points
    'map_record',
    'map_records',
    'map_dynamic',
    'map_dynamic_many',
    'clear_instance_cache',
    'clear_all_caches',
]

__version__ = '1.0.0'
__description__ = 'Convention-based mapping of flat records to typed object graphs'
