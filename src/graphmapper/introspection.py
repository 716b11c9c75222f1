"""
Type introspection: per-type member handles and identifier discovery.

``describe(cls)`` returns the TypeDescriptor of a target type. Descriptors are
computed lazily on first use, shared across threads and dropped when the
configuration changes (see graphmapper.type_cache).

Members of a type are:
- dataclass fields
- annotated class attributes of plain classes (ClassVar excluded)
- properties that define a setter

Private names (leading underscore) are never members.
"""

import collections.abc
import datetime
import decimal
import enum
import functools
import inspect
import logging
import types
import uuid
from dataclasses import MISSING, dataclass, fields, is_dataclass
from typing import (
    Annotated,
    Any,
    Callable,
    ClassVar,
    Dict,
    Iterable,
    Mapping,
    Optional,
    Tuple,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)

from graphmapper.collection_adapters import CollectionAdapter, adapter_for
from graphmapper.config import MapperConfiguration, get_configuration
from graphmapper.converters import TypeConverter, convert_value
from graphmapper.errors import MappingError, MemberAssignmentError, MemberConversionError
from graphmapper.identifiers import is_marked
from graphmapper.type_cache import descriptor_cache

logger = logging.getLogger(__name__)

# Types that are always populated directly and never recursed into
SCALAR_TYPES: Tuple[type, ...] = (
    str, bytes, bytearray, bool, int, float, complex,
    decimal.Decimal,
    datetime.datetime, datetime.date, datetime.time, datetime.timedelta,
    uuid.UUID,
    enum.Enum,
)

_CONTAINER_TYPES: Tuple[type, ...] = (
    list, tuple, set, frozenset, dict, collections.abc.Mapping, type,
)

_UNION_TYPES = (Union, types.UnionType)


def unwrap_annotation(annotation: Any) -> Tuple[Any, tuple, bool]:
    """
    Strip Optional and Annotated wrappers from a member annotation.

    Returns:
        (value_type, annotation_metadata, nullable)
    """
    metadata: tuple = ()
    nullable = False
    while True:
        origin = get_origin(annotation)
        if origin is Annotated:
            metadata += annotation.__metadata__
            annotation = get_args(annotation)[0]
        elif origin in _UNION_TYPES:
            args = [arg for arg in get_args(annotation) if arg is not type(None)]
            if len(args) != 1:
                # A genuine union; leave it for the converters to skip
                return annotation, metadata, nullable
            nullable = True
            annotation = args[0]
        else:
            return annotation, metadata, nullable


def is_composite_type(value_type: Any) -> bool:
    """Check whether a member type is a class the builder recurses into."""
    if not isinstance(value_type, type) or value_type is object:
        return False
    return not issubclass(value_type, SCALAR_TYPES + _CONTAINER_TYPES)


@dataclass(frozen=True)
class MemberHandle:
    """Capability handle for one readable and writable member of a type."""
    name: str
    declared_type: Any
    value_type: Any
    declaring_type: type
    annotation_metadata: tuple = ()
    field_metadata: Optional[Mapping] = None
    nullable: bool = False
    collection: Optional[CollectionAdapter] = None
    frozen: bool = False

    @property
    def is_complex(self) -> bool:
        """True for nested objects and collections of nested objects."""
        return self.collection is not None or is_composite_type(self.value_type)

    def get(self, instance: Any) -> Any:
        return getattr(instance, self.name, None)

    def set(self, instance: Any, value: Any) -> None:
        if self.frozen:
            object.__setattr__(instance, self.name, value)
        else:
            setattr(instance, self.name, value)

    def assign(self, instance: Any, value: Any, converters: Iterable[TypeConverter]) -> None:
        """Convert ``value`` to this member's type if needed and set it."""
        try:
            value = convert_value(value, self.value_type, converters)
        except MappingError:
            raise
        except Exception as e:
            raise MemberConversionError(e, value, self.name, self.value_type, self.declaring_type) from e

        try:
            self.set(instance, value)
        except Exception as e:
            raise MemberAssignmentError(e, value, self.name, self.value_type, self.declaring_type) from e


@dataclass(frozen=True)
class TypeDescriptor:
    """
    Immutable metadata for one target type.

    members is keyed by lowercased member name; identifier_names keeps the
    declared case of each identifier, in discovery order.
    """
    type: type
    members: Mapping[str, MemberHandle]
    identifier_names: Tuple[str, ...]
    factory: Callable[[], Any]

    @property
    def has_identity(self) -> bool:
        return bool(self.identifier_names)

    def member(self, name: str) -> Optional[MemberHandle]:
        return self.members.get(name.lower())

    def create_instance(self) -> Any:
        return self.factory()


# =============================================================================
# MEMBER ENUMERATION
# =============================================================================

def _type_hints(cls: type) -> Dict[str, Any]:
    try:
        return get_type_hints(cls, include_extras=True)
    except Exception as e:
        logger.warning(f"Could not resolve annotations of {cls.__name__}, using raw annotations: {e}")
        hints: Dict[str, Any] = {}
        for base in reversed(cls.__mro__):
            hints.update(inspect.get_annotations(base))
        return hints


def _declaring_type(cls: type, name: str) -> type:
    for base in cls.__mro__:
        if name in inspect.get_annotations(base) or name in vars(base):
            return base
    return cls


def _is_frozen(cls: type) -> bool:
    params = getattr(cls, '__dataclass_params__', None)
    return bool(params and params.frozen)


def _make_member(cls: type, name: str, annotation: Any, field_metadata: Optional[Mapping] = None) -> MemberHandle:
    value_type, annotation_metadata, nullable = unwrap_annotation(annotation)
    adapter = adapter_for(value_type)
    if adapter is not None and not is_composite_type(adapter.element_type):
        # Collections of scalars are populated directly, never element by element
        adapter = None
    return MemberHandle(
        name=name,
        declared_type=annotation,
        value_type=value_type,
        declaring_type=_declaring_type(cls, name),
        annotation_metadata=annotation_metadata,
        field_metadata=field_metadata,
        nullable=nullable,
        collection=adapter,
        frozen=_is_frozen(cls),
    )


def enumerate_members(cls: type) -> Dict[str, MemberHandle]:
    """Build the case-insensitive member map of ``cls``."""
    members: Dict[str, MemberHandle] = {}
    hints = _type_hints(cls)

    def add(member: MemberHandle) -> None:
        if not member.name.startswith('_'):
            members.setdefault(member.name.lower(), member)

    if is_dataclass(cls):
        for f in fields(cls):
            add(_make_member(cls, f.name, hints.get(f.name, f.type), f.metadata))
    else:
        for name, annotation in hints.items():
            if annotation is ClassVar or get_origin(annotation) is ClassVar:
                continue
            add(_make_member(cls, name, annotation))

    for name, prop in inspect.getmembers(cls, lambda attr: isinstance(attr, property)):
        if prop.fset is None:
            continue
        try:
            annotation = get_type_hints(prop.fget, include_extras=True).get('return', Any)
        except Exception:
            annotation = Any
        add(_make_member(cls, name, annotation))

    return members


# =============================================================================
# IDENTIFIER DISCOVERY
# =============================================================================

def discover_identifiers(
    cls: type,
    members: Mapping[str, MemberHandle],
    configuration: MapperConfiguration,
) -> Tuple[str, ...]:
    """
    Find the identity-bearing members of ``cls``.

    Resolution order:
    1. Identifiers declared through the configuration
    2. Members carrying the identifier marker (all of them)
    3. The first naming convention that names an existing member
    4. None: every record produces a fresh instance
    """
    explicit = configuration.get_explicit_identifiers(cls)
    if explicit is not None:
        return explicit

    marker = configuration.identifier_marker
    marked = tuple(
        member.name for member in members.values()
        if is_marked(marker, member.annotation_metadata, member.field_metadata)
    )
    if marked:
        return marked

    for convention in configuration.effective_identifier_conventions():
        candidate = convention(cls)
        if candidate and candidate.lower() in members:
            return (members[candidate.lower()].name,)

    return ()


# =============================================================================
# CONSTRUCTION
# =============================================================================

def _construct_bare(cls: type) -> Any:
    """Create ``cls`` without calling ``__init__``, seeding dataclass defaults."""
    instance = object.__new__(cls) if cls.__new__ is object.__new__ else cls.__new__(cls)
    if is_dataclass(cls):
        for f in fields(cls):
            if f.default is not MISSING:
                value = f.default
            elif f.default_factory is not MISSING:
                value = f.default_factory()
            else:
                value = None
            object.__setattr__(instance, f.name, value)
    return instance


def make_factory(cls: type) -> Callable[[], Any]:
    """Return the parameterless construction path for ``cls``."""
    try:
        signature = inspect.signature(cls)
    except (TypeError, ValueError):
        return cls

    required = [
        param for param in signature.parameters.values()
        if param.default is param.empty
        and param.kind not in (param.VAR_POSITIONAL, param.VAR_KEYWORD)
    ]
    if not required:
        return cls
    return functools.partial(_construct_bare, cls)


# =============================================================================
# PUBLIC API
# =============================================================================

def _build_descriptor(cls: type) -> TypeDescriptor:
    configuration = get_configuration()
    members = enumerate_members(cls)
    identifiers = discover_identifiers(cls, members, configuration)
    logger.debug(
        f"Described {cls.__name__}: {len(members)} member(s), "
        f"identifiers={list(identifiers) or 'none'}"
    )
    return TypeDescriptor(
        type=cls,
        members=types.MappingProxyType(members),
        identifier_names=identifiers,
        factory=make_factory(cls),
    )


def describe(cls: type) -> TypeDescriptor:
    """Return the (cached) descriptor of ``cls``."""
    return descriptor_cache.get_or_compute(cls, lambda: _build_descriptor(cls))


def get_identifiers(cls: type) -> Optional[Tuple[str, ...]]:
    """Identifier names of ``cls``, or None when it has no identity."""
    return describe(cls).identifier_names or None


def get_members(cls: type) -> Mapping[str, MemberHandle]:
    return describe(cls).members


def create_instance(cls: type) -> Any:
    """Create an instance of ``cls`` through its parameterless construction path."""
    return describe(cls).create_instance()
