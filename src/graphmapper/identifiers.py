"""
Identifier markers and naming conventions.

A member becomes identity-bearing in one of three ways, checked in order:

1. Explicitly, through ``MapperConfiguration.add_identifier(s)``
2. By carrying the identifier marker, either as annotation metadata::

       @dataclass
       class Customer:
           customer_id: Annotated[int, Id] = 0

   or as dataclass field metadata::

       @dataclass
       class Customer:
           customer_id: int = id_field(default=0)

3. By matching the first naming convention that names an existing member.
"""

from dataclasses import field
from typing import Callable, List, Type

# A naming convention maps a target type to a candidate identifier member name
IdentifierConvention = Callable[[Type], str]


class Id:
    """Marker declaring that a member is an identifier."""

    def __repr__(self) -> str:
        return "Id"


def id_field(**kwargs):
    """dataclasses.field() with the identifier marker attached to its metadata."""
    metadata = dict(kwargs.pop('metadata', None) or {})
    metadata[Id] = True
    return field(metadata=metadata, **kwargs)


def is_marked(marker: type, annotation_metadata: tuple, field_metadata) -> bool:
    """Check whether a member carries ``marker`` on its annotation or field."""
    for item in annotation_metadata:
        if item is marker or isinstance(item, marker):
            return True
    return bool(field_metadata) and marker in field_metadata


def id_convention(cls: Type) -> str:
    return "Id"


def type_name_id_convention(cls: Type) -> str:
    return f"{cls.__name__}Id"


DEFAULT_IDENTIFIER_CONVENTIONS: List[IdentifierConvention] = [
    id_convention,
    type_name_id_convention,
]
