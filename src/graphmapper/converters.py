"""
Type converters applied when a raw value does not match a member's type.

Converters form an ordered chain. For a given value and target type the chain
is walked in ascending ``order`` and the first converter whose
``can_convert()`` accepts the pair performs the conversion. Converters that
share an order keep their registration order.
"""

import datetime
import decimal
import enum
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, List

logger = logging.getLogger(__name__)


class TypeConverter(ABC):
    """Strategy for changing a value's representation to a target type."""

    #: Position in the chain; lower runs first
    order: int = 1000

    @abstractmethod
    def can_convert(self, value: Any, target_type: type) -> bool:
        """Return True when this converter handles ``value`` -> ``target_type``."""

    @abstractmethod
    def convert(self, value: Any, target_type: type) -> Any:
        """Convert ``value`` to ``target_type``."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(order={self.order})"


class UuidConverter(TypeConverter):
    """Converts text, 16-byte binary and integer values to ``uuid.UUID``."""

    order = 100

    def can_convert(self, value: Any, target_type: type) -> bool:
        return target_type is uuid.UUID

    def convert(self, value: Any, target_type: type) -> Any:
        if isinstance(value, str):
            return uuid.UUID(value)
        if isinstance(value, (bytes, bytearray, memoryview)):
            return uuid.UUID(bytes=bytes(value))
        if isinstance(value, int) and not isinstance(value, bool):
            return uuid.UUID(int=value)
        raise TypeError(f"Cannot interpret {type(value).__name__} as a UUID")


class EnumConverter(TypeConverter):
    """Parses a value's string form against an enumeration's member names."""

    order = 100

    def can_convert(self, value: Any, target_type: type) -> bool:
        return isinstance(target_type, type) and issubclass(target_type, enum.Enum)

    def convert(self, value: Any, target_type: type) -> Any:
        if isinstance(value, target_type):
            return value

        name = str(value).strip()
        if name in target_type.__members__:
            return target_type.__members__[name]

        try:
            return target_type(value)
        except ValueError:
            pass

        # Numeric strings name members by value, e.g. "2" for Status.ACTIVE = 2
        try:
            return target_type(int(name))
        except ValueError:
            raise ValueError(
                f"'{value}' is not a valid {target_type.__name__}; "
                f"expected one of {list(target_type.__members__)}"
            ) from None


def _to_int(value: Any) -> int:
    # int() truncates floats and Decimals toward zero
    return int(value)


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ('true', 'false'):
            return text == 'true'
        raise ValueError(f"String '{value}' was not recognized as a valid Boolean")
    return bool(value)


def _to_decimal(value: Any) -> decimal.Decimal:
    if isinstance(value, float):
        return decimal.Decimal(str(value))
    try:
        return decimal.Decimal(value)
    except decimal.InvalidOperation:
        raise ValueError(f"'{value}' is not a valid decimal") from None


def _to_datetime(value: Any) -> datetime.datetime:
    if isinstance(value, str):
        return datetime.datetime.fromisoformat(value)
    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, datetime.date):
        return datetime.datetime.combine(value, datetime.time())
    raise TypeError(f"Cannot convert {type(value).__name__} to datetime")


def _to_date(value: Any) -> datetime.date:
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, str):
        return datetime.date.fromisoformat(value)
    raise TypeError(f"Cannot convert {type(value).__name__} to date")


def _to_time(value: Any) -> datetime.time:
    if isinstance(value, datetime.datetime):
        return value.time()
    if isinstance(value, str):
        return datetime.time.fromisoformat(value)
    raise TypeError(f"Cannot convert {type(value).__name__} to time")


class ValueTypeConverter(TypeConverter):
    """Generic representation change between primitive value types.

    Covers numbers, booleans, decimals and date/time values. Strings are not
    value types and are left alone, as are enumerations and UUIDs, which have
    dedicated converters.
    """

    order = 1000

    CONVERSIONS: Dict[type, Callable[[Any], Any]] = {
        int: _to_int,
        float: float,
        complex: complex,
        bool: _to_bool,
        decimal.Decimal: _to_decimal,
        datetime.datetime: _to_datetime,
        datetime.date: _to_date,
        datetime.time: _to_time,
    }

    def can_convert(self, value: Any, target_type: type) -> bool:
        return target_type in self.CONVERSIONS

    def convert(self, value: Any, target_type: type) -> Any:
        return self.CONVERSIONS[target_type](value)


def default_type_converters() -> List[TypeConverter]:
    """Fresh instances of the built-in converters in registration order."""
    return [UuidConverter(), EnumConverter(), ValueTypeConverter()]


def convert_value(value: Any, target_type: Any, converters: Iterable[TypeConverter]) -> Any:
    """
    Convert ``value`` to ``target_type`` through the converter chain.

    Args:
        value: Raw value taken from a flat record
        target_type: The member's declared value type (already unwrapped)
        converters: Converters in registration order

    Returns:
        The converted value, or ``value`` unchanged when it is None, already of
        the target type, the target is not a concrete class, or no converter
        accepts it.
    """
    if value is None or not isinstance(target_type, type) or type(value) is target_type:
        return value

    # sorted() is stable, so equal orders keep registration order
    for converter in sorted(converters, key=lambda c: c.order):
        if converter.can_convert(value, target_type):
            logger.debug(f"Converting {type(value).__name__} -> {target_type.__name__} with {converter!r}")
            return converter.convert(value, target_type)
    return value
