"""
Error taxonomy for the mapping engine.

Three kinds of failure can surface to a caller:
- RecordShapeError: the input cannot be read as key/value records at all
- MemberConversionError: a value could not be converted to a member's type
- MemberAssignmentError: a converted value could not be set on the member

Conversion and assignment errors carry the full mapping context and are
always chained to the exception that caused them.
"""

from typing import Any, Optional, Type


class MappingError(Exception):
    """Base class for all errors raised by graphmapper."""


class RecordShapeError(MappingError, TypeError):
    """Raised when caller input cannot be interpreted as flat records."""


class _MemberError(MappingError):
    """Common base for errors raised while writing a single member."""

    def __init__(
        self,
        cause: BaseException,
        value: Any,
        member_name: str,
        target_type: Any,
        declaring_type: Optional[Type],
    ):
        self.value = value
        self.source_type = type(value)
        self.member_name = member_name
        self.target_type = target_type
        self.declaring_type = declaring_type
        super().__init__(
            f"{cause}: An error occurred while mapping the value '{value}' of type "
            f"{self.source_type} to the member name '{member_name}' of type "
            f"{target_type} on the {declaring_type} class."
        )


class MemberConversionError(_MemberError):
    """Raised when a type converter fails for a member value."""


class MemberAssignmentError(_MemberError):
    """Raised when setting a (converted) value on a member fails."""
