"""
Process-wide mapper configuration.

The engine never owns its configuration; it reads the current
MapperConfiguration at call time. Every mutation bumps ``revision`` so that
caches derived from the configuration (type descriptors) are invalidated the
next time they are read.
"""

import logging
import threading
from typing import Dict, Iterable, List, Optional, Tuple, Type

from graphmapper.converters import TypeConverter, default_type_converters
from graphmapper.identifiers import (
    DEFAULT_IDENTIFIER_CONVENTIONS,
    Id,
    IdentifierConvention,
)

logger = logging.getLogger(__name__)


class MapperConfiguration:
    """
    Conventions, identifier marker and type converters consumed by the engine.

    Thread safety: mutations are serialized by a lock; readers take snapshots
    (tuples) so a concurrent mutation never exposes a half-updated list.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._revision = 0
        self._identifier_marker: type = Id
        self._identifier_conventions: List[IdentifierConvention] = []
        self._type_converters: List[TypeConverter] = default_type_converters()
        self._explicit_identifiers: Dict[Type, Tuple[str, ...]] = {}

    @property
    def revision(self) -> int:
        """Token that changes whenever the configuration changes."""
        return self._revision

    def _changed(self) -> None:
        self._revision += 1

    # ------------------------------------------------------------------
    # Identifier marker
    # ------------------------------------------------------------------

    @property
    def identifier_marker(self) -> type:
        return self._identifier_marker

    @identifier_marker.setter
    def identifier_marker(self, marker: type) -> None:
        if not isinstance(marker, type):
            raise TypeError(f"identifier_marker must be a class, got {marker!r}")
        with self._lock:
            self._identifier_marker = marker
            self._changed()

    # ------------------------------------------------------------------
    # Naming conventions
    # ------------------------------------------------------------------

    @property
    def identifier_conventions(self) -> Tuple[IdentifierConvention, ...]:
        """Registered conventions, in registration order."""
        return tuple(self._identifier_conventions)

    def effective_identifier_conventions(self) -> Tuple[IdentifierConvention, ...]:
        """Registered conventions, or the defaults when none are registered."""
        return tuple(self._identifier_conventions or DEFAULT_IDENTIFIER_CONVENTIONS)

    def add_identifier_convention(self, convention: IdentifierConvention) -> None:
        with self._lock:
            self._identifier_conventions.append(convention)
            self._changed()

    def apply_default_identifier_conventions(self) -> None:
        """Register the default ``Id`` and ``{TypeName}Id`` conventions explicitly."""
        with self._lock:
            self._identifier_conventions.extend(DEFAULT_IDENTIFIER_CONVENTIONS)
            self._changed()

    def clear_identifier_conventions(self) -> None:
        with self._lock:
            self._identifier_conventions.clear()
            self._changed()

    # ------------------------------------------------------------------
    # Explicit identifiers
    # ------------------------------------------------------------------

    def add_identifier(self, cls: Type, identifier: str) -> None:
        """Declare ``identifier`` as the only identifier of ``cls``."""
        self.add_identifiers(cls, [identifier])

    def add_identifiers(self, cls: Type, identifiers: Iterable[str]) -> None:
        """Declare the identifiers of ``cls``, replacing any discovered ones."""
        with self._lock:
            self._explicit_identifiers[cls] = tuple(identifiers)
            self._changed()
        logger.debug(f"Explicit identifiers for {cls.__name__}: {self._explicit_identifiers[cls]}")

    def get_explicit_identifiers(self, cls: Type) -> Optional[Tuple[str, ...]]:
        return self._explicit_identifiers.get(cls)

    # ------------------------------------------------------------------
    # Type converters
    # ------------------------------------------------------------------

    @property
    def type_converters(self) -> Tuple[TypeConverter, ...]:
        """Registered converters, in registration order."""
        return tuple(self._type_converters)

    def add_type_converter(self, converter: TypeConverter) -> None:
        with self._lock:
            self._type_converters.append(converter)
            self._changed()

    def remove_type_converter(self, converter: TypeConverter) -> None:
        with self._lock:
            self._type_converters.remove(converter)
            self._changed()

    def apply_default_type_converters(self) -> None:
        with self._lock:
            self._type_converters.extend(default_type_converters())
            self._changed()

    def clear_type_converters(self) -> None:
        with self._lock:
            self._type_converters.clear()
            self._changed()


_configuration = MapperConfiguration()


def get_configuration() -> MapperConfiguration:
    """Return the process-wide configuration."""
    return _configuration


def set_configuration(configuration: MapperConfiguration) -> None:
    """Replace the process-wide configuration (and drop derived descriptors)."""
    global _configuration
    _configuration = configuration
    from graphmapper.type_cache import clear_type_cache
    clear_type_cache()


def reset_configuration() -> MapperConfiguration:
    """Install a fresh default configuration and return it."""
    set_configuration(MapperConfiguration())
    return _configuration
