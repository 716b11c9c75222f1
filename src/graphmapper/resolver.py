"""
Instance resolution: fetch-or-create the instance a flat record describes.

The identity of a record is a fingerprint folded from its identifier values,
the target type and the parent context:

    fingerprint = sum(identity_hash(value) + hash(type) + parent_fingerprint
                      for each identifier present with a non-None value)

The fold is a sum, so the order in which identifiers appear in a record does
not matter; only which identifiers are present and their values. A record
whose fold is zero (no identifiers, or all identifier values missing) gets a
fresh instance under a fingerprint that is never reused.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Mapping

from graphmapper.introspection import describe
from graphmapper.scope import MappingScope

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedInstance:
    """Result of resolve_instance()."""
    is_new: bool
    instance: Any
    fingerprint: int


def unique_fingerprint() -> int:
    """A fingerprint drawn from a non-repeating source."""
    return uuid.uuid4().int


def parent_fingerprint(parent_instance: Any) -> int:
    """Identity of a parent instance as used in its children's fingerprints."""
    return 0 if parent_instance is None else id(parent_instance)


def identity_hash(value: Any) -> int:
    """Hash of one identifier value; integers stand for themselves."""
    # hash() maps -1 and -2 to the same value
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return hash(value)


def fold_fingerprint(cls: type, identifier_names, record: Mapping[str, Any], parent: int) -> int:
    """
    Fold the identifier values of ``record`` into a fingerprint.

    Args:
        cls: Target type
        identifier_names: Identifier member names of ``cls``
        record: Flat record with lowercased keys
        parent: Fingerprint of the parent context (0 for roots)

    Returns:
        The folded fingerprint, 0 when no identifier value is present
    """
    fingerprint = 0
    type_hash = hash(cls)
    for name in identifier_names:
        value = record.get(name.lower())
        if value is not None:
            fingerprint += identity_hash(value) + type_hash + parent
    return fingerprint


def resolve_instance(cls: type, record: Mapping[str, Any], parent: int, scope: MappingScope) -> ResolvedInstance:
    """
    Resolve the instance of ``cls`` that ``record`` describes.

    Args:
        cls: Target type
        record: Flat record with lowercased keys
        parent: Fingerprint of the parent context (0 for roots)
        scope: Scope whose instance cache is consulted

    Returns:
        ResolvedInstance(is_new, instance, fingerprint)
    """
    descriptor = describe(cls)

    if descriptor.has_identity:
        fingerprint = fold_fingerprint(cls, descriptor.identifier_names, record, parent)

        if fingerprint != 0:
            cache = scope.instance_cache
            instance = cache.get(fingerprint)
            if instance is not None:
                logger.debug(f"Instance cache hit for {cls.__name__} (fingerprint={fingerprint})")
                return ResolvedInstance(False, instance, fingerprint)

            instance = descriptor.create_instance()
            cache.put(fingerprint, instance)
            return ResolvedInstance(True, instance, fingerprint)

        # A fold that sums to zero by collision is treated like missing values
        logger.debug(f"No identifier values for {cls.__name__}; creating a fresh instance")

    return ResolvedInstance(True, descriptor.create_instance(), unique_fingerprint())
