"""Tests for identity fingerprints and instance resolution."""
from dataclasses import dataclass
from typing import Annotated, Optional

from graphmapper import Id, MappingScope, resolve_instance
from graphmapper.resolver import fold_fingerprint, identity_hash, parent_fingerprint


@dataclass
class Customer:
    Id: int = 0
    FirstName: Optional[str] = None


@dataclass
class CompositeCustomer:
    CustomerId: Annotated[int, Id] = 0
    CustomerType: Annotated[int, Id] = 0
    FirstName: Optional[str] = None


@dataclass
class Comment:
    Text: str = ""


class TestFingerprint:
    def test_identifier_order_does_not_matter(self):
        names = ("CustomerId", "CustomerType")
        first = fold_fingerprint(CompositeCustomer, names, {"customerid": 1, "customertype": 2}, 0)
        second = fold_fingerprint(CompositeCustomer, names, {"customertype": 2, "customerid": 1}, 0)
        assert first == second != 0

    def test_every_identifier_contributes(self):
        names = ("CustomerId", "CustomerType")
        base = fold_fingerprint(CompositeCustomer, names, {"customerid": 1, "customertype": 2}, 0)
        assert fold_fingerprint(CompositeCustomer, names, {"customerid": 1, "customertype": 3}, 0) != base
        assert fold_fingerprint(CompositeCustomer, names, {"customerid": 7, "customertype": 2}, 0) != base

    def test_type_and_parent_contribute(self):
        record = {"id": 1}
        assert fold_fingerprint(Customer, ("Id",), record, 0) != fold_fingerprint(Comment, ("Id",), record, 0)
        assert fold_fingerprint(Customer, ("Id",), record, 0) != fold_fingerprint(Customer, ("Id",), record, 99)

    def test_negative_integer_identifiers_stay_distinct(self):
        assert hash(-1) == hash(-2)
        assert identity_hash(-1) != identity_hash(-2)
        assert fold_fingerprint(Customer, ("Id",), {"id": -1}, 0) != fold_fingerprint(Customer, ("Id",), {"id": -2}, 0)

    def test_missing_and_none_values_fold_to_zero(self):
        assert fold_fingerprint(Customer, ("Id",), {}, 5) == 0
        assert fold_fingerprint(Customer, ("Id",), {"id": None}, 5) == 0

    def test_parent_fingerprint(self):
        parent = Customer()
        assert parent_fingerprint(None) == 0
        assert parent_fingerprint(parent) == parent_fingerprint(parent) != 0


class TestResolveInstance:
    def setup_method(self):
        self.scope = MappingScope()

    def test_same_identity_resolves_to_cached_instance(self):
        first = resolve_instance(Customer, {"id": 1}, 0, self.scope)
        second = resolve_instance(Customer, {"id": 1, "firstname": "Bob"}, 0, self.scope)

        assert first.is_new is True
        assert second.is_new is False
        assert second.instance is first.instance
        assert second.fingerprint == first.fingerprint
        assert len(self.scope.instance_cache) == 1

    def test_different_identity_creates_new_instance(self):
        first = resolve_instance(Customer, {"id": 1}, 0, self.scope)
        second = resolve_instance(Customer, {"id": 2}, 0, self.scope)
        assert second.is_new is True
        assert second.instance is not first.instance

    def test_same_identity_under_different_parents(self):
        first = resolve_instance(Customer, {"id": 1}, 111, self.scope)
        second = resolve_instance(Customer, {"id": 1}, 222, self.scope)
        assert second.instance is not first.instance

    def test_absent_identifier_values_produce_fresh_instances(self):
        first = resolve_instance(Customer, {"id": None}, 0, self.scope)
        second = resolve_instance(Customer, {"firstname": "Bob"}, 0, self.scope)

        assert first.is_new and second.is_new
        assert first.instance is not second.instance
        assert first.fingerprint != second.fingerprint
        assert len(self.scope.instance_cache) == 0

    def test_negative_identifiers_resolve_to_separate_instances(self):
        first = resolve_instance(Customer, {"id": -1}, 0, self.scope)
        second = resolve_instance(Customer, {"id": -2}, 0, self.scope)
        assert second.is_new is True
        assert second.instance is not first.instance
        assert len(self.scope.instance_cache) == 2

    def test_type_without_identifiers_is_never_cached(self):
        first = resolve_instance(Comment, {"text": "hi"}, 0, self.scope)
        second = resolve_instance(Comment, {"text": "hi"}, 0, self.scope)
        assert first.instance is not second.instance
        assert first.fingerprint != second.fingerprint

    def test_scopes_do_not_share_instances(self):
        other = MappingScope()
        first = resolve_instance(Customer, {"id": 1}, 0, self.scope)
        second = resolve_instance(Customer, {"id": 1}, 0, other)
        assert second.is_new is True
        assert second.instance is not first.instance

    def test_cleared_scope_forgets_instances(self):
        first = resolve_instance(Customer, {"id": 1}, 0, self.scope)
        self.scope.clear_instance_cache()
        second = resolve_instance(Customer, {"id": 1}, 0, self.scope)
        assert second.is_new is True
        assert second.instance is not first.instance
