"""Tests for recursive graph building from flat records."""
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from graphmapper import map_record, map_records, normalize_record, populate
from graphmapper.graph_builder import nested_record


@dataclass
class OrderLine:
    Id: int = 0
    Sku: str = ""
    Quantity: int = 0


@dataclass
class Order:
    Id: int = 0
    OrderTotal: float = 0.0
    Lines: List[OrderLine] = field(default_factory=list)


@dataclass
class PostalAddress:
    Street: str = ""
    City: str = ""


@dataclass
class Customer:
    Id: int = 0
    FirstName: Optional[str] = None
    LastName: Optional[str] = None
    Address: Optional[PostalAddress] = None
    Orders: Optional[List[Order]] = None


@dataclass
class Archive:
    Id: int = 0
    Orders: Tuple[Order, ...] = ()


@dataclass
class Purchase:
    Id: int = 0


@dataclass
class PurchaseDetail:
    Id: int = 0
    Sku: str = ""


@dataclass
class Basket:
    Id: int = 0
    Order: Optional[Purchase] = None
    OrderDetail: Optional[PurchaseDetail] = None


@dataclass
class Line:
    Id: int = 0
    Owner: Optional["Invoice"] = field(default=None, repr=False, compare=False)


@dataclass
class Invoice:
    Id: int = 0
    Lines: Sequence[Line] = field(default_factory=list)


@dataclass
class Note:
    Text: str = ""


@dataclass
class Journal:
    Id: int = 0
    Notes: List[Note] = field(default_factory=list)


def test_nested_record_requires_separator():
    record = {"order_id": 1, "orderdetail_id": 2, "order": 3}
    assert nested_record(record, "order") == {"id": 1}
    assert nested_record(record, "orderdetail") == {"id": 2}


def test_normalize_record_lowercases_keys():
    assert normalize_record({"FirstName": "Bob", "ORDERS_Id": 1}) == {"firstname": "Bob", "orders_id": 1}


class TestSimpleMembers:
    def test_keys_are_case_insensitive(self, scope):
        variants = [
            {"Id": 1, "FirstName": "Bob"},
            {"id": 1, "firstname": "Bob"},
            {"ID": 1, "FIRSTNAME": "Bob"},
        ]
        mapped = [map_record(Customer, record, scope) for record in variants]
        scope.clear_instance_cache()
        assert all(customer.Id == 1 and customer.FirstName == "Bob" for customer in mapped)
        # Same identity in one scope: all three spellings resolve to one instance
        assert mapped[0] is mapped[1] is mapped[2]

    def test_unknown_keys_are_ignored(self, scope):
        customer = map_record(Customer, {"Id": 1, "Nickname": "B"}, scope)
        assert customer == Customer(Id=1)

    def test_populate_returns_instance(self, scope):
        customer = Customer()
        assert populate({"firstname": "Ann"}, customer, scope=scope) is customer
        assert customer.FirstName == "Ann"


class TestNestedObjects:
    def test_single_nested_object(self, scope):
        customer = map_record(
            Customer,
            {"Id": 1, "Address_Street": "1 Main St", "Address_City": "Springfield"},
            scope,
        )
        assert customer.Address == PostalAddress(Street="1 Main St", City="Springfield")

    def test_existing_nested_object_is_updated(self, scope):
        customer = map_record(Customer, {"Id": 1, "Address_Street": "1 Main St"}, scope)
        address = customer.Address
        map_record(Customer, {"Id": 1, "Address_City": "Springfield"}, scope)
        assert customer.Address is address
        assert address == PostalAddress(Street="1 Main St", City="Springfield")

    def test_member_without_keys_is_left_alone(self, scope):
        customer = map_record(Customer, {"Id": 1}, scope)
        assert customer.Address is None
        assert customer.Orders is None

    def test_sibling_prefixes_do_not_cross_match(self, scope):
        basket = map_record(Basket, {"Id": 1, "OrderDetail_Id": 9, "OrderDetail_Sku": "X"}, scope)
        assert basket.Order is None
        assert basket.OrderDetail == PurchaseDetail(Id=9, Sku="X")

        basket = map_record(Basket, {"Id": 2, "Order_Id": 5, "OrderDetail_Id": 9}, scope)
        assert basket.Order == Purchase(Id=5)
        assert basket.OrderDetail == PurchaseDetail(Id=9)


class TestCollections:
    def test_records_accumulate_into_one_parent(self, scope):
        records = [
            {"Id": 1, "FirstName": "Bob", "LastName": "Smith", "Orders_Id": 10, "Orders_OrderTotal": 5.0},
            {"Id": 1, "Orders_Id": 11, "Orders_OrderTotal": 7.5},
        ]
        customers = list(map_records(Customer, records, scope))

        assert len(customers) == 1
        customer = customers[0]
        assert (customer.Id, customer.FirstName, customer.LastName) == (1, "Bob", "Smith")
        assert customer.Orders == [
            Order(Id=10, OrderTotal=5.0),
            Order(Id=11, OrderTotal=7.5),
        ]

    def test_repeated_child_is_added_once(self, scope):
        records = [
            {"Id": 1, "Orders_Id": 10, "Orders_OrderTotal": 5.0},
            {"Id": 1, "Orders_Id": 10, "Orders_OrderTotal": 6.0},
        ]
        [customer] = map_records(Customer, records, scope)
        assert len(customer.Orders) == 1
        assert customer.Orders[0].OrderTotal == 6.0

    def test_all_null_nested_values_give_empty_collection(self, scope):
        customer = map_record(
            Customer,
            {"Id": 1, "FirstName": "Bob", "Orders_Id": None, "Orders_OrderTotal": None},
            scope,
        )
        assert customer.Orders is not None
        assert customer.Orders == []

    def test_same_child_identity_under_different_parents(self, scope):
        records = [
            {"Id": 1, "Orders_Id": 10},
            {"Id": 2, "Orders_Id": 10},
        ]
        first, second = map_records(Customer, records, scope)
        assert first.Orders[0] is not second.Orders[0]

    def test_deep_nesting(self, scope):
        records = [
            {"Id": 1, "Orders_Id": 10, "Orders_Lines_Id": 100, "Orders_Lines_Sku": "A", "Orders_Lines_Quantity": "2"},
            {"Id": 1, "Orders_Id": 10, "Orders_Lines_Id": 101, "Orders_Lines_Sku": "B", "Orders_Lines_Quantity": 1},
            {"Id": 1, "Orders_Id": 11, "Orders_Lines_Id": 100, "Orders_Lines_Sku": "A", "Orders_Lines_Quantity": 3},
        ]
        [customer] = map_records(Customer, records, scope)

        assert [order.Id for order in customer.Orders] == [10, 11]
        assert customer.Orders[0].Lines == [
            OrderLine(Id=100, Sku="A", Quantity=2),
            OrderLine(Id=101, Sku="B", Quantity=1),
        ]
        assert customer.Orders[1].Lines == [OrderLine(Id=100, Sku="A", Quantity=3)]

    def test_fixed_size_collection_is_rebuilt(self, scope):
        records = [
            {"Id": 1, "Orders_Id": 10},
            {"Id": 1, "Orders_Id": 11},
            {"Id": 1, "Orders_Id": 10},
        ]
        [archive] = map_records(Archive, records, scope)
        assert isinstance(archive.Orders, tuple)
        assert [order.Id for order in archive.Orders] == [10, 11]

    def test_elements_without_identity_are_always_appended(self, scope):
        records = [
            {"Id": 1, "Notes_Text": "a"},
            {"Id": 1, "Notes_Text": "a"},
        ]
        [journal] = map_records(Journal, records, scope)
        assert journal.Notes == [Note("a"), Note("a")]
        assert journal.Notes[0] is not journal.Notes[1]

    def test_child_back_reference_to_parent(self, scope):
        records = [
            {"Id": 1, "Lines_Id": 1},
            {"Id": 1, "Lines_Id": 2},
        ]
        [invoice] = map_records(Invoice, records, scope)
        assert [line.Id for line in invoice.Lines] == [1, 2]
        assert all(line.Owner is invoice for line in invoice.Lines)
