"""
Example: hydrating customers and their orders from a joined query.

Run against an in-memory SQLite database; each row of the join repeats the
customer columns, and graphmapper folds the rows back into one Customer per
identifier with its orders collected underneath.
"""

import logging
import sqlite3
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from graphmapper import map_dynamic_many, mapping_scope

logger = logging.getLogger(__name__)


class OrderStatus(Enum):
    OPEN = "open"
    SHIPPED = "shipped"


@dataclass
class Order:
    Id: int = 0
    Total: Decimal = Decimal("0")
    Status: Optional[OrderStatus] = None


@dataclass
class Customer:
    Id: int = 0
    Name: str = ""
    Orders: List[Order] = field(default_factory=list)


SCHEMA = """
CREATE TABLE customers (id INTEGER PRIMARY KEY, name TEXT);
CREATE TABLE orders (id INTEGER PRIMARY KEY, customer_id INTEGER, total REAL, status TEXT);
INSERT INTO customers VALUES (1, 'Bob'), (2, 'Ann'), (3, 'Joe');
INSERT INTO orders VALUES (10, 1, 5.0, 'OPEN'), (11, 1, 7.5, 'SHIPPED'), (12, 2, 1.25, 'OPEN');
"""

QUERY = """
SELECT c.id AS Id, c.name AS Name,
       o.id AS Orders_Id, o.total AS Orders_Total, o.status AS Orders_Status
FROM customers c LEFT JOIN orders o ON o.customer_id = c.id
ORDER BY c.id, o.id
"""


def load_customers(connection: sqlite3.Connection) -> List[Customer]:
    connection.row_factory = sqlite3.Row
    rows = connection.execute(QUERY).fetchall()
    with mapping_scope() as scope:
        return list(map_dynamic_many(Customer, rows, scope))


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)
    connection = sqlite3.connect(":memory:")
    connection.executescript(SCHEMA)
    for customer in load_customers(connection):
        logger.info(f"{customer.Name}: {[(o.Id, o.Total, o.Status) for o in customer.Orders]}")
