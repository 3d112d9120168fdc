"""
Domain models shared by the catalog, the order lifecycle and analytics.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, List, Optional


class OrderStatus(str, Enum):
    PLACED = "placed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# Statuses the status-advance operation refuses to touch.
TERMINAL_STATUSES = frozenset([OrderStatus.CANCELLED, OrderStatus.DELIVERED])

# The only legal forward step from each non-terminal status.
NEXT_STATUS: Dict[OrderStatus, OrderStatus] = {
    OrderStatus.PLACED: OrderStatus.SHIPPED,
    OrderStatus.SHIPPED: OrderStatus.DELIVERED,
}


@dataclass
class Product:
    id: int
    name: str
    price: float
    stock: int


@dataclass
class Order:
    id: int
    product_id: int
    quantity: int
    total_amount: float
    status: OrderStatus
    created_at: date

    @property
    def is_active(self) -> bool:
        """Active orders are the ones that count towards revenue."""
        return self.status != OrderStatus.CANCELLED


@dataclass
class Dataset:
    """
    Products and orders as one unit, plus the order id counter.

    next_order_id only ever grows; when a stored dataset carries no counter it
    starts right after the highest existing order id.
    """

    products: List[Product] = field(default_factory=list)
    orders: List[Order] = field(default_factory=list)
    next_order_id: Optional[int] = None

    def __post_init__(self):
        if self.next_order_id is None:
            self.next_order_id = max((o.id for o in self.orders), default=0) + 1

    def find_product(self, product_id: int) -> Optional[Product]:
        return next((p for p in self.products if p.id == product_id), None)

    def find_order(self, order_id: int) -> Optional[Order]:
        return next((o for o in self.orders if o.id == order_id), None)

    def allocate_order_id(self) -> int:
        order_id = self.next_order_id
        self.next_order_id += 1
        return order_id
