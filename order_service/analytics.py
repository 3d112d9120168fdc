"""
Aggregate views over orders and products. Nothing here mutates the dataset.

Revenue is always quantity times the product's current price, over active
(non-cancelled) orders only.
"""
from dataclasses import dataclass, replace
from typing import List

from .domain import Order, OrderStatus
from .errors import NotFoundError
from .store import DatasetStore


@dataclass
class ProductRevenue:
    product_id: int
    product_name: str
    total_revenue: float
    order_count: int


@dataclass
class OverallRevenue:
    total_revenue: float
    order_count: int


class Analytics:
    def __init__(self, store: DatasetStore):
        self.store = store

    def all_orders(self) -> List[Order]:
        with self.store.reading() as dataset:
            return [replace(o) for o in dataset.orders]

    def cancelled_orders(self) -> List[Order]:
        return self._orders_with_status(OrderStatus.CANCELLED)

    def shipped_orders(self) -> List[Order]:
        return self._orders_with_status(OrderStatus.SHIPPED)

    def _orders_with_status(self, status: OrderStatus) -> List[Order]:
        with self.store.reading() as dataset:
            return [replace(o) for o in dataset.orders if o.status == status]

    def revenue_for_product(self, product_id: int) -> ProductRevenue:
        with self.store.reading() as dataset:
            product = dataset.find_product(product_id)
            if product is None:
                raise NotFoundError("Product not found")
            product_orders = [
                o for o in dataset.orders if o.product_id == product_id and o.is_active
            ]
            total = sum(o.quantity * product.price for o in product_orders)
            return ProductRevenue(
                product_id=product.id,
                product_name=product.name,
                total_revenue=total,
                order_count=len(product_orders),
            )

    def overall_revenue(self) -> OverallRevenue:
        with self.store.reading() as dataset:
            active_orders = [o for o in dataset.orders if o.is_active]
            total = 0
            for order in active_orders:
                product = dataset.find_product(order.product_id)
                # Orders whose product no longer resolves add nothing but are still counted.
                if product is not None:
                    total += order.quantity * product.price
            return OverallRevenue(total_revenue=total, order_count=len(active_orders))
