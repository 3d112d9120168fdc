"""
Order lifecycle: creation against stock, same-day cancellation, and status advancement.

Status flow is placed -> shipped -> delivered. Cancellation is a separate
operation and is the only way to reach 'cancelled'.
"""
import logging
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Callable, List, Optional

from .domain import NEXT_STATUS, TERMINAL_STATUSES, Order, OrderStatus
from .errors import (
    AlreadyCancelledError,
    CancellationWindowExpiredError,
    InsufficientStockError,
    InvalidTransitionError,
    NotFoundError,
    TerminalStateError,
    ValidationError,
)
from .store import DatasetStore

logger = logging.getLogger(__name__)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


class OrderLifecycle:
    def __init__(self, store: DatasetStore, today: Callable[[], date] = utc_today):
        self.store = store
        self.today = today

    def list_orders(self) -> List[Order]:
        with self.store.reading() as dataset:
            return [replace(o) for o in dataset.orders]

    def create_order(self, product_id: Optional[int], quantity: Optional[int]) -> Order:
        """
        Places an order for `quantity` units of a product.

        - Rejects missing input, non-positive quantities, unknown products and
          quantities above the available stock.
        - On success the stock is decremented and the order is stored as 'placed'
          with today's date; both changes are persisted together.
        """
        if not product_id or not quantity:
            raise ValidationError("productId and quantity are required")
        if quantity <= 0:
            raise ValidationError("Quantity must be greater than 0")

        with self.store.transaction() as dataset:
            product = dataset.find_product(product_id)
            if product is None:
                logger.warning(f"Order rejected: product {product_id} not found.")
                raise NotFoundError("Product not found")
            if product.stock == 0 or quantity > product.stock:
                logger.warning(
                    f"Order rejected: requested {quantity} of product {product_id}, "
                    f"only {product.stock} in stock."
                )
                raise InsufficientStockError("Insufficient stock")

            order = Order(
                id=dataset.allocate_order_id(),
                product_id=product_id,
                quantity=quantity,
                total_amount=product.price * quantity,
                status=OrderStatus.PLACED,
                created_at=self.today(),
            )
            product.stock -= quantity
            dataset.orders.append(order)

        logger.info(
            f"Order {order.id} placed: {quantity} x product {product_id}, total {order.total_amount}."
        )
        return replace(order)

    def cancel_order(self, order_id: int) -> Order:
        """
        Cancels an order placed today and puts its quantity back in stock.
        The current status does not matter as long as the order is not already cancelled.
        """
        with self.store.transaction() as dataset:
            order = dataset.find_order(order_id)
            if order is None:
                raise NotFoundError("Order not found")
            if order.status == OrderStatus.CANCELLED:
                raise AlreadyCancelledError("Already cancelled orders cannot be cancelled again")
            if order.created_at != self.today():
                raise CancellationWindowExpiredError("Cancellation only allowed on the same day")

            product = dataset.find_product(order.product_id)
            if product is not None:
                product.stock += order.quantity
            else:
                logger.warning(
                    f"Order {order_id} references missing product {order.product_id}; stock not restored."
                )
            order.status = OrderStatus.CANCELLED

        logger.info(f"Order {order_id} cancelled.")
        return replace(order)

    def advance_status(self, order_id: int, requested_status: Optional[str]) -> Order:
        if not requested_status:
            raise ValidationError("Status is required")

        with self.store.transaction() as dataset:
            order = dataset.find_order(order_id)
            if order is None:
                raise NotFoundError("Order not found")
            if order.status in TERMINAL_STATUSES:
                raise TerminalStateError("Cannot change status of cancelled or delivered orders")

            expected = NEXT_STATUS[order.status]
            if requested_status != expected.value:
                raise InvalidTransitionError(
                    f"Cannot skip status. Current: {order.status.value}, Expected: {expected.value}"
                )
            order.status = expected

        logger.info(f"Order {order_id} moved to '{expected.value}'.")
        return replace(order)
