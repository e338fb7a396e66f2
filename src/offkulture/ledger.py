"""Order ledger: the single store of placed orders."""

import logging
from decimal import Decimal
from typing import Any

from .cart import Cart
from .config import RECENT_ORDERS_LIMIT
from .errors import EmptyCartError, InvalidStatusTransitionError, OrderNotFoundError
from .models import Account, CartLine, Order, OrderStatus, ShippingInfo, _utc_now
from .pricing import compute_totals

logger = logging.getLogger(__name__)


class OrderLedger:
    """All placed orders, keyed by order ID, in placement order.

    Accounts reference orders by ID; nothing else holds a copy, so a status
    change here is the only write needed.
    """

    def __init__(self, orders: list[Order] | None = None):
        self._orders: dict[str, Order] = {o.id: o for o in orders or []}

    def __len__(self) -> int:
        return len(self._orders)

    def place_order(
        self,
        cart: Cart,
        shipping_info: ShippingInfo,
        payment_method: str,
        account: Account,
    ) -> Order:
        """
        Snapshot the cart into a new Processing order and clear the cart.

        Stock reserved by the cart is consumed, not restored.

        Args:
            cart: The session cart.
            shipping_info: Validated delivery details.
            payment_method: Display label of the payment method used.
            account: The ordering account; receives a reference to the order.

        Returns:
            The new Order.

        Raises:
            EmptyCartError: If the cart has no lines.
        """
        if cart.is_empty():
            raise EmptyCartError()

        totals = compute_totals(cart.subtotal())
        items = [CartLine.from_dict(line.to_dict()) for line in cart.lines]

        order_id = Order.new_id()
        while order_id in self._orders:
            order_id = Order.new_id()

        order = Order(
            id=order_id,
            account_email=account.email,
            items=items,
            subtotal=totals.subtotal,
            shipping=totals.shipping,
            tax=totals.tax,
            total=totals.total,
            customer_name=shipping_info.full_name or account.name,
            customer_email=shipping_info.email or account.email,
            customer_phone=shipping_info.phone or account.phone,
            shipping_address=shipping_info.formatted(),
            payment_method=payment_method,
            tracking_number=Order.new_tracking_number(),
        )
        self._orders[order.id] = order
        account.order_ids.append(order.id)
        cart.clear()

        logger.info(
            "Placed order %s for %s: %d items, total %s",
            order.id, account.email, order.item_count, order.total,
        )
        return order

    def get(self, order_id: str) -> Order:
        """
        Get an order by ID.

        Raises:
            OrderNotFoundError: If the order doesn't exist.
        """
        try:
            return self._orders[order_id]
        except KeyError:
            raise OrderNotFoundError(order_id) from None

    def find_by_tracking_number(self, tracking_number: str) -> Order:
        for order in self._orders.values():
            if order.tracking_number == tracking_number:
                return order
        raise OrderNotFoundError(tracking_number)

    def track(self, reference: str) -> Order:
        """Look an order up by order ID or tracking number."""
        reference = reference.strip()
        if reference in self._orders:
            return self._orders[reference]
        return self.find_by_tracking_number(reference)

    def for_account(self, account: Account) -> list[Order]:
        """Resolve an account's order references, oldest first."""
        return [self._orders[oid] for oid in account.order_ids if oid in self._orders]

    def all_orders(self, status: OrderStatus | None = None) -> list[Order]:
        orders = list(self._orders.values())
        if status is not None:
            orders = [o for o in orders if o.status is status]
        return orders

    def advance_status(self, order_id: str, new_status: OrderStatus) -> Order:
        """
        Move an order forward through Processing -> Shipped -> Delivered.

        Raises:
            OrderNotFoundError: If the order doesn't exist.
            InvalidStatusTransitionError: If the move isn't forward.
        """
        order = self.get(order_id)
        if not order.status.can_advance_to(new_status):
            raise InvalidStatusTransitionError(
                order_id, order.status.value, new_status.value
            )
        previous = order.status
        order.status = new_status
        order.updated_at = _utc_now()
        logger.info("Order %s: %s -> %s", order_id, previous.value, new_status.value)
        return order

    def total_revenue(self) -> Decimal:
        return sum((o.total for o in self._orders.values()), Decimal("0.00"))

    def recent(self, limit: int = RECENT_ORDERS_LIMIT) -> list[Order]:
        """Most recently placed orders, newest first."""
        return list(reversed(list(self._orders.values())))[:limit]

    def to_list(self) -> list[dict[str, Any]]:
        return [o.to_dict() for o in self._orders.values()]

    @classmethod
    def from_list(cls, data: list[dict[str, Any]]) -> "OrderLedger":
        return cls([Order.from_dict(o) for o in data])
