"""Tests for placing and tracking orders."""

from decimal import Decimal

import pytest

from offkulture.accounts import AccountDirectory
from offkulture.cart import Cart
from offkulture.errors import (
    EmptyCartError,
    InvalidStatusTransitionError,
    OrderNotFoundError,
)
from offkulture.ledger import OrderLedger
from offkulture.models import OrderStatus


@pytest.fixture
def account():
    return AccountDirectory().register("Thandi Nkosi", "thandi@example.com", "secret123")


@pytest.fixture
def cart(catalog):
    return Cart(catalog)


@pytest.fixture
def ledger():
    return OrderLedger()


def place(ledger, cart, shipping_info, account, product_id="M001", quantity=2):
    cart.add_item(product_id, quantity)
    return ledger.place_order(cart, shipping_info, "Visa ending in 1234", account)


class TestPlaceOrder:
    def test_two_shirts(self, ledger, cart, catalog, shipping_info, account):
        order = place(ledger, cart, shipping_info, account)

        assert order.status is OrderStatus.PROCESSING
        assert order.subtotal == Decimal("899.98")
        assert order.shipping == Decimal("0.00")
        assert order.tax == Decimal("135.00")
        assert order.total == Decimal("1034.98")
        assert order.id.startswith("ORD-")
        assert order.tracking_number.startswith("TRK")
        assert order.shipping_address == "12 Long Street, Cape Town, Western Cape, 8001"

    def test_consumes_reservation(self, ledger, cart, catalog, shipping_info, account):
        place(ledger, cart, shipping_info, account)
        assert cart.is_empty()
        assert catalog.get("M001").stock_quantity == 23

    def test_account_holds_reference(self, ledger, cart, shipping_info, account):
        order = place(ledger, cart, shipping_info, account)
        assert account.order_ids == [order.id]
        assert ledger.for_account(account) == [order]

    def test_empty_cart_raises(self, ledger, cart, shipping_info, account):
        with pytest.raises(EmptyCartError):
            ledger.place_order(cart, shipping_info, "EFT", account)
        assert len(ledger) == 0

    def test_items_are_a_snapshot(self, ledger, cart, shipping_info, account):
        order = place(ledger, cart, shipping_info, account)
        cart.add_item("M001", 1)
        assert order.items[0].quantity == 2
        assert order.item_count == 2

    def test_ids_are_unique(self, ledger, cart, shipping_info, account):
        first = place(ledger, cart, shipping_info, account, quantity=1)
        second = place(ledger, cart, shipping_info, account, quantity=1)
        assert first.id != second.id
        assert first.tracking_number != second.tracking_number


class TestStatus:
    def test_forward_moves(self, ledger, cart, shipping_info, account):
        order = place(ledger, cart, shipping_info, account)
        ledger.advance_status(order.id, OrderStatus.SHIPPED)
        ledger.advance_status(order.id, OrderStatus.DELIVERED)
        assert order.status is OrderStatus.DELIVERED

    def test_skipping_ahead_allowed(self, ledger, cart, shipping_info, account):
        order = place(ledger, cart, shipping_info, account)
        ledger.advance_status(order.id, OrderStatus.DELIVERED)
        assert order.status is OrderStatus.DELIVERED

    def test_backward_move_rejected(self, ledger, cart, shipping_info, account):
        order = place(ledger, cart, shipping_info, account)
        ledger.advance_status(order.id, OrderStatus.SHIPPED)
        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            ledger.advance_status(order.id, OrderStatus.PROCESSING)
        assert exc_info.value.current == "Shipped"
        assert order.status is OrderStatus.SHIPPED

    def test_same_status_rejected(self, ledger, cart, shipping_info, account):
        order = place(ledger, cart, shipping_info, account)
        with pytest.raises(InvalidStatusTransitionError):
            ledger.advance_status(order.id, OrderStatus.PROCESSING)

    def test_status_visible_through_account(self, ledger, cart, shipping_info, account):
        order = place(ledger, cart, shipping_info, account)
        ledger.advance_status(order.id, OrderStatus.SHIPPED)
        assert ledger.for_account(account)[0].status is OrderStatus.SHIPPED

    def test_unknown_order_raises(self, ledger):
        with pytest.raises(OrderNotFoundError):
            ledger.advance_status("ORD-NOPE", OrderStatus.SHIPPED)


class TestLookup:
    def test_track_by_id_or_tracking_number(self, ledger, cart, shipping_info, account):
        order = place(ledger, cart, shipping_info, account)
        assert ledger.track(order.id) is order
        assert ledger.track(f" {order.tracking_number} ") is order

    def test_track_unknown_raises(self, ledger):
        with pytest.raises(OrderNotFoundError):
            ledger.track("TRK0000")

    def test_filter_by_status(self, ledger, cart, shipping_info, account):
        first = place(ledger, cart, shipping_info, account, quantity=1)
        place(ledger, cart, shipping_info, account, quantity=1)
        ledger.advance_status(first.id, OrderStatus.SHIPPED)
        assert ledger.all_orders(OrderStatus.SHIPPED) == [first]
        assert len(ledger.all_orders(OrderStatus.PROCESSING)) == 1

    def test_recent_is_newest_first(self, ledger, cart, shipping_info, account):
        first = place(ledger, cart, shipping_info, account, quantity=1)
        second = place(ledger, cart, shipping_info, account, quantity=1)
        assert ledger.recent() == [second, first]
        assert ledger.recent(limit=1) == [second]

    def test_total_revenue(self, ledger, cart, shipping_info, account):
        place(ledger, cart, shipping_info, account, quantity=2)
        place(ledger, cart, shipping_info, account, quantity=1)
        assert ledger.total_revenue() == Decimal("1652.46")

    def test_round_trip(self, ledger, cart, shipping_info, account):
        order = place(ledger, cart, shipping_info, account)
        ledger.advance_status(order.id, OrderStatus.SHIPPED)
        restored = OrderLedger.from_list(ledger.to_list())
        copy = restored.get(order.id)
        assert copy.total == Decimal("1034.98")
        assert copy.status is OrderStatus.SHIPPED
        assert copy.items[0].price == Decimal("449.99")
