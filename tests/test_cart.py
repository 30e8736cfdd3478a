"""Tests for the cart reducer, order book and checkout."""

import pytest

from cart import Cart, OrderBook, checkout
from catalog import Catalog
from schemas import EmptyCart, NeedsAuth, Order
from tests.conftest import make_product


@pytest.fixture
def products():
    return [make_product("p1", 100, title="Kettle"), make_product("p2", 50, title="Mug")]


@pytest.fixture
def cart(store):
    return Cart(store)


@pytest.fixture
def orders(store):
    return OrderBook(store)


class TestReducer:
    def test_add_creates_then_increments(self, cart):
        assert cart.add("p1") == 1
        assert cart.add("p1") == 2
        assert cart.quantities == {"p1": 2}

    def test_increment_absent_creates_line(self, cart):
        assert cart.increment("p9") == 1

    def test_decrement_last_unit_removes_line(self, cart):
        cart.add("p1")
        assert cart.decrement("p1") == 0
        assert "p1" not in cart.quantities

    def test_decrement_keeps_positive_quantity(self, cart):
        cart.add("p1")
        cart.add("p1")
        assert cart.decrement("p1") == 1
        assert cart.quantities == {"p1": 1}

    def test_decrement_absent_is_noop(self, cart):
        assert cart.decrement("ghost") == 0
        assert cart.quantities == {}

    def test_remove_is_unconditional(self, cart):
        for _ in range(3):
            cart.add("p1")
        cart.remove("p1")
        cart.remove("p1")
        assert cart.quantities == {}

    def test_quantities_stay_positive(self, cart):
        ops = [cart.add, cart.decrement, cart.decrement, cart.increment, cart.add, cart.remove, cart.decrement]
        for i, op in enumerate(ops):
            op("p1" if i % 2 else "p2")
            assert all(isinstance(q, int) and q >= 1 for q in cart.quantities.values())

    def test_count_sums_quantities(self, cart):
        cart.add("p1")
        cart.add("p1")
        cart.add("p2")
        assert cart.count == 3

    def test_changes_are_persisted(self, store, cart):
        cart.add("p1")
        cart.add("p2")
        cart.decrement("p2")
        assert Cart.restore(store).quantities == {"p1": 1}

    def test_invalid_stored_cart_restores_empty(self, backend, store):
        backend.data["cart"] = '{"p1": -2}'
        assert Cart.restore(store).quantities == {}


class TestLineItems:
    def test_joins_against_catalog(self, cart, products):
        cart.add("p1")
        cart.add("p1")
        cart.add("p2")
        lines = cart.line_items(products)
        assert [(line.product.id, line.qty) for line in lines] == [("p1", 2), ("p2", 1)]
        assert cart.subtotal(products) == 250

    def test_unknown_products_are_dropped_from_view(self, cart, products):
        cart.add("p1")
        cart.add("gone")
        assert [line.product.id for line in cart.line_items(products)] == ["p1"]
        assert cart.quantities == {"p1": 1, "gone": 1}

    def test_view(self, cart, products):
        cart.add("p2")
        cart.add("p2")
        view = cart.view(products)
        assert view.subtotal == 100
        assert view.count == 2

    def test_sweep_drops_dangling_ids(self, cart):
        cart.add("p1")
        cart.add("gone")
        assert cart.sweep(["p1"]) == ["gone"]
        assert cart.quantities == {"p1": 1}


class TestCheckout:
    def test_without_session_changes_nothing(self, cart, orders, products):
        cart.add("p1")
        for _ in range(2):
            assert isinstance(checkout(cart, orders, products, None), NeedsAuth)
        assert cart.quantities == {"p1": 1}
        assert orders.orders == []

    def test_empty_cart_changes_nothing(self, cart, orders, products, customer):
        assert isinstance(checkout(cart, orders, products, customer), EmptyCart)
        assert orders.orders == []

    def test_creates_order_and_clears_cart(self, store, cart, orders, products, customer):
        orders.prepend(
            Order(id="old", created_at="2026-01-01T00:00:00Z", total=0, items=[], user_email="x@example.com")
        )
        cart.add("p1")
        cart.add("p1")
        cart.add("p2")

        order = checkout(cart, orders, products, customer)

        assert isinstance(order, Order)
        assert order.total == 250
        assert order.status == "Processing"
        assert order.user_email == "casey@example.com"
        assert [(i.product_id, i.title, i.qty, i.price) for i in order.items] == [
            ("p1", "Kettle", 2, 100),
            ("p2", "Mug", 1, 50),
        ]
        assert [o.id for o in orders.orders] == [order.id, "old"]
        assert cart.quantities == {}
        assert Cart.restore(store).quantities == {}
        assert OrderBook.restore(store).orders[0].id == order.id

    def test_order_ids_differ(self, cart, orders, products, customer):
        cart.add("p1")
        first = checkout(cart, orders, products, customer)
        cart.add("p1")
        second = checkout(cart, orders, products, customer)
        assert first.id != second.id

    def test_deleting_product_keeps_order_snapshot(self, store, cart, orders, admin):
        catalog = Catalog(store, [make_product("p1", 100, title="Kettle")])
        cart.add("p1")
        order = checkout(cart, orders, catalog.products, admin)

        catalog.delete(admin, "p1")

        restored = OrderBook.restore(store).orders[0]
        assert restored == order
        assert restored.items[0].title == "Kettle"
        assert restored.items[0].price == 100


class TestOrderBook:
    def test_for_identity_filters_by_email(self, orders, customer, admin):
        for oid, email in [("1", customer.email), ("2", admin.email), ("3", customer.email)]:
            orders.prepend(Order(id=oid, created_at="2026-01-01T00:00:00Z", total=1, items=[], user_email=email))
        assert [o.id for o in orders.for_identity(customer)] == ["3", "1"]
        assert [o.id for o in orders.for_identity(None)] == ["3", "2", "1"]

    def test_corrupt_orders_restore_empty(self, backend, store):
        backend.data["orders"] = "not json"
        assert OrderBook.restore(store).orders == []
