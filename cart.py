"""
Cart and orders

The cart is a map of product id -> quantity. Quantities are always >= 1;
a line that would drop to zero is removed instead. Orders are snapshots
taken at checkout and are never recomputed afterwards.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Union

from bson import ObjectId

from database import CART_KEY, ORDERS_KEY, Store
from schemas import (
    CartLine,
    CartState,
    CartView,
    EmptyCart,
    Identity,
    NeedsAuth,
    Order,
    OrderItem,
    Product,
)

logger = logging.getLogger(__name__)


class Cart:
    def __init__(self, store: Store, quantities: Optional[Dict[str, int]] = None):
        self.store = store
        self.quantities: Dict[str, int] = dict(quantities or {})

    @classmethod
    def restore(cls, store: Store) -> "Cart":
        return cls(store, store.load(CART_KEY, {}, CartState))

    def _persist(self) -> None:
        self.store.save(CART_KEY, self.quantities)

    def add(self, product_id: str) -> int:
        qty = self.quantities.get(product_id, 0) + 1
        self.quantities[product_id] = qty
        self._persist()
        return qty

    increment = add

    def decrement(self, product_id: str) -> int:
        if product_id not in self.quantities:
            return 0
        qty = self.quantities[product_id] - 1
        if qty <= 0:
            del self.quantities[product_id]
            qty = 0
        else:
            self.quantities[product_id] = qty
        self._persist()
        return qty

    def remove(self, product_id: str) -> None:
        if self.quantities.pop(product_id, None) is not None:
            self._persist()

    def clear(self) -> None:
        self.quantities = {}
        self._persist()

    def sweep(self, known_ids: Iterable[str]) -> List[str]:
        """Drop lines whose product no longer exists. Returns the dropped ids."""
        known = set(known_ids)
        dropped = [pid for pid in self.quantities if pid not in known]
        if dropped:
            for pid in dropped:
                del self.quantities[pid]
            self._persist()
        return dropped

    @property
    def count(self) -> int:
        return sum(self.quantities.values())

    def line_items(self, products: Iterable[Product]) -> List[CartLine]:
        by_id = {p.id: p for p in products}
        return [
            CartLine(product=by_id[pid], qty=qty)
            for pid, qty in self.quantities.items()
            if pid in by_id
        ]

    def subtotal(self, products: Iterable[Product]) -> float:
        return sum(line.product.price * line.qty for line in self.line_items(products))

    def view(self, products: Iterable[Product]) -> CartView:
        items = self.line_items(products)
        return CartView(
            items=items,
            subtotal=round(sum(i.product.price * i.qty for i in items), 2),
            count=sum(i.qty for i in items),
        )


class OrderBook:
    def __init__(self, store: Store, orders: Optional[List[Order]] = None):
        self.store = store
        self.orders: List[Order] = list(orders or [])

    @classmethod
    def restore(cls, store: Store) -> "OrderBook":
        return cls(store, store.load(ORDERS_KEY, [], List[Order]))

    def _persist(self) -> None:
        self.store.save(ORDERS_KEY, self.orders)

    def prepend(self, order: Order) -> None:
        self.orders = [order] + self.orders
        self._persist()

    def for_identity(self, identity: Optional[Identity]) -> List[Order]:
        """Orders placed by the signed-in email; every order when signed out."""
        if identity is None:
            return list(self.orders)
        return [o for o in self.orders if o.user_email == identity.email]


def build_order(lines: List[CartLine], identity: Identity) -> Order:
    items = [
        OrderItem(product_id=line.product.id, title=line.product.title, qty=line.qty, price=line.product.price)
        for line in lines
    ]
    return Order(
        id=str(ObjectId()),
        created_at=datetime.now(timezone.utc),
        status="Processing",
        total=round(sum(i.price * i.qty for i in items), 2),
        items=items,
        user_email=identity.email,
    )


def checkout(
    cart: Cart,
    orders: OrderBook,
    products: Iterable[Product],
    identity: Optional[Identity],
) -> Union[Order, NeedsAuth, EmptyCart]:
    """Turn the cart into an order, or return why it cannot be done.

    On failure neither the cart nor the order book is touched. On success
    the order is built completely before either collection changes.
    """
    if identity is None:
        return NeedsAuth()
    lines = cart.line_items(products)
    if not lines:
        return EmptyCart()

    order = build_order(lines, identity)
    orders.prepend(order)
    cart.clear()
    logger.info("Order %s placed by %s: %d items, total %.2f", order.id, order.user_email, len(order.items), order.total)
    return order
