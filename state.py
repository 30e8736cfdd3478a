"""
Storefront state

One Storefront owns the catalog, cart, orders and session. Callers read
snapshots from it and change state only through its methods; each method
writes the slices it touched back to the store. Methods run one at a time,
so a request arriving mid-checkout waits for the checkout to finish.
"""

import logging
import threading
from typing import List, Optional, Union

from cart import Cart, OrderBook, checkout
from catalog import Catalog
from database import Store
from schemas import (
    CartView,
    EmptyCart,
    Forbidden,
    Identity,
    NeedsAuth,
    Order,
    Product,
    ProductInput,
    SearchCriteria,
)
from search import derive
from session import SessionGate

logger = logging.getLogger(__name__)


class Storefront:
    def __init__(self, store: Store, catalog: Catalog, cart: Cart, orders: OrderBook, session: SessionGate):
        self.store = store
        self.catalog = catalog
        self.cart = cart
        self.orders = orders
        self.session = session
        self._lock = threading.Lock()

    @classmethod
    def open(cls, store: Store) -> "Storefront":
        """Restore every slice independently; a bad slice falls back to its default."""
        return cls(
            store,
            catalog=Catalog.seed_or_restore(store),
            cart=Cart.restore(store),
            orders=OrderBook.restore(store),
            session=SessionGate.restore(store),
        )

    @property
    def identity(self) -> Optional[Identity]:
        return self.session.current

    # Catalog

    def products(self) -> List[Product]:
        with self._lock:
            return list(self.catalog.products)

    def search(self, criteria: Optional[SearchCriteria] = None) -> List[Product]:
        with self._lock:
            return derive(self.catalog.products, criteria or SearchCriteria())

    def create_product(self, payload: ProductInput) -> Union[Product, NeedsAuth, Forbidden]:
        with self._lock:
            return self.catalog.create(self.identity, payload)

    def delete_product(self, product_id: str) -> Union[bool, NeedsAuth, Forbidden]:
        with self._lock:
            result = self.catalog.delete(self.identity, product_id)
            if result is True:
                dropped = self.cart.sweep(self.catalog.ids())
                if dropped:
                    logger.info("Removed deleted product %s from cart", ", ".join(dropped))
            return result

    def reset_catalog(self, force: bool = False) -> Union[int, NeedsAuth, Forbidden]:
        with self._lock:
            result = self.catalog.reset(self.identity, force)
            if isinstance(result, int) and result:
                self.cart.sweep(self.catalog.ids())
            return result

    # Cart

    def add_to_cart(self, product_id: str) -> Optional[int]:
        """Add one unit; None when the product is not in the catalog."""
        with self._lock:
            if self.catalog.get(product_id) is None:
                return None
            return self.cart.add(product_id)

    def increment(self, product_id: str) -> Optional[int]:
        with self._lock:
            if self.catalog.get(product_id) is None:
                return None
            return self.cart.increment(product_id)

    def decrement(self, product_id: str) -> int:
        with self._lock:
            return self.cart.decrement(product_id)

    def remove_from_cart(self, product_id: str) -> None:
        with self._lock:
            self.cart.remove(product_id)

    def cart_view(self) -> CartView:
        with self._lock:
            return self.cart.view(self.catalog.products)

    def checkout(self) -> Union[Order, NeedsAuth, EmptyCart]:
        with self._lock:
            return checkout(self.cart, self.orders, self.catalog.products, self.identity)

    def my_orders(self) -> List[Order]:
        with self._lock:
            return self.orders.for_identity(self.identity)

    # Session

    def login(self, identity: Identity) -> Identity:
        with self._lock:
            return self.session.login(identity)

    def logout(self) -> None:
        with self._lock:
            self.session.logout()
