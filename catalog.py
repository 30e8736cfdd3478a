"""Catalog repository: the product list, newest admin entries first."""

import logging
from typing import List, Optional, Union

from bson import ObjectId

from database import PRODUCTS_KEY, Store
from schemas import Forbidden, Identity, NeedsAuth, Product, ProductInput
from session import authorize_admin

logger = logging.getLogger(__name__)

# Admin-created products start with this rating until real reviews exist
PLACEHOLDER_RATING = 4.4

DEMO_PRODUCTS = [
    {
        "id": "p1",
        "title": "Noise-Cancelling Wireless Headphones",
        "category": "Electronics",
        "price": 899,
        "rating": 4.6,
        "reviews": 18342,
        "prime": True,
        "stock": 14,
        "image": "https://images.unsplash.com/photo-1518441902117-f0a9e9f8d1d4?auto=format&fit=crop&w=1200&q=60",
        "images": ["https://images.unsplash.com/photo-1518441902117-f0a9e9f8d1d4?auto=format&fit=crop&w=1200&q=60"],
        "videos": [],
        "description": "Immersive sound, all-day comfort, and adaptive noise cancelling for work, travel, and everything in between.",
    },
    {
        "id": "p2",
        "title": "Smart LED Strip Lights (5m)",
        "category": "Home",
        "price": 109,
        "rating": 4.4,
        "reviews": 9251,
        "prime": True,
        "stock": 67,
        "image": "https://images.unsplash.com/photo-1559245010-6564f5d4f8c5?auto=format&fit=crop&w=1200&q=60",
        "images": ["https://images.unsplash.com/photo-1559245010-6564f5d4f8c5?auto=format&fit=crop&w=1200&q=60"],
        "videos": [],
        "description": "Sync colors to your mood. Voice control, scenes, and easy setup for bedrooms, desks, and gaming rooms.",
    },
    {
        "id": "p3",
        "title": "Stainless Steel Water Bottle (1L)",
        "category": "Sports",
        "price": 69,
        "rating": 4.8,
        "reviews": 40210,
        "prime": False,
        "stock": 120,
        "image": "https://images.unsplash.com/photo-1526401485004-2fda9f6d3d38?auto=format&fit=crop&w=1200&q=60",
        "images": ["https://images.unsplash.com/photo-1526401485004-2fda9f6d3d38?auto=format&fit=crop&w=1200&q=60"],
        "videos": [],
        "description": "Double-wall insulation keeps drinks cold for up to 24h. Leak-proof cap and durable powder coat.",
    },
]


def demo_products() -> List[Product]:
    return [Product(**p) for p in DEMO_PRODUCTS]


def _clean(urls: List[str]) -> List[str]:
    return [u.strip() for u in urls if u and u.strip()]


class Catalog:
    def __init__(self, store: Store, products: List[Product]):
        self.store = store
        self.products = products

    @classmethod
    def seed_or_restore(cls, store: Store) -> "Catalog":
        products = store.load(PRODUCTS_KEY, None, List[Product])
        if products is None:
            logger.info("No stored catalog, seeding %d demo products", len(DEMO_PRODUCTS))
            products = demo_products()
        return cls(store, products)

    def _persist(self) -> None:
        self.store.save(PRODUCTS_KEY, self.products)

    def get(self, product_id: str) -> Optional[Product]:
        for p in self.products:
            if p.id == product_id:
                return p
        return None

    def ids(self) -> set:
        return {p.id for p in self.products}

    def create(
        self, identity: Optional[Identity], payload: ProductInput
    ) -> Union[Product, NeedsAuth, Forbidden]:
        denied = authorize_admin(identity)
        if denied is not None:
            return denied

        image = payload.image.strip()
        product = Product(
            id=f"p_{ObjectId()}",
            title=payload.title,
            category=payload.category,
            price=payload.price,
            rating=PLACEHOLDER_RATING,
            reviews=0,
            prime=payload.prime,
            stock=payload.stock,
            image=image,
            images=_clean([image] + payload.extra_images),
            videos=_clean(payload.videos),
            description=payload.description,
        )
        self.products = [product] + self.products
        self._persist()
        logger.info("Created product %s (%s)", product.id, product.title)
        return product

    def delete(
        self, identity: Optional[Identity], product_id: str
    ) -> Union[bool, NeedsAuth, Forbidden]:
        denied = authorize_admin(identity)
        if denied is not None:
            return denied

        remaining = [p for p in self.products if p.id != product_id]
        if len(remaining) == len(self.products):
            return False
        self.products = remaining
        self._persist()
        logger.info("Deleted product %s", product_id)
        return True

    def reset(
        self, identity: Optional[Identity], force: bool = False
    ) -> Union[int, NeedsAuth, Forbidden]:
        """Reload the demo set when the catalog is empty, or unconditionally with force."""
        denied = authorize_admin(identity)
        if denied is not None:
            return denied

        if self.products and not force:
            return 0
        self.products = demo_products()
        self._persist()
        return len(self.products)
