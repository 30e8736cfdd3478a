import logging
import os
import threading
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from database import build_store
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
    SortMode,
    youtube_embed_url,
)
from state import Storefront

app = FastAPI(title="Storefront Demo API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_storefront: Optional[Storefront] = None
_open_lock = threading.Lock()


def get_storefront() -> Storefront:
    global _storefront
    with _open_lock:
        if _storefront is None:
            _storefront = Storefront.open(build_store())
    return _storefront


# Utilities

def raise_for_failure(result):
    """Map the engine's typed failures onto HTTP errors; pass anything else through."""
    if isinstance(result, NeedsAuth):
        raise HTTPException(status_code=401, detail=result.detail)
    if isinstance(result, Forbidden):
        raise HTTPException(status_code=403, detail=result.detail)
    if isinstance(result, EmptyCart):
        raise HTTPException(status_code=400, detail=result.detail)
    return result


def get_product_or_404(sf: Storefront, product_id: str) -> Product:
    product = sf.catalog.get(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@app.get("/")
def read_root():
    return {"message": "Storefront Demo Backend is running"}


@app.get("/test")
def test_store(sf: Storefront = Depends(get_storefront)):
    """Report which store backend is in use and what it holds"""
    backend = sf.store.backend
    return {
        "backend": "✅ Running",
        "store": backend.name,
        "store_dir": str(getattr(backend, "directory", "")) or None,
        "database_url": "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set",
        "database_name": "✅ Set" if os.getenv("DATABASE_NAME") else "❌ Not Set",
        "products": len(sf.catalog.products),
        "cart_items": sf.cart.count,
        "orders": len(sf.orders.orders),
        "signed_in": sf.identity is not None,
    }


# ---------------------- Products ----------------------

@app.get("/api/products", response_model=List[Product])
def list_products(
    q: str = "",
    category: str = "All",
    price_max: float = Query(1500, ge=0),
    prime_only: bool = False,
    sort: SortMode = SortMode.featured,
    sf: Storefront = Depends(get_storefront),
):
    try:
        criteria = SearchCriteria(query=q, category=category, price_max=price_max, prime_only=prime_only, sort=sort)
    except ValueError:
        raise HTTPException(status_code=400, detail="Unknown category")
    return sf.search(criteria)


class ProductDetail(BaseModel):
    product: Product
    gallery: List[str]
    video_embeds: List[str]


@app.get("/api/products/{product_id}", response_model=ProductDetail)
def get_product(product_id: str, sf: Storefront = Depends(get_storefront)):
    product = get_product_or_404(sf, product_id)
    embeds = [e for e in (youtube_embed_url(v) for v in product.videos) if e]
    return ProductDetail(product=product, gallery=product.gallery, video_embeds=embeds)


@app.post("/api/products", response_model=Product, status_code=201)
def create_product(payload: ProductInput, sf: Storefront = Depends(get_storefront)):
    return raise_for_failure(sf.create_product(payload))


@app.delete("/api/products/{product_id}")
def delete_product(product_id: str, sf: Storefront = Depends(get_storefront)):
    deleted = raise_for_failure(sf.delete_product(product_id))
    return {"deleted": deleted}


class SeedRequest(BaseModel):
    force: bool = False


@app.post("/api/products/seed")
def seed_products(payload: SeedRequest, sf: Storefront = Depends(get_storefront)):
    inserted = raise_for_failure(sf.reset_catalog(payload.force))
    if not inserted:
        return {"inserted": 0, "message": "Products already exist"}
    return {"inserted": inserted}


# ---------------------- Cart ----------------------

class CartRequest(BaseModel):
    product_id: str


@app.get("/api/cart", response_model=CartView)
def get_cart(sf: Storefront = Depends(get_storefront)):
    return sf.cart_view()


@app.post("/api/cart/add", response_model=CartView)
def add_to_cart(item: CartRequest, sf: Storefront = Depends(get_storefront)):
    if sf.add_to_cart(item.product_id) is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return sf.cart_view()


@app.post("/api/cart/increment", response_model=CartView)
def increment_item(item: CartRequest, sf: Storefront = Depends(get_storefront)):
    if sf.increment(item.product_id) is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return sf.cart_view()


@app.post("/api/cart/decrement", response_model=CartView)
def decrement_item(item: CartRequest, sf: Storefront = Depends(get_storefront)):
    sf.decrement(item.product_id)
    return sf.cart_view()


@app.post("/api/cart/remove", response_model=CartView)
def remove_item(item: CartRequest, sf: Storefront = Depends(get_storefront)):
    sf.remove_from_cart(item.product_id)
    return sf.cart_view()


# ---------------------- Orders ----------------------

@app.post("/api/checkout", response_model=Order, status_code=201)
def checkout(sf: Storefront = Depends(get_storefront)):
    return raise_for_failure(sf.checkout())


@app.get("/api/orders", response_model=List[Order])
def list_orders(sf: Storefront = Depends(get_storefront)):
    return sf.my_orders()


# ---------------------- Session ----------------------

@app.get("/api/session", response_model=Optional[Identity])
def get_session(sf: Storefront = Depends(get_storefront)):
    return sf.identity


@app.post("/api/session/login", response_model=Identity)
def login(identity: Identity, sf: Storefront = Depends(get_storefront)):
    return sf.login(identity)


@app.post("/api/session/logout")
def logout(sf: Storefront = Depends(get_storefront)):
    sf.logout()
    return {"status": "signed out"}


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
