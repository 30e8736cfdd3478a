"""
Storefront Schemas

Define the storefront state model here using Pydantic models.
These schemas validate both API payloads and the JSON documents
restored from the key-value store.

Each persisted slice is stored under its own key:
- Session -> "session" (Identity or null)
- Cart -> "cart" (product id -> quantity)
- Orders -> "orders" (list of Order, newest first)
- Catalog -> "products" (list of Product, newest first)
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional
from urllib.parse import parse_qs, urlparse

from pydantic import BaseModel, ConfigDict, EmailStr, Field, PositiveInt, field_validator

ALL_CATEGORIES = "All"


class Category(str, Enum):
    electronics = "Electronics"
    home = "Home"
    fashion = "Fashion"
    beauty = "Beauty"
    sports = "Sports"
    books = "Books"
    auto_parts = "Auto Spare Parts"
    toys = "Toys and Games"


class Role(str, Enum):
    customer = "customer"
    admin = "admin"


class SortMode(str, Enum):
    featured = "featured"
    price_asc = "price_asc"
    price_desc = "price_desc"
    rating_desc = "rating_desc"


# -----------------------------
# Catalog
# -----------------------------

class Product(BaseModel):
    """
    Products slice schema
    Storage key: "products"
    """
    id: str = Field(..., description="Stable product identifier")
    title: str = Field(..., description="Product title")
    category: Category
    price: float = Field(..., ge=0, allow_inf_nan=False, description="Price in the store currency")
    rating: float = Field(0, ge=0, le=5, allow_inf_nan=False, description="Average rating")
    reviews: int = Field(0, ge=0, description="Review count")
    prime: bool = Field(False, description="Eligible for expedited shipping")
    stock: int = Field(0, ge=0, description="Units in stock")
    image: str = Field("", description="Primary image URL")
    images: List[str] = Field(default_factory=list, description="Gallery image URLs")
    videos: List[str] = Field(default_factory=list, description="Video URLs")
    description: str = ""

    @property
    def gallery(self) -> List[str]:
        urls = [self.image] if self.image else []
        return urls + [u for u in self.images if u not in urls]


class ProductInput(BaseModel):
    """Admin form payload for a new product."""
    title: str = Field(..., description="Product title")
    category: Category = Category.electronics
    price: float = Field(99, ge=0, allow_inf_nan=False)
    stock: int = Field(10, ge=0)
    prime: bool = True
    image: str = ""
    extra_images: List[str] = Field(default_factory=list)
    videos: List[str] = Field(default_factory=list)
    description: str = ""

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Title is required")
        return v.strip()


def youtube_embed_url(url: str) -> Optional[str]:
    """Return the embeddable form of a YouTube link, or None for anything else."""
    try:
        u = urlparse(url)
    except ValueError:
        return None
    host = u.hostname or ""
    if "youtu.be" in host:
        video_id = u.path.lstrip("/")
    elif "youtube.com" in host:
        video_id = parse_qs(u.query).get("v", [""])[0]
    else:
        return None
    return f"https://www.youtube.com/embed/{video_id}" if video_id else None


# -----------------------------
# Session
# -----------------------------

class Identity(BaseModel):
    """
    Session slice schema
    Storage key: "session"

    Self-asserted at login; nothing here is verified.
    """
    id: str = Field("demo_user", description="Identity identifier")
    name: str = Field("User", description="Display name")
    email: EmailStr
    role: Role = Role.customer


# -----------------------------
# Cart & Orders
# -----------------------------

CartState = Dict[str, PositiveInt]


class CartLine(BaseModel):
    product: Product
    qty: PositiveInt


class CartView(BaseModel):
    items: List[CartLine]
    subtotal: float
    count: int


class OrderItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: str
    title: str
    qty: PositiveInt
    price: float = Field(..., ge=0, allow_inf_nan=False, description="Unit price at checkout")


class Order(BaseModel):
    """
    Orders slice schema
    Storage key: "orders"
    """
    model_config = ConfigDict(frozen=True)

    id: str
    created_at: datetime
    status: str = Field("Processing")
    total: float = Field(..., ge=0, allow_inf_nan=False)
    items: List[OrderItem]
    user_email: str


# -----------------------------
# Search
# -----------------------------

class SearchCriteria(BaseModel):
    query: str = ""
    category: Optional[Category] = Field(None, description="None means all categories")
    price_max: float = Field(1500, ge=0)
    prime_only: bool = False
    sort: SortMode = SortMode.featured

    @field_validator("category", mode="before")
    @classmethod
    def all_means_none(cls, v):
        if v in (None, "", ALL_CATEGORIES):
            return None
        return v


# -----------------------------
# Typed failures
# -----------------------------

class NeedsAuth(BaseModel):
    model_config = ConfigDict(frozen=True)

    detail: str = "Sign in to continue"


class Forbidden(BaseModel):
    model_config = ConfigDict(frozen=True)

    detail: str = "Admin role required"


class EmptyCart(BaseModel):
    model_config = ConfigDict(frozen=True)

    detail: str = "Cart is empty"
