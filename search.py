"""
Catalog search

derive() turns a catalog snapshot and search criteria into the list the
storefront displays. It is pure: the input list is never reordered and the
result only ever holds products taken from it.
"""

from typing import Iterable, List

from schemas import Product, SearchCriteria, SortMode

# Stock above this adds nothing to the featured score
FEATURED_STOCK_CAP = 50


def clamp(n, low, high):
    return max(low, min(high, n))


def featured_score(product: Product) -> float:
    return product.rating * 10 + clamp(product.stock, 0, FEATURED_STOCK_CAP) / 10


def matches(product: Product, criteria: SearchCriteria) -> bool:
    if criteria.category is not None and product.category != criteria.category:
        return False
    if criteria.prime_only and not product.prime:
        return False
    if product.price > criteria.price_max:
        return False
    q = criteria.query.strip().lower()
    if not q:
        return True
    return q in product.title.lower() or q in product.category.value.lower()


def derive(products: Iterable[Product], criteria: SearchCriteria) -> List[Product]:
    result = [p for p in products if matches(p, criteria)]

    # sorted() is stable, reverse=True included
    if criteria.sort == SortMode.price_asc:
        return sorted(result, key=lambda p: p.price)
    if criteria.sort == SortMode.price_desc:
        return sorted(result, key=lambda p: p.price, reverse=True)
    if criteria.sort == SortMode.rating_desc:
        return sorted(result, key=lambda p: p.rating, reverse=True)
    return sorted(result, key=featured_score, reverse=True)
