"""
Catalog filtering.

Computes the visible product subset for the marketplace grid and
paginates it.
"""

import math
from typing import Iterable, List, NamedTuple, Optional

from remoteanswer.models.product import Product

ALL_CATEGORIES = "All"
BROWSABLE_CATEGORIES = [ALL_CATEGORIES, "STEM", "Humanities", "Business", "Tech"]
PAGE_SIZE = 6


class CatalogPage(NamedTuple):
    """One page of the filtered catalog."""
    items: List[Product]
    total_pages: int


def matches_text(product: Product, text_query: str) -> bool:
    """Case-insensitive substring match against title or description."""
    needle = text_query.lower()
    return needle in product.title.lower() or needle in product.description.lower()


def select_products(
    catalog: List[Product],
    category: str = ALL_CATEGORIES,
    text_query: str = "",
    oracle_ids: Optional[Iterable[str]] = None
) -> List[Product]:
    """
    Filter the catalog without paginating.

    Args:
        catalog: Full catalog in display order
        category: Exact category name, or "All" for every category
        text_query: Free text; blank means no text filter
        oracle_ids: Product ids returned by the recommendation oracle

    Returns:
        Matching products in catalog order
    """
    recommended = set(oracle_ids or [])
    if recommended:
        # Oracle results replace category and text filters entirely
        return [p for p in catalog if p.id in recommended]

    products = catalog
    if category != ALL_CATEGORIES:
        products = [p for p in products if p.category == category]

    query = (text_query or "").strip()
    if query:
        products = [p for p in products if matches_text(p, query)]

    return list(products)


def paginate(products: List[Product], page: int, page_size: int = PAGE_SIZE) -> CatalogPage:
    """
    Slice one page out of a product list.

    Pages are 1-based. A page past the end is empty; an empty list has
    zero pages.
    """
    if page < 1:
        raise ValueError(f"Invalid page: {page}. Pages start at 1")
    if page_size < 1:
        raise ValueError(f"Invalid page size: {page_size}")

    total_pages = math.ceil(len(products) / page_size)
    start = (page - 1) * page_size
    return CatalogPage(items=products[start:start + page_size], total_pages=total_pages)


def filter_catalog(
    catalog: List[Product],
    category: str = ALL_CATEGORIES,
    text_query: str = "",
    oracle_ids: Optional[Iterable[str]] = None,
    page: int = 1,
    page_size: int = PAGE_SIZE
) -> CatalogPage:
    """Filter the catalog and return the requested page with the page count."""
    products = select_products(catalog, category, text_query, oracle_ids)
    return paginate(products, page, page_size)
