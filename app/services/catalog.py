"""
Catalog queries used by the product listings and the dashboard.

Everything here works on the cached entities and never touches the network.
"""

import math
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Union

from app.schemas.business import Business
from app.schemas.dashboard import DashboardResponse
from app.schemas.product import Product, ProductWithBusiness

CATEGORIES = [
    "Electrónica",
    "Ropa y Accesorios",
    "Hogar y Jardín",
    "Deportes",
    "Vehículos",
    "Muebles",
    "Juguetes",
    "Libros",
    "Arte y Manualidades",
    "Otros",
]

DEFAULT_PER_PAGE = 20
DASHBOARD_RECENT_PRODUCTS = 4

ELLIPSIS_START = "ellipsis-start"
ELLIPSIS_END = "ellipsis-end"


@dataclass
class Page:
    items: list
    page: int
    per_page: int
    total: int
    total_pages: int
    page_numbers: List[Union[int, str]] = field(default_factory=list)


def _is_set(value: Optional[str]) -> bool:
    return value is not None and value != "all"


def filter_products(
    products: Iterable[Product],
    search: Optional[str] = None,
    category: Optional[str] = None,
    status: Optional[str] = None,
    business_id: Optional[str] = None,
) -> List[Product]:
    """
    Filter products, keeping their order.

    ``search`` matches name or description case-insensitively. For the other
    filters, None or "all" means no filtering.
    """
    term = (search or "").strip().lower()
    result = []
    for product in products:
        if term and term not in product.name.lower() and term not in (product.description or "").lower():
            continue
        if _is_set(category) and product.category != category:
            continue
        if _is_set(status) and product.status != status:
            continue
        if _is_set(business_id) and product.business_id != business_id:
            continue
        result.append(product)
    return result


def page_numbers(current: int, total_pages: int, max_visible: int = 5) -> List[Union[int, str]]:
    """
    Page links for a pager: all pages when they fit, otherwise the first and
    last page around a window of the current one, with ellipsis markers.

    Example: page_numbers(5, 10) -> [1, "ellipsis-start", 4, 5, 6, "ellipsis-end", 10]
    """
    if total_pages <= max_visible:
        return list(range(1, total_pages + 1))

    pages: List[Union[int, str]] = [1]
    if current > 3:
        pages.append(ELLIPSIS_START)

    start = max(2, current - 1)
    end = min(total_pages - 1, current + 1)
    pages.extend(range(start, end + 1))

    if current < total_pages - 2:
        pages.append(ELLIPSIS_END)

    pages.append(total_pages)
    return pages


def paginate(items: Sequence, page: int = 1, per_page: int = DEFAULT_PER_PAGE) -> Page:
    """Slice one page out of ``items``; ``page`` is clamped to the valid range."""
    per_page = max(1, per_page)
    total = len(items)
    total_pages = math.ceil(total / per_page)
    page = min(max(1, page), max(1, total_pages))
    start = (page - 1) * per_page

    return Page(
        items=list(items[start:start + per_page]),
        page=page,
        per_page=per_page,
        total=total,
        total_pages=total_pages,
        page_numbers=page_numbers(page, total_pages),
    )


def with_business_names(products: Iterable[Product], businesses: Iterable[Business]) -> List[ProductWithBusiness]:
    names = {b.id: b.name for b in businesses}
    return [
        ProductWithBusiness(**product.model_dump(), business_name=names.get(product.business_id))
        for product in products
    ]


def dashboard_summary(store) -> DashboardResponse:
    return DashboardResponse(
        total_businesses=len(store.businesses),
        total_products=store.get_total_products(),
        available_products=store.get_available_products(),
        recent_products=store.get_recent_products(DASHBOARD_RECENT_PRODUCTS),
        active_business=store.active_business,
        live_updates=store.live,
    )
