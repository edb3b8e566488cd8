"""
Translate list-endpoint query parameters into SQLAlchemy filters, ordering and pages.

Every helper is lenient: parameters it cannot interpret are dropped rather than
rejected, so a malformed ``type`` or ``supplier`` simply does not narrow the list.
"""
import math
from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Query

from config import settings
from models import CATALOG_TYPES, ROLES, Category, Product, Supplier, User
from schema import Pagination
from validators import coerce_identifier, parse_bool_flag, parse_int, parse_number

PRODUCT_SORT_FIELDS = {
    "createdAt": Product.created_at,
    "updatedAt": Product.updated_at,
    "name": Product.name,
    "price": Product.price,
    "quantity": Product.quantity,
    "reorderThreshold": Product.reorder_threshold,
    "type": Product.type,
}
CATEGORY_SORT_FIELDS = {
    "createdAt": Category.created_at,
    "updatedAt": Category.updated_at,
    "name": Category.name,
    "type": Category.type,
}
SUPPLIER_SORT_FIELDS = {
    "createdAt": Supplier.created_at,
    "updatedAt": Supplier.updated_at,
    "name": Supplier.name,
    "contactPerson": Supplier.contact_person,
    "email": Supplier.email,
}
USER_SORT_FIELDS = {
    "createdAt": User.created_at,
    "name": User.name,
    "email": User.email,
    "role": User.role,
}


@dataclass
class PageParams:
    page: int
    limit: int

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


def _to_int(value, default: int) -> int:
    number = parse_int(value)
    return default if number is None else number


def page_params(page=None, limit=None) -> PageParams:
    """page >= 1 (default 1); limit clamped to [1, MAX_PAGE_SIZE] (default DEFAULT_PAGE_SIZE)."""
    page_num = max(1, _to_int(page, 1))
    limit_num = max(1, min(settings.MAX_PAGE_SIZE, _to_int(limit, settings.DEFAULT_PAGE_SIZE)))
    return PageParams(page=page_num, limit=limit_num)


def contains_text(column, text: str):
    return func.lower(column).contains(text.lower(), autoescape=True)


def search_filter(search: Optional[str], *columns):
    if not search or not search.strip():
        return None
    text = search.strip()
    return or_(*(contains_text(column, text) for column in columns))


def order_by(model, sort_fields: Dict, sort_by: Optional[str], sort_order: Optional[str]):
    column = sort_fields.get(sort_by or "createdAt", sort_fields["createdAt"])
    if (sort_order or "desc").lower() == "asc":
        return [column.asc(), model.id.asc()]
    return [column.desc(), model.id.desc()]


def product_filters(
    search=None,
    type=None,
    category=None,
    supplier=None,
    min_price=None,
    max_price=None,
    low_stock=None,
) -> List:
    conditions = []

    text = search_filter(search, Product.name, Product.description)
    if text is not None:
        conditions.append(text)

    if type in CATALOG_TYPES:
        conditions.append(Product.type == type)

    category_id = coerce_identifier(category)
    if category_id is not None:
        conditions.append(Product.category_id == category_id)

    supplier_id = coerce_identifier(supplier)
    if supplier_id is not None:
        conditions.append(Product.supplier_id == supplier_id)

    lower = parse_number(min_price)
    if lower is not None:
        conditions.append(Product.price >= lower)
    upper = parse_number(max_price)
    if upper is not None:
        conditions.append(Product.price <= upper)

    if parse_bool_flag(low_stock):
        # is_low_stock already restricts to type=product
        conditions.append(Product.is_low_stock)

    return conditions


def category_filters(search=None, type=None) -> List:
    conditions = [Category.is_active.is_(True)]
    text = search_filter(search, Category.name)
    if text is not None:
        conditions.append(text)
    if type in CATALOG_TYPES:
        conditions.append(Category.type == type)
    return conditions


def supplier_filters(search=None) -> List:
    text = search_filter(search, Supplier.name, Supplier.contact_person, Supplier.email)
    return [] if text is None else [text]


def user_filters(search=None, role=None) -> List:
    conditions = []
    text = search_filter(search, User.name, User.email)
    if text is not None:
        conditions.append(text)
    if role in ROLES:
        conditions.append(User.role == role)
    return conditions


def paginate(query: Query, params: PageParams):
    """Return one page of ``query`` plus its metadata; the total comes from a separate count."""
    total = query.order_by(None).count()
    # pages past the end are empty; skip may not even fit in a SQL integer
    items = query.offset(params.skip).limit(params.limit).all() if params.skip < total else []
    total_pages = math.ceil(total / params.limit)
    pagination = Pagination(
        current_page=params.page,
        total_pages=total_pages,
        total_items=total,
        items_per_page=params.limit,
        has_next_page=params.page < total_pages,
        has_prev_page=params.page > 1,
    )
    return items, pagination
