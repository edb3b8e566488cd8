import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

import authentication, database, models, schema
from queries import SUPPLIER_SORT_FIELDS, order_by, page_params, paginate, supplier_filters
from resolvers import product_query, product_view, supplier_view
from responses import ok
from routers.common import bad_request, commit_or_conflict, not_found
from validators import parse_identifier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/supplier", tags=["Suppliers"])

DUPLICATE_EMAIL = "Supplier with this email already exists"


def _get_supplier(db: Session, supplier_id) -> models.Supplier:
    supplier = db.get(models.Supplier, parse_identifier(supplier_id, "supplier"))
    if supplier is None:
        raise not_found("Supplier")
    return supplier


def _email_taken(db: Session, email: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(models.Supplier).filter(models.Supplier.email == email)
    if exclude_id is not None:
        query = query.filter(models.Supplier.id != exclude_id)
    return query.first() is not None


@router.get("")
def list_suppliers(
    search: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    db: Session = Depends(database.obtain_db_session),
):
    query = (
        db.query(models.Supplier)
        .filter(*supplier_filters(search=search))
        .order_by(*order_by(models.Supplier, SUPPLIER_SORT_FIELDS, sort_by, sort_order))
    )
    suppliers, pagination = paginate(query, page_params(page, limit))
    return ok([supplier_view(s) for s in suppliers], pagination=pagination)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_supplier(
    supplier: schema.SupplierCreate,
    db: Session = Depends(database.obtain_db_session),
    current_user: models.User = Depends(authentication.verify_user_session),
):
    if _email_taken(db, supplier.email):
        raise bad_request(DUPLICATE_EMAIL)
    db_sup = models.Supplier(**supplier.model_dump())
    db.add(db_sup)
    commit_or_conflict(db, DUPLICATE_EMAIL)
    db.refresh(db_sup)
    logger.info("Supplier %s created by user %s", db_sup.id, current_user.id)
    return ok(supplier_view(db_sup), "Supplier created successfully")


@router.post("/link-product")
def link_product_to_supplier(
    link: schema.LinkProductInput,
    db: Session = Depends(database.obtain_db_session),
    current_user: models.User = Depends(authentication.verify_user_session),
):
    supplier = _get_supplier(db, link.supplier_id)
    product = db.get(models.Product, link.product_id)
    if product is None:
        raise not_found("Product")
    product.supplier_id = supplier.id
    db.commit()
    logger.info("Product %s linked to supplier %s", product.id, supplier.id)
    return ok(product_view(product), "Product linked to supplier successfully")


@router.delete("/unlink-product/{product_id}")
def unlink_product_from_supplier(
    product_id: str,
    db: Session = Depends(database.obtain_db_session),
    current_user: models.User = Depends(authentication.verify_user_session),
):
    product = db.get(models.Product, parse_identifier(product_id, "product"))
    if product is None:
        raise not_found("Product")
    product.supplier_id = None
    db.commit()
    logger.info("Product %s unlinked from its supplier", product.id)
    return ok(product_view(product), "Product unlinked from supplier successfully")


@router.get("/{supplier_id}")
def read_supplier(supplier_id: str, db: Session = Depends(database.obtain_db_session)):
    return ok(supplier_view(_get_supplier(db, supplier_id)))


@router.get("/{supplier_id}/products")
def list_supplier_products(
    supplier_id: str,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    db: Session = Depends(database.obtain_db_session),
):
    supplier = _get_supplier(db, supplier_id)
    query = (
        product_query(db)
        .filter(models.Product.supplier_id == supplier.id)
        .order_by(models.Product.created_at.desc(), models.Product.id.desc())
    )
    products, pagination = paginate(query, page_params(page, limit))
    data = {
        "supplier": schema.SupplierSummary.model_validate(supplier),
        "products": [product_view(p) for p in products],
    }
    return ok(data, pagination=pagination)


@router.get("/{supplier_id}/stats")
def read_supplier_stats(supplier_id: str, db: Session = Depends(database.obtain_db_session)):
    supplier = _get_supplier(db, supplier_id)
    linked = db.query(models.Product).filter(models.Product.supplier_id == supplier.id)
    total_products = linked.filter(models.Product.type == "product").count()
    total_services = linked.filter(models.Product.type == "service").count()
    stats = schema.SupplierStats(
        total_products=total_products,
        total_services=total_services,
        low_stock_products=linked.filter(models.Product.is_low_stock).count(),
        out_of_stock_products=linked.filter(models.Product.is_out_of_stock).count(),
        total_items=total_products + total_services,
    )
    return ok({"supplier": supplier_view(supplier), "stats": stats})


@router.put("/{supplier_id}")
def update_supplier(
    supplier_id: str,
    supplier_update: schema.SupplierUpdate,
    db: Session = Depends(database.obtain_db_session),
    current_user: models.User = Depends(authentication.verify_user_session),
):
    db_sup = _get_supplier(db, supplier_id)
    changes = schema.changed_fields(supplier_update)
    if "email" in changes and changes["email"] != db_sup.email and _email_taken(db, changes["email"], db_sup.id):
        raise bad_request(DUPLICATE_EMAIL)

    for key, value in changes.items():
        setattr(db_sup, key, value)
    commit_or_conflict(db, DUPLICATE_EMAIL)
    db.refresh(db_sup)
    return ok(supplier_view(db_sup), "Supplier updated successfully")


@router.delete("/{supplier_id}")
def delete_supplier(
    supplier_id: str,
    db: Session = Depends(database.obtain_db_session),
    current_user: models.User = Depends(authentication.verify_user_session),
):
    db_sup = _get_supplier(db, supplier_id)
    linked = db.query(models.Product).filter(models.Product.supplier_id == db_sup.id).count()
    if linked > 0:
        raise bad_request(
            f"Cannot delete supplier. {linked} product(s) are linked to this supplier. "
            "Please unlink products first."
        )
    deleted_id = db_sup.id
    db.delete(db_sup)
    db.commit()
    logger.info("Supplier %s deleted by user %s", deleted_id, current_user.id)
    return ok(message="Supplier deleted successfully")
