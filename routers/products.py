import io
import logging
from typing import Optional

import pandas as pd
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import StreamingResponse
from sqlalchemy import select
from sqlalchemy.orm import Session

import authentication, database, models, schema
from queries import PRODUCT_SORT_FIELDS, order_by, page_params, paginate, product_filters
from resolvers import product_query, product_view, transaction_query, transaction_view
from responses import ok
from routers.common import bad_request, not_found
from validators import parse_identifier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["Products"])


def _label(product_type: str) -> str:
    return "Product" if product_type == "product" else "Service"


def _get_product(db: Session, product_id: str) -> models.Product:
    product = product_query(db).filter(
        models.Product.id == parse_identifier(product_id, "product")
    ).first()
    if product is None:
        raise not_found("Product/Service")
    return product


def _require_reference(db: Session, model, record_id: int, entity: str):
    if db.get(model, record_id) is None:
        raise bad_request(f"{entity} does not exist")


def record_stock_change(db: Session, product: models.Product, new_quantity: int, kind: str,
                        user: Optional[models.User], notes: Optional[str] = None):
    """Move ``product`` to ``new_quantity`` and append the matching audit entry."""
    previous = product.quantity or 0
    if new_quantity == previous:
        return None
    transaction = models.InventoryTransaction(
        product=product,
        type=kind,
        quantity=new_quantity - previous,
        previous_quantity=previous,
        new_quantity=new_quantity,
        notes=notes,
        created_by_id=user.id if user is not None else None,
    )
    product.quantity = new_quantity
    db.add(transaction)
    return transaction


@router.get("")
def list_products(
    search: Optional[str] = None,
    category: Optional[str] = None,
    type: Optional[str] = None,
    supplier: Optional[str] = None,
    min_price: Optional[str] = Query(None, alias="minPrice"),
    max_price: Optional[str] = Query(None, alias="maxPrice"),
    low_stock: Optional[str] = Query(None, alias="lowStock"),
    page: Optional[str] = None,
    limit: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    db: Session = Depends(database.obtain_db_session),
):
    conditions = product_filters(
        search=search,
        type=type,
        category=category,
        supplier=supplier,
        min_price=min_price,
        max_price=max_price,
        low_stock=low_stock,
    )
    query = (
        product_query(db)
        .filter(*conditions)
        .order_by(*order_by(models.Product, PRODUCT_SORT_FIELDS, sort_by, sort_order))
    )
    products, pagination = paginate(query, page_params(page, limit))
    return ok([product_view(p) for p in products], pagination=pagination)


@router.get("/low-stock")
def list_low_stock(db: Session = Depends(database.obtain_db_session)):
    products = (
        product_query(db)
        .filter(models.Product.is_low_stock)
        .order_by(models.Product.quantity.asc(), models.Product.id.asc())
        .all()
    )
    return ok([product_view(p) for p in products])


@router.get("/out-of-stock")
def list_out_of_stock(db: Session = Depends(database.obtain_db_session)):
    products = (
        product_query(db)
        .filter(models.Product.is_out_of_stock)
        .order_by(models.Product.updated_at.desc(), models.Product.id.desc())
        .all()
    )
    return ok([product_view(p) for p in products])


@router.get("/category/{category_id}")
def list_by_category(
    category_id: str,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    db: Session = Depends(database.obtain_db_session),
):
    category_pk = parse_identifier(category_id, "category")
    query = (
        product_query(db)
        .filter(models.Product.category_id == category_pk)
        .order_by(models.Product.created_at.desc(), models.Product.id.desc())
    )
    products, pagination = paginate(query, page_params(page, limit))
    return ok([product_view(p) for p in products], pagination=pagination)


# app generate report
@router.get("/report/inventory")
def get_inventory_report(db: Session = Depends(database.obtain_db_session)):
    statement = select(
        models.Product.id,
        models.Product.name,
        models.Product.type,
        models.Product.price,
        models.Product.quantity,
        models.Product.reorder_threshold,
    ).order_by(models.Product.id)
    df = pd.read_sql(statement, db.connection())

    df['total_value'] = df['price'] * df['quantity']
    df['is_low_stock'] = (df['type'] == 'product') & (df['quantity'] <= df['reorder_threshold'])

    stream = io.StringIO()
    df.to_csv(stream, index=False)
    response = StreamingResponse(iter([stream.getvalue()]), media_type="text/csv")
    response.headers["Content-Disposition"] = "attachment; filename=inventory_report.csv"
    return response


@router.get("/{product_id}")
def read_product(product_id: str, db: Session = Depends(database.obtain_db_session)):
    return ok(product_view(_get_product(db, product_id), detailed=True))


@router.get("/{product_id}/transactions")
def list_transactions(
    product_id: str,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    db: Session = Depends(database.obtain_db_session),
):
    product = _get_product(db, product_id)
    query = (
        transaction_query(db)
        .filter(models.InventoryTransaction.product_id == product.id)
        .order_by(models.InventoryTransaction.created_at.desc(), models.InventoryTransaction.id.desc())
    )
    transactions, pagination = paginate(query, page_params(page, limit))
    return ok([transaction_view(t) for t in transactions], pagination=pagination)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_product(
    product: schema.ProductCreate,
    db: Session = Depends(database.obtain_db_session),
    current_user: models.User = Depends(authentication.verify_user_session),
):
    _require_reference(db, models.Category, product.category, "Category")
    if product.supplier is not None:
        _require_reference(db, models.Supplier, product.supplier, "Supplier")

    db_product = models.Product(
        name=product.name,
        description=product.description,
        price=product.price,
        quantity=0,
        type=product.type,
        reorder_threshold=product.reorder_threshold,
        category_id=product.category,
        supplier_id=product.supplier,
    )
    db.add(db_product)
    record_stock_change(db, db_product, product.quantity, "adjustment", current_user, "Opening stock")
    db.commit()
    logger.info("%s %s created by user %s", _label(db_product.type), db_product.id, current_user.id)
    return ok(product_view(db_product), f"{_label(product.type)} created successfully")


@router.put("/{product_id}")
def update_product(
    product_id: str,
    product_update: schema.ProductUpdate,
    db: Session = Depends(database.obtain_db_session),
    current_user: models.User = Depends(authentication.verify_user_session),
):
    db_product = _get_product(db, product_id)
    changes = schema.changed_fields(product_update, nullable=("description", "supplier"))

    if "category" in changes:
        _require_reference(db, models.Category, changes["category"], "Category")
        db_product.category_id = changes.pop("category")
    if "supplier" in changes:
        if changes["supplier"] is not None:
            _require_reference(db, models.Supplier, changes["supplier"], "Supplier")
        db_product.supplier_id = changes.pop("supplier")

    # Services never hold stock, whether the type is new or already stored
    if changes.get("type", db_product.type) == "service":
        changes["quantity"] = 0
    if "quantity" in changes:
        record_stock_change(db, db_product, changes.pop("quantity"), "adjustment", current_user)

    for key, value in changes.items():
        setattr(db_product, key, value)
    db.commit()
    return ok(product_view(db_product), "Product/Service updated successfully")


@router.delete("/{product_id}")
def delete_product(
    product_id: str,
    db: Session = Depends(database.obtain_db_session),
    current_user: models.User = Depends(authentication.verify_user_session),
):
    db_product = db.get(models.Product, parse_identifier(product_id, "product"))
    if db_product is None:
        raise not_found("Product/Service")
    label = _label(db_product.type)
    deleted_id = db_product.id
    db.delete(db_product)
    db.commit()
    logger.info("%s %s deleted by user %s", label, deleted_id, current_user.id)
    return ok(message=f"{label} deleted successfully")


@router.post("/{product_id}/stock")
def move_stock(
    product_id: str,
    movement: schema.StockMovement,
    db: Session = Depends(database.obtain_db_session),
    current_user: models.User = Depends(authentication.verify_user_session),
):
    db_product = _get_product(db, product_id)
    if db_product.type == "service":
        raise bad_request("Stock cannot be adjusted for services")

    new_quantity = db_product.quantity + movement.delta
    if new_quantity < 0:
        raise bad_request("Not enough stock available")

    transaction = record_stock_change(db, db_product, new_quantity, movement.type, current_user, movement.notes)
    db.commit()
    logger.info("Stock %s of %s on product %s -> %s", movement.type, movement.quantity, db_product.id, new_quantity)
    db.refresh(transaction)
    return ok(
        {"product": product_view(db_product), "transaction": transaction_view(transaction)},
        "Stock updated successfully",
    )
