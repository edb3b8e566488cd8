"""
Expand stored foreign keys into embedded summaries when records are returned.

Rows keep raw references; the summaries only exist in the response.
"""
from sqlalchemy.orm import Session, selectinload

import models, schema

PRODUCT_RELATIONS = (
    selectinload(models.Product.category),
    selectinload(models.Product.supplier),
)
CATEGORY_RELATIONS = (selectinload(models.Category.creator),)
TRANSACTION_RELATIONS = (selectinload(models.InventoryTransaction.creator),)


def product_query(db: Session):
    return db.query(models.Product).options(*PRODUCT_RELATIONS)


def category_query(db: Session):
    return db.query(models.Category).options(*CATEGORY_RELATIONS)


def transaction_query(db: Session):
    return db.query(models.InventoryTransaction).options(*TRANSACTION_RELATIONS)


def _user_summary(user):
    return schema.UserSummary.model_validate(user) if user is not None else None


def product_view(product: models.Product, detailed: bool = False) -> schema.ProductPublic:
    """Public shape of a product; ``detailed`` adds the supplier's phone and email."""
    view = schema.ProductDetail if detailed else schema.ProductPublic
    supplier = None
    if product.supplier is not None:
        summary = schema.SupplierContact if detailed else schema.SupplierSummary
        supplier = summary.model_validate(product.supplier)
    return view(
        id=product.id,
        name=product.name,
        description=product.description,
        price=product.price,
        quantity=product.quantity,
        type=product.type,
        reorder_threshold=product.reorder_threshold,
        is_low_stock=product.is_low_stock,
        is_out_of_stock=product.is_out_of_stock,
        category=schema.CategorySummary.model_validate(product.category) if product.category else None,
        supplier=supplier,
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


def category_view(category: models.Category) -> schema.CategoryPublic:
    return schema.CategoryPublic(
        id=category.id,
        name=category.name,
        type=category.type,
        is_active=category.is_active,
        created_by=_user_summary(category.creator),
        created_at=category.created_at,
        updated_at=category.updated_at,
    )


def supplier_view(supplier: models.Supplier) -> schema.SupplierPublic:
    return schema.SupplierPublic.model_validate(supplier)


def user_view(user: models.User) -> schema.UserPublic:
    return schema.UserPublic.model_validate(user)


def transaction_view(transaction: models.InventoryTransaction) -> schema.TransactionPublic:
    return schema.TransactionPublic(
        id=transaction.id,
        product_id=transaction.product_id,
        type=transaction.type,
        quantity=transaction.quantity,
        previous_quantity=transaction.previous_quantity,
        new_quantity=transaction.new_quantity,
        notes=transaction.notes,
        created_by=_user_summary(transaction.creator),
        created_at=transaction.created_at,
    )
