import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

import authentication, database, models, schema
from queries import CATEGORY_SORT_FIELDS, category_filters, order_by, page_params, paginate
from resolvers import category_query, category_view
from responses import ok
from routers.common import bad_request, commit_or_conflict, not_found
from validators import parse_identifier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/category", tags=["Categories"])

DUPLICATE_NAME = "Category with this name already exists"


def _get_category(db: Session, category_id: str) -> models.Category:
    category = category_query(db).filter(
        models.Category.id == parse_identifier(category_id, "category")
    ).first()
    if category is None:
        raise not_found("Category")
    return category


def _name_taken(db: Session, name: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(models.Category).filter(models.Category.name_key == models.fold_name(name))
    if exclude_id is not None:
        query = query.filter(models.Category.id != exclude_id)
    return query.first() is not None


@router.get("")
def list_categories(
    type: Optional[str] = None,
    search: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    db: Session = Depends(database.obtain_db_session),
):
    query = (
        category_query(db)
        .filter(*category_filters(search=search, type=type))
        .order_by(*order_by(models.Category, CATEGORY_SORT_FIELDS, sort_by, sort_order))
    )
    categories, pagination = paginate(query, page_params(page, limit))
    return ok([category_view(c) for c in categories], pagination=pagination)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_category(
    category: schema.CategoryCreate,
    db: Session = Depends(database.obtain_db_session),
    current_user: models.User = Depends(authentication.verify_user_session),
):
    if _name_taken(db, category.name):
        raise bad_request(DUPLICATE_NAME)
    db_cat = models.Category(name=category.name, type=category.type, created_by_id=current_user.id)
    db.add(db_cat)
    commit_or_conflict(db, DUPLICATE_NAME)
    logger.info("Category %s created by user %s", db_cat.id, current_user.id)
    db.refresh(db_cat)
    return ok(category_view(db_cat), "Category created successfully")


@router.get("/{category_id}")
def read_category(category_id: str, db: Session = Depends(database.obtain_db_session)):
    return ok(category_view(_get_category(db, category_id)))


@router.put("/{category_id}")
def update_category(
    category_id: str,
    category_update: schema.CategoryUpdate,
    db: Session = Depends(database.obtain_db_session),
    current_user: models.User = Depends(authentication.verify_user_session),
):
    db_cat = _get_category(db, category_id)
    changes = schema.changed_fields(category_update)
    if "name" in changes and changes["name"] != db_cat.name and _name_taken(db, changes["name"], db_cat.id):
        raise bad_request(DUPLICATE_NAME)

    for key, value in changes.items():
        setattr(db_cat, key, value)
    commit_or_conflict(db, DUPLICATE_NAME)
    db.refresh(db_cat)
    return ok(category_view(db_cat), "Category updated successfully")


@router.delete("/{category_id}")
def delete_category(
    category_id: str,
    db: Session = Depends(database.obtain_db_session),
    current_user: models.User = Depends(authentication.require_admin),
):
    db_cat = _get_category(db, category_id)
    # Soft delete; products keep their reference to the category
    db_cat.is_active = False
    db.commit()
    logger.info("Category %s deactivated by admin %s", db_cat.id, current_user.id)
    return ok(message="Category deleted successfully")
