import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

import authentication, database, models, schema
from queries import USER_SORT_FIELDS, order_by, page_params, paginate, user_filters
from resolvers import user_view
from responses import ok
from routers.common import bad_request, commit_or_conflict, not_found
from validators import parse_identifier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])

DUPLICATE_EMAIL = "Email already exists"


def _get_user(db: Session, user_id: str) -> models.User:
    user = db.get(models.User, parse_identifier(user_id, "user"))
    if user is None:
        raise not_found("User")
    return user


@router.get("")
def list_users(
    search: Optional[str] = None,
    role: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    db: Session = Depends(database.obtain_db_session),
    current_user: models.User = Depends(authentication.require_admin),
):
    query = (
        db.query(models.User)
        .filter(*user_filters(search=search, role=role))
        .order_by(*order_by(models.User, USER_SORT_FIELDS, sort_by, sort_order))
    )
    users, pagination = paginate(query, page_params(page, limit))
    return ok([user_view(u) for u in users], "Users retrieved successfully", pagination)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_user(
    user: schema.UserCreate,
    db: Session = Depends(database.obtain_db_session),
    current_user: models.User = Depends(authentication.require_admin),
):
    if db.query(models.User).filter(models.User.email == user.email).first():
        raise bad_request("User already exists with this email")
    new_user = models.User(
        name=user.name,
        email=user.email,
        hashed_password=authentication.get_password_hash(user.password),
        role=user.role,
    )
    db.add(new_user)
    commit_or_conflict(db, DUPLICATE_EMAIL)
    db.refresh(new_user)
    logger.info("User %s created by admin %s", new_user.id, current_user.id)
    return ok({"user": user_view(new_user)}, "User created successfully")


@router.get("/profile")
def read_profile(current_user: models.User = Depends(authentication.verify_user_session)):
    return ok({"user": user_view(current_user)}, "Profile retrieved successfully")


@router.get("/{user_id}")
def read_user(
    user_id: str,
    db: Session = Depends(database.obtain_db_session),
    current_user: models.User = Depends(authentication.verify_user_session),
):
    return ok({"user": user_view(_get_user(db, user_id))}, "User retrieved successfully")


@router.put("/{user_id}")
def update_user(
    user_id: str,
    user_update: schema.UserUpdate,
    db: Session = Depends(database.obtain_db_session),
    current_user: models.User = Depends(authentication.verify_user_session),
):
    db_user = _get_user(db, user_id)
    authentication.ensure_self_or_admin(current_user, db_user.id)

    changes = schema.changed_fields(user_update)
    # Role changes from non-admins are ignored rather than rejected
    if not current_user.is_admin:
        changes.pop("role", None)
    if "password" in changes:
        db_user.hashed_password = authentication.get_password_hash(changes.pop("password"))
    if "email" in changes and changes["email"] != db_user.email:
        taken = (
            db.query(models.User)
            .filter(models.User.email == changes["email"], models.User.id != db_user.id)
            .first()
        )
        if taken:
            raise bad_request(DUPLICATE_EMAIL)

    for key, value in changes.items():
        setattr(db_user, key, value)
    commit_or_conflict(db, DUPLICATE_EMAIL)
    db.refresh(db_user)
    return ok({"user": user_view(db_user)}, "User updated successfully")


@router.delete("/{user_id}")
def delete_user(
    user_id: str,
    db: Session = Depends(database.obtain_db_session),
    current_user: models.User = Depends(authentication.require_admin),
):
    db_user = _get_user(db, user_id)
    if db_user.id == current_user.id:
        raise bad_request("You cannot delete your own account")
    deleted_id = db_user.id
    db.delete(db_user)
    db.commit()
    logger.info("User %s deleted by admin %s", deleted_id, current_user.id)
    return ok({"deletedUserId": deleted_id}, "User deleted successfully")
