import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

import authentication, database, models, schema
from resolvers import user_view
from responses import ok
from routers.common import bad_request, commit_or_conflict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])

DUPLICATE_EMAIL = "User already exists with this email"


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register_user(user: schema.UserCreate, db: Session = Depends(database.obtain_db_session)):
    db_user = db.query(models.User).filter(models.User.email == user.email).first()
    if db_user:
        raise bad_request(DUPLICATE_EMAIL)
    new_user = models.User(
        name=user.name,
        email=user.email,
        hashed_password=authentication.get_password_hash(user.password),
        role=user.role,
    )
    db.add(new_user)
    commit_or_conflict(db, DUPLICATE_EMAIL)
    db.refresh(new_user)
    logger.info("Registered user %s (%s)", new_user.id, new_user.role)
    payload = schema.AuthPayload(token=authentication.token_for(new_user), user=user_view(new_user))
    return ok(payload, "User registered successfully")


@router.post("/login")
def login_handler(credentials: schema.LoginInput, db: Session = Depends(database.obtain_db_session)):
    user = db.query(models.User).filter(models.User.email == credentials.email).first()
    if not user or not authentication.verify_password(credentials.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    payload = schema.AuthPayload(token=authentication.token_for(user), user=user_view(user))
    return ok(payload, "Login successful")


@router.get("/me")
def read_current_user(current_user: models.User = Depends(authentication.verify_user_session)):
    return ok({"user": user_view(current_user)})


@router.post("/refresh")
def refresh_token(current_user: models.User = Depends(authentication.verify_user_session)):
    return ok({"token": authentication.token_for(current_user)}, "Token refreshed successfully")
