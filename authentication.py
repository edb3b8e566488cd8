import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from config import settings
import database, models

logger = logging.getLogger(__name__)

crypto_ctx = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login")

def get_password_hash(password):
    return crypto_ctx.hash(password)

def verify_password(plain_password, hashed_password):
    return crypto_ctx.verify(plain_password, hashed_password)

def generate_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.TOKEN_EXPIRE_MIN)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGO)
    return encoded_jwt

def token_for(user: models.User) -> str:
    return generate_access_token(data={"sub": str(user.id), "role": user.role})

async def verify_user_session(
    token: str = Depends(oauth2_scheme), db: Session = Depends(database.obtain_db_session)
) -> models.User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Token is not valid",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGO])
        subject: str = payload.get("sub")
        if subject is None or not subject.isdigit():
            raise credentials_exception
    except JWTError:
        raise credentials_exception
    user = db.get(models.User, int(subject))
    if user is None:
        logger.info("Rejected token for missing user %s", subject)
        raise credentials_exception
    return user

def require_role(role: str):
    """Build a dependency that admits only users holding ``role``."""
    async def checker(current_user: models.User = Depends(verify_user_session)) -> models.User:
        if current_user.role != role:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"{role.capitalize()} access required",
            )
        return current_user
    return checker

require_admin = require_role("admin")

def ensure_self_or_admin(current_user: models.User, target_id: int):
    if not current_user.is_admin and current_user.id != target_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only update your own profile",
        )
