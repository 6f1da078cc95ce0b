import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, Header
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from . import crud, models, schemas
from .config import settings
from .database import get_db
from .errors import AuthenticationError, AuthorizationError

logger = logging.getLogger(__name__)

SECRET_KEY = settings.SECRET_KEY
ALGORITHM = settings.ALGORITHM
ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token", auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def create_user_token(user: models.User) -> str:
    return create_access_token(
        data={"sub": user.username, "id": user.id, "role": user.role},
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def authenticate_user(db: Session, username: str, password: str) -> Optional[models.User]:
    user = crud.get_user_by_username(db, username=username)
    if not user or not verify_password(password, user.hashed_password):
        return None
    return user


def resolve_token(db: Session, token: Optional[str]) -> models.User:
    if not token:
        raise AuthenticationError("No token provided, authorization denied")
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        username: str = payload.get("sub")
        if username is None:
            raise AuthenticationError("Token is not valid")
        token_data = schemas.TokenData(username=username)
    except JWTError:
        raise AuthenticationError("Token is not valid")
    user = crud.get_user_by_username(db, username=token_data.username)
    if user is None:
        raise AuthenticationError("Token is not valid")
    return user


async def get_token(
    bearer: Optional[str] = Depends(oauth2_scheme),
    x_auth_token: Optional[str] = Header(None),
) -> Optional[str]:
    return bearer or x_auth_token


async def get_current_user(token: Optional[str] = Depends(get_token), db: Session = Depends(get_db)):
    return resolve_token(db, token)


async def get_current_admin_user(current_user: models.User = Depends(get_current_user)):
    if current_user.role != "admin":
        raise AuthorizationError("Access denied. Admin privileges required.")
    return current_user


async def get_optional_admin(token: Optional[str] = Depends(get_token), db: Session = Depends(get_db)):
    """The admin behind the request, or None for anonymous and non-admin callers."""
    if not token:
        return None
    try:
        user = resolve_token(db, token)
    except AuthenticationError:
        logger.debug("Ignoring invalid token on a public endpoint")
        return None
    return user if user.role == "admin" else None
