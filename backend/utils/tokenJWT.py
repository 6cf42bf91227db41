# utils/tokenJWT.py
from jose import jwt, JWTError, ExpiredSignatureError
from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from models import users as models
from utils.errors import (
    UnauthorizedError, TokenMalformedError, TokenExpiredError,
    TokenSignatureError, TokenTypeError,
)
from utils.roles import check_access

ACCESS = "access"
REFRESH = "refresh"

# Missing credentials are reported as 401 by get_current_user, not 403
bearer_scheme = HTTPBearer(auto_error=False)


def _secret_for(token_type: str) -> str:
    return settings.REFRESH_SECRET_KEY if token_type == REFRESH else settings.SECRET_KEY


def _claims_for(user) -> dict:
    role = getattr(user.role, "value", user.role)
    return {"sub": str(user.id), "email": user.email, "role": role}


def _encode(data: dict, token_type: str, expires_delta: timedelta) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode.update({"exp": expire, "type": token_type})
    return jwt.encode(to_encode, _secret_for(token_type), algorithm=settings.ALGORITHM)


# Generate a new JWT access token
def create_access_token(user, expires_delta: Optional[timedelta] = None) -> str:
    return _encode(
        _claims_for(user), ACCESS,
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )


# Generate a long-lived refresh token signed with its own secret
def create_refresh_token(user, expires_delta: Optional[timedelta] = None) -> str:
    return _encode(
        _claims_for(user), REFRESH,
        expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    )


def decode_token(token: str, token_type: str = ACCESS) -> dict:
    """Verify a token and return its claims.

    Raises TokenMalformedError, TokenExpiredError, TokenSignatureError or
    TokenTypeError, all of them 401 responses.
    """
    try:
        jwt.get_unverified_claims(token)
    except JWTError:
        raise TokenMalformedError()

    try:
        payload = jwt.decode(token, _secret_for(token_type), algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError:
        raise TokenExpiredError()
    except JWTError:
        raise TokenSignatureError()

    if payload.get("type") != token_type:
        raise TokenTypeError(token_type)
    if not payload.get("sub"):
        raise TokenMalformedError()
    return payload


def user_from_payload(db: Session, payload: dict):
    try:
        user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise TokenMalformedError()
    user = db.query(models.User).filter(models.User.id == user_id).first()
    if user is None:
        raise UnauthorizedError("User not found")
    return user


# Retrieve the currently authenticated user based on the JWT token
def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
):
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Not authenticated")
    payload = decode_token(credentials.credentials, ACCESS)
    return user_from_payload(db, payload)


# Dependency factory for hierarchical role-based access control
def role_required(*allowed_roles):
    def _checker(current_user = Depends(get_current_user)):
        return check_access(current_user, allowed_roles)
    return _checker
