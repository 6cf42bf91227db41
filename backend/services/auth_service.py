# services/auth_service.py
import logging

from sqlalchemy.orm import Session

from models.users import User, Role
from schemas.user import UserRegister, UserCreate
from services import user_service
from utils.errors import UnauthorizedError
from utils.hashing import verify_password
from utils.tokenJWT import (
    create_access_token, create_refresh_token, decode_token, user_from_payload, REFRESH,
)

logger = logging.getLogger(__name__)


def issue_tokens(user: User) -> dict:
    return {
        "access_token": create_access_token(user),
        "refresh_token": create_refresh_token(user),
        "token_type": "bearer",
    }


def register(db: Session, payload: UserRegister) -> dict:
    # Self-registration never grants more than USER
    user = user_service.create_user(db, UserCreate(**payload.model_dump(), role=Role.USER))
    return {"user": user, **issue_tokens(user)}


def authenticate(db: Session, email: str, password: str) -> User:
    user = user_service.get_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        raise UnauthorizedError("Invalid credentials")
    if not user.is_active:
        raise UnauthorizedError("Account is deactivated")
    return user


def login(db: Session, email: str, password: str) -> dict:
    user = authenticate(db, email, password)
    logger.info("User %s logged in", user.email)
    return {"user": user, **issue_tokens(user)}


def refresh(db: Session, refresh_token: str) -> dict:
    payload = decode_token(refresh_token, REFRESH)
    user = user_from_payload(db, payload)
    if not user.is_active:
        raise UnauthorizedError("Account is deactivated")
    return {"user": user, **issue_tokens(user)}
