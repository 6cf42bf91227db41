# backend/routes/auth.py
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from database import get_db
from models import users as models
from schemas import user as schemas
from services import auth_service
from utils.audit import write_log, client_ip
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/auth", tags=["Auth"])

# Register a new user
@router.post("/register", response_model=schemas.AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: schemas.UserRegister, request: Request, db: Session = Depends(get_db)):
    try:
        result = auth_service.register(db, payload)
    except HTTPException as exc:
        write_log(db, user_id=None, action="REGISTER", resource="auth", status="FAIL",
                  ip=client_ip(request), meta={"email": payload.email, "reason": exc.detail})
        raise

    # Log successful registration event
    write_log(db, user_id=result["user"].id, action="REGISTER", resource="auth",
              status="SUCCESS", ip=client_ip(request), meta={"email": result["user"].email})
    return result


# Authenticate user and issue JWT tokens
@router.post("/login", response_model=schemas.AuthResponse)
def login(payload: schemas.UserLogin, request: Request, db: Session = Depends(get_db)):
    try:
        result = auth_service.login(db, payload.email, payload.password)
    except HTTPException as exc:
        write_log(db, user_id=None, action="LOGIN", resource="auth", status="FAIL",
                  ip=client_ip(request), meta={"email": payload.email, "reason": exc.detail})
        raise

    write_log(db, user_id=result["user"].id, action="LOGIN", resource="auth",
              status="SUCCESS", ip=client_ip(request), meta={"email": result["user"].email})
    return result


# Exchange a refresh token for a new token pair
@router.post("/refresh", response_model=schemas.AuthResponse)
def refresh(payload: schemas.RefreshRequest, db: Session = Depends(get_db)):
    return auth_service.refresh(db, payload.refresh_token)


# Retrieve current authenticated user details
@router.get("/me", response_model=schemas.UserResponse)
def me(current_user: models.User = Depends(get_current_user)):
    return current_user
