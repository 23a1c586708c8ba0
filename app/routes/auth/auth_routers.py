from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.security import verify_password, create_access_token, verify_token
from app.models.admin_db.admin_crud import get_admin_by_username
from app.schemas.login.login_base import LoginRequest

auth_router = APIRouter(prefix="/api/auth", tags=["Auth"])


@auth_router.post("/login")
def login(payload: LoginRequest, response: Response, db: Session = Depends(get_db)):
    if not payload.username or not payload.password:
        raise HTTPException(status_code=400, detail="Username and password are required")

    admin = get_admin_by_username(db, payload.username)
    if not admin or not verify_password(payload.password, admin.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    token = create_access_token({"sub": admin.username, "id": admin.id}, expires)
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        max_age=int(expires.total_seconds()),
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )
    return {"success": True}


@auth_router.post("/verify")
def verify(request: Request):
    token = request.cookies.get(settings.AUTH_COOKIE_NAME)
    if not token:
        raise HTTPException(status_code=401, detail="No token provided")

    payload = verify_token(token)
    return {"valid": True, "user": {"id": payload.get("id"), "username": payload.get("sub")}}


@auth_router.post("/logout")
def logout(response: Response):
    response.delete_cookie(settings.AUTH_COOKIE_NAME)
    return {"success": True}
