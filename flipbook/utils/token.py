from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlmodel import Session

from flipbook.config import settings
from flipbook.database import get_session
from flipbook.models.admin import Admin

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/admin/auth/login")


def create_access_token(admin_id: int, expires_delta: Optional[timedelta] = None) -> str:
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    claims = {
        "admin_id": admin_id,
        "exp": datetime.utcnow() + lifetime,
    }
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> Optional[dict]:
    """Claims of a valid, unexpired token, else ``None``."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_admin(
    token: str = Depends(oauth2_scheme),
    session: Session = Depends(get_session),
) -> Admin:
    claims = decode_access_token(token)
    if claims is None:
        raise _unauthorized("Invalid token. Please log in again.")

    admin_id = claims.get("admin_id")
    if not isinstance(admin_id, int):
        raise _unauthorized("Invalid token payload")

    admin = session.get(Admin, admin_id)
    if admin is None:
        raise _unauthorized("Admin no longer exists.")

    return admin
