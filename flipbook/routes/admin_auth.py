import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session

from flipbook.database import get_session
from flipbook.schemas.admin_schemas import AdminLogin, AdminRegister
from flipbook.services import admin_service
from flipbook.utils.token import create_access_token

logger = logging.getLogger(__name__)

router = APIRouter()


# -------- ADMIN AUTH ROUTES --------

@router.get("/check")
def check_admin_exists(session: Session = Depends(get_session)):
    return {"adminExists": admin_service.admin_exists(session)}


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register_admin(payload: AdminRegister, session: Session = Depends(get_session)):
    admin = admin_service.create_admin(session, payload.email, payload.password)

    return {
        "message": "Admin registered successfully",
        "admin": {
            "id": admin.id,
            "email": admin.email,
            "createdAt": admin.created_at,
        },
    }


@router.post("/login")
def login_admin(payload: AdminLogin, session: Session = Depends(get_session)):
    admin = admin_service.authenticate(session, payload.email, payload.password)

    if not admin:
        logger.info(f"Failed admin login for {payload.email}")
        raise HTTPException(401, "Incorrect email or password")

    token = create_access_token(admin.id)

    return {
        "message": "Login successful",
        "token": token,
        "token_type": "bearer",
        "admin": {
            "id": admin.id,
            "email": admin.email,
        },
    }
