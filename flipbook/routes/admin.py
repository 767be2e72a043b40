import logging

from fastapi import APIRouter, BackgroundTasks, Body, Depends, Query
from sqlalchemy import func, or_
from sqlmodel import Session, select

from flipbook.database import get_session
from flipbook.dependencies.cache import get_page_cache
from flipbook.exceptions import NotFoundError
from flipbook.models.admin import Admin
from flipbook.models.flipbook import Flipbook
from flipbook.models.user import User
from flipbook.schemas.flipbook_schemas import FlipbookCommand
from flipbook.services import flipbook_service
from flipbook.services.page_cache import PageCache
from flipbook.utils.pagination import paginate
from flipbook.utils.token import get_current_admin

logger = logging.getLogger(__name__)

router = APIRouter()


def _user_summary(user: User) -> dict:
    return {
        "id": user.id,
        "firstname": user.first_name,
        "lastname": user.last_name,
        "email": user.email,
    }


def _flipbook_summary(fb: Flipbook, include_user: bool = True) -> dict:
    data = {
        "id": fb.id,
        "originalName": fb.original_name,
        "flipbookLink": fb.flipbook_link,
        "totalPages": fb.total_pages,
        "expiresAt": fb.expires_at,
        "isActive": fb.is_active,
        "isPaid": fb.is_paid,
        "paymentStatus": fb.payment_status,
        "accessCount": fb.access_count or 0,
        "lastAccessed": fb.last_accessed,
        "createdAt": fb.created_at,
        "size": fb.size,
    }
    if include_user:
        data["user"] = _user_summary(fb.user) if fb.user else None
    return data


# -------------------------------
# Dashboard
# -------------------------------

@router.get("/stats")
def get_dashboard_stats(
    session: Session = Depends(get_session),
    admin: Admin = Depends(get_current_admin),
):
    total_users = session.exec(select(func.count()).select_from(User)).one()
    total_flipbooks = session.exec(select(func.count()).select_from(Flipbook)).one()
    active_flipbooks = session.exec(
        select(func.count()).select_from(Flipbook).where(Flipbook.is_active == True)
    ).one()
    paid_flipbooks = session.exec(
        select(func.count()).select_from(Flipbook).where(Flipbook.is_paid == True)
    ).one()
    recent = session.exec(
        select(Flipbook).order_by(Flipbook.created_at.desc()).limit(5)
    ).all()

    return {
        "success": True,
        "stats": {
            "totalUsers": total_users,
            "totalFlipbooks": total_flipbooks,
            "activeFlipbooks": active_flipbooks,
            "paidFlipbooks": paid_flipbooks,
            "trialFlipbooks": total_flipbooks - paid_flipbooks,
        },
        "recentActivity": [
            {
                "id": fb.id,
                "user": _user_summary(fb.user) if fb.user else None,
                "originalName": fb.original_name,
                "createdAt": fb.created_at,
                "status": "active" if fb.is_active else "inactive",
            }
            for fb in recent
        ],
    }


# -------------------------------
# Flipbooks
# -------------------------------

@router.get("/flipbooks")
def list_flipbooks(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str | None = None,
    session: Session = Depends(get_session),
    admin: Admin = Depends(get_current_admin),
):
    query = select(Flipbook).join(User)

    if search:
        pattern = f"%{search}%"
        query = query.where(
            or_(
                Flipbook.original_name.ilike(pattern),
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern),
                User.email.ilike(pattern),
            )
        )

    query = query.order_by(Flipbook.created_at.desc())

    result = paginate(session, query, page=page, limit=limit)

    return {
        "success": True,
        "count": len(result.items),
        "total_items": result.total_items,
        "total_pages": result.total_pages,
        "current_page": result.current_page,
        "flipbooks": [_flipbook_summary(fb) for fb in result.items],
    }


@router.get("/flipbook/{flipbook_id}")
def get_flipbook_info(
    flipbook_id: int,
    session: Session = Depends(get_session),
    admin: Admin = Depends(get_current_admin),
):
    flipbook = flipbook_service.get_flipbook(session, flipbook_id)

    data = _flipbook_summary(flipbook)
    data["filename"] = flipbook.filename

    return {"success": True, "flipbook": data}


@router.patch("/flipbook/{flipbook_id}")
def update_flipbook_access(
    flipbook_id: int,
    background_tasks: BackgroundTasks,
    command: FlipbookCommand = Body(...),
    session: Session = Depends(get_session),
    cache: PageCache = Depends(get_page_cache),
    admin: Admin = Depends(get_current_admin),
):
    logger.info(f"Flipbook action: {command.action} on {flipbook_id} by {admin.email}")

    result = flipbook_service.apply_command(
        session, cache, flipbook_id, command, background_tasks=background_tasks
    )

    if result.flipbook is None:
        return {
            "success": True,
            "message": result.message,
            "deletedId": result.deleted_id,
        }

    fb = result.flipbook
    return {
        "success": True,
        "message": result.message,
        "flipbook": {
            "id": fb.id,
            "expiresAt": fb.expires_at,
            "isActive": fb.is_active,
            "isPaid": fb.is_paid,
            "paymentStatus": fb.payment_status,
        },
    }


# -------------------------------
# Users
# -------------------------------

@router.get("/users")
def list_users(
    session: Session = Depends(get_session),
    admin: Admin = Depends(get_current_admin),
):
    rows = session.exec(
        select(User, func.count(Flipbook.id))
        .outerjoin(Flipbook, Flipbook.user_id == User.id)
        .group_by(User.id)
        .order_by(User.created_at.desc())
    ).all()

    return {
        "success": True,
        "users": [
            {
                **_user_summary(user),
                "createdAt": user.created_at,
                "flipbookCount": flipbook_count or 0,
            }
            for user, flipbook_count in rows
        ],
    }


@router.get("/users/{user_id}/flipbooks")
def list_user_flipbooks(
    user_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    session: Session = Depends(get_session),
    admin: Admin = Depends(get_current_admin),
):
    if not session.get(User, user_id):
        raise NotFoundError("User not found")

    query = (
        select(Flipbook)
        .where(Flipbook.user_id == user_id)
        .order_by(Flipbook.created_at.desc())
    )
    result = paginate(session, query, page=page, limit=limit)

    return {
        "success": True,
        "count": len(result.items),
        "total_items": result.total_items,
        "total_pages": result.total_pages,
        "current_page": result.current_page,
        "flipbooks": [_flipbook_summary(fb, include_user=False) for fb in result.items],
    }


# -------------------------------
# Page cache
# -------------------------------

@router.get("/cache")
def get_cache_stats(
    cache: PageCache = Depends(get_page_cache),
    admin: Admin = Depends(get_current_admin),
):
    return {"success": True, "cache": cache.stats()}


@router.delete("/cache")
def clear_cache(
    cache: PageCache = Depends(get_page_cache),
    admin: Admin = Depends(get_current_admin),
):
    before = len(cache)
    cache.clear()

    return {
        "message": "Cache cleared successfully",
        "cacheSizeBefore": before,
        "cacheSizeAfter": len(cache),
    }
