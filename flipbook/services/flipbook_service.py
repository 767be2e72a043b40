"""Flipbook lifecycle: creation, page serving and admin transitions.

Every admin transition drops the flipbook's cached pages before returning, so
a page request issued after the transition completes is always rendered
against the new access state.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from fastapi import BackgroundTasks
from sqlmodel import Session, select

from flipbook.config import settings
from flipbook.exceptions import FlipbookNotFound, PageOutOfRange, ValidationError
from flipbook.models.flipbook import Flipbook, PaymentStatus
from flipbook.models.user import User
from flipbook.notifications import FlipbookEvent, notify_flipbook_ready
from flipbook.schemas.flipbook_schemas import (
    Activate,
    Deactivate,
    DeleteFlipbook,
    ExtendAccess,
    MakePermanent,
)
from flipbook.services import storage
from flipbook.services.access_gate import ensure_access, record_access
from flipbook.services.email_service import is_valid_email
from flipbook.services.page_cache import PageCache
from flipbook.services.pdf_extractor import extract_page, extract_page_count

logger = logging.getLogger(__name__)

ACCESS_TOKEN_BYTES = 32


@dataclass
class CreatedFlipbook:
    flipbook: Flipbook
    user: User
    email_sent: bool


@dataclass
class RenderedPage:
    data: bytes
    cache_hit: bool


@dataclass
class TransitionResult:
    message: str
    flipbook: Optional[Flipbook] = None
    deleted_id: Optional[int] = None


# -------- Lookups --------

def get_by_token(session: Session, access_token: str) -> Optional[Flipbook]:
    return session.exec(
        select(Flipbook).where(Flipbook.access_token == access_token)
    ).first()


def get_flipbook(session: Session, flipbook_id: int) -> Flipbook:
    flipbook = session.get(Flipbook, flipbook_id)
    if not flipbook:
        raise FlipbookNotFound()
    return flipbook


def get_or_create_user(session: Session, first_name: str, last_name: str, email: str) -> User:
    user = session.exec(select(User).where(User.email == email)).first()
    if user:
        logger.info(f"Reusing existing user {user.id} for {email}")
        return user

    user = User(first_name=first_name, last_name=last_name, email=email)
    session.add(user)
    session.flush()
    logger.info(f"Created user {user.id} for {email}")
    return user


def build_flipbook_link(access_token: str) -> str:
    return f"{settings.frontend_url.rstrip('/')}/flipbook/view/{access_token}"


def is_admin_email(email: str) -> bool:
    return bool(settings.admin_email) and email.lower() == settings.admin_email.strip().lower()


# -------- Creation --------

def create_flipbook(
    session: Session,
    *,
    first_name: Optional[str],
    last_name: Optional[str],
    email: Optional[str],
    original_name: Optional[str],
    content_type: Optional[str],
    contents: Optional[bytes],
    now: Optional[datetime] = None,
) -> CreatedFlipbook:
    first_name = (first_name or "").strip()
    last_name = (last_name or "").strip()
    email = (email or "").strip().lower()

    if not first_name or not last_name or not email:
        raise ValidationError("All fields are required")

    if not is_valid_email(email):
        raise ValidationError("Invalid email address")

    if contents is None:
        raise ValidationError("PDF file is required")

    if "pdf" not in (content_type or "").lower():
        raise ValidationError("Only PDF files are allowed", error=f"Unsupported content type: {content_type}")

    now = now or datetime.utcnow()
    admin_upload = is_admin_email(email)
    stored = None

    try:
        stored = storage.save_bytes(contents, settings.pdf_dir, original_name, "pdf")
        total_pages = extract_page_count(contents)

        user = get_or_create_user(session, first_name, last_name, email)

        access_token = secrets.token_hex(ACCESS_TOKEN_BYTES)
        flipbook = Flipbook(
            access_token=access_token,
            user_id=user.id,
            filename=stored.filename,
            original_name=original_name or stored.filename,
            path=stored.path,
            size=stored.size,
            total_pages=total_pages,
            flipbook_link=build_flipbook_link(access_token),
            expires_at=None if admin_upload else now + timedelta(days=settings.trial_days),
            payment_status=PaymentStatus.admin if admin_upload else PaymentStatus.pending,
            is_paid=admin_upload,
            created_at=now,
        )

        session.add(flipbook)
        session.commit()
        session.refresh(flipbook)
        session.refresh(user)

    except Exception:
        session.rollback()
        if stored is not None:
            storage.remove_file(stored.path)
            logger.info("Deleted uploaded file due to error")
        raise

    logger.info(f"Flipbook {flipbook.id} created for {email} ({total_pages} pages)")

    email_sent = notify_flipbook_ready(
        email=user.email,
        name=user.full_name,
        link=flipbook.flipbook_link,
        expires_at=flipbook.expires_at,
        is_trial=not admin_upload,
    )

    return CreatedFlipbook(flipbook=flipbook, user=user, email_sent=email_sent)


# -------- Viewer --------

def render_page(
    session: Session,
    cache: PageCache,
    access_token: str,
    page_number: int,
    now: Optional[datetime] = None,
) -> RenderedPage:
    """Access is checked on every request, including cache hits."""
    flipbook = ensure_access(get_by_token(session, access_token), now or datetime.utcnow())

    if page_number < 1 or page_number > flipbook.total_pages:
        raise PageOutOfRange(page_number, flipbook.total_pages)

    key = (flipbook.access_token, page_number)
    cached = cache.get(key)
    if cached is not None:
        return RenderedPage(data=cached, cache_hit=True)

    # an invalidation that lands during extraction makes the put a no-op
    generation = cache.generation(flipbook.access_token)
    data = extract_page(flipbook.path, page_number)
    cache.put(key, data, generation=generation)
    return RenderedPage(data=data, cache_hit=False)


def get_viewable(session: Session, access_token: str, now: Optional[datetime] = None) -> Flipbook:
    return ensure_access(get_by_token(session, access_token), now or datetime.utcnow())


def verify_access(session: Session, access_token: str, now: Optional[datetime] = None) -> Flipbook:
    now = now or datetime.utcnow()
    flipbook = ensure_access(get_by_token(session, access_token), now)
    record_access(flipbook, now)
    session.add(flipbook)
    session.commit()
    session.refresh(flipbook)
    return flipbook


# -------- Admin transitions --------

def _extend(flipbook: Flipbook, command: ExtendAccess, now: datetime):
    days = command.days or settings.default_extension_days
    flipbook.expires_at = now + timedelta(days=days)
    flipbook.payment_status = PaymentStatus.paid
    flipbook.is_paid = True
    return f"Access extended by {days} days", FlipbookEvent.ACCESS_EXTENDED


def _make_permanent(flipbook: Flipbook, command: MakePermanent, now: datetime):
    flipbook.expires_at = None
    flipbook.payment_status = PaymentStatus.admin
    flipbook.is_paid = True
    return "Access made permanent", FlipbookEvent.ACCESS_MADE_PERMANENT


def _deactivate(flipbook: Flipbook, command: Deactivate, now: datetime):
    flipbook.is_active = False
    return "Flipbook deactivated", None


def _activate(flipbook: Flipbook, command: Activate, now: datetime):
    flipbook.is_active = True
    return "Flipbook activated", FlipbookEvent.FLIPBOOK_ACTIVATED


_TRANSITIONS = {
    ExtendAccess: _extend,
    MakePermanent: _make_permanent,
    Deactivate: _deactivate,
    Activate: _activate,
}


def delete_flipbook(session: Session, cache: PageCache, flipbook: Flipbook) -> int:
    """Drop the record first; files go only once the delete is committed."""
    flipbook_id = flipbook.id
    token, path, pages_directory = flipbook.access_token, flipbook.path, flipbook.pages_directory

    session.delete(flipbook)
    session.commit()

    cache.invalidate_all(token)
    storage.remove_file(path)
    storage.remove_directory(pages_directory)
    logger.info(f"Flipbook {flipbook_id} deleted")
    return flipbook_id


def apply_command(
    session: Session,
    cache: PageCache,
    flipbook_id: int,
    command,
    background_tasks: Optional[BackgroundTasks] = None,
    now: Optional[datetime] = None,
) -> TransitionResult:
    """Run an admin command against a flipbook.

    Owner notifications are handed to ``background_tasks`` when given, so they
    never hold up the response.
    """
    flipbook = get_flipbook(session, flipbook_id)

    if isinstance(command, DeleteFlipbook):
        deleted_id = delete_flipbook(session, cache, flipbook)
        return TransitionResult(message="Flipbook deleted successfully", deleted_id=deleted_id)

    now = now or datetime.utcnow()
    message, event = _TRANSITIONS[type(command)](flipbook, command, now)

    session.add(flipbook)
    session.commit()
    session.refresh(flipbook)

    cache.invalidate_all(flipbook.access_token)
    logger.info(f"Flipbook {flipbook.id}: {command.action} ({message})")

    if event is not None:
        user = flipbook.user
        notice = dict(
            email=user.email,
            name=user.full_name,
            link=flipbook.flipbook_link,
            expires_at=flipbook.expires_at,
            is_trial=flipbook.is_trial,
            event=event,
        )
        if background_tasks is not None:
            background_tasks.add_task(notify_flipbook_ready, **notice)
        else:
            notify_flipbook_ready(**notice)

    return TransitionResult(message=message, flipbook=flipbook)
