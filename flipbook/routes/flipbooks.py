import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import JSONResponse, Response
from fastapi.encoders import jsonable_encoder
from sqlmodel import Session

from flipbook.config import settings
from flipbook.database import get_session
from flipbook.dependencies.cache import get_page_cache
from flipbook.exceptions import FlipbookError, InternalError
from flipbook.services import flipbook_service
from flipbook.services.page_cache import PageCache

logger = logging.getLogger(__name__)

router = APIRouter()


def page_cache_control() -> str:
    # token-gated pages stay out of shared caches and expire with the server copy
    return f"private, max-age={settings.page_cache_ttl_seconds}"


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register_flipbook(
    firstname: str = Form(None),
    lastname: str = Form(None),
    email: str = Form(None),
    pdf: UploadFile = File(None),
    session: Session = Depends(get_session),
):
    try:
        created = flipbook_service.create_flipbook(
            session,
            first_name=firstname,
            last_name=lastname,
            email=email,
            original_name=pdf.filename if pdf else None,
            content_type=pdf.content_type if pdf else None,
            contents=pdf.file.read() if pdf else None,
        )
    except FlipbookError:
        raise
    except Exception as e:
        logger.exception("Flipbook upload error")
        raise InternalError(error=str(e)) from e

    flipbook, user = created.flipbook, created.user
    message = "Flipbook created successfully" + (
        " and email sent" if created.email_sent else " but email failed"
    )

    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=jsonable_encoder({
            "message": message,
            "flipbookLink": flipbook.flipbook_link,
            "expiresAt": flipbook.expires_at,
            "flipbookId": flipbook.id,
            "accessToken": flipbook.access_token,
            "isTrial": flipbook.is_trial,
            "emailSent": created.email_sent,
            "totalPages": flipbook.total_pages,
            "user": {
                "firstname": user.first_name,
                "lastname": user.last_name,
                "email": user.email,
            },
        }),
    )


@router.get("/verify/{access_token}")
def verify_flipbook_access(access_token: str, session: Session = Depends(get_session)):
    flipbook = flipbook_service.verify_access(session, access_token)
    user = flipbook.user

    return {
        "message": "Access granted",
        "flipbook": {
            "id": flipbook.id,
            "filename": flipbook.filename,
            "originalName": flipbook.original_name,
            "totalPages": flipbook.total_pages,
            "accessCount": flipbook.access_count,
            "expiresAt": flipbook.expires_at,
            "isPaid": flipbook.is_paid,
            "paymentStatus": flipbook.payment_status,
            "user": {
                "firstname": user.first_name,
                "lastname": user.last_name,
            },
        },
    }


@router.get("/{access_token}/metadata")
def get_flipbook_metadata(access_token: str, session: Session = Depends(get_session)):
    flipbook = flipbook_service.get_viewable(session, access_token)
    user = flipbook.user

    return {
        "flipbookId": flipbook.id,
        "totalPages": flipbook.total_pages,
        "paymentStatus": flipbook.payment_status,
        "isActive": flipbook.is_active,
        "userData": {
            "firstname": user.first_name,
            "lastname": user.last_name,
            "email": user.email,
        },
        "server": {
            "flipbookLink": flipbook.flipbook_link,
            "expiresAt": flipbook.expires_at,
        },
        "accessToken": flipbook.access_token,
    }


@router.get("/{access_token}/page/{page_number}")
def get_flipbook_page(
    access_token: str,
    page_number: int,
    session: Session = Depends(get_session),
    cache: PageCache = Depends(get_page_cache),
):
    page = flipbook_service.render_page(session, cache, access_token, page_number)

    return Response(
        content=page.data,
        media_type="application/pdf",
        headers={
            "Cache-Control": page_cache_control(),
            "X-Cache": "HIT" if page.cache_hit else "MISS",
        },
    )
