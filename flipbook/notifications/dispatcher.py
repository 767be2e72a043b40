import logging
from datetime import datetime
from typing import Optional

from flipbook.config import settings
from flipbook.notifications.channels import Channel
from flipbook.notifications.email_handlers import send_admin_email, send_user_email
from flipbook.notifications.events import FlipbookEvent
from flipbook.notifications.rules import NOTIFICATION_RULES

logger = logging.getLogger(__name__)

USER_TEMPLATE = "user_emails/flipbook_ready.html"
ADMIN_TEMPLATE = "admin_emails/flipbook_created.html"

EVENT_COPY = {
    FlipbookEvent.FLIPBOOK_CREATED: (
        "Your Flipbook is Ready - {name}",
        "Your Flipbook is Ready!",
        "Your PDF has been successfully converted into an interactive flipbook!",
    ),
    FlipbookEvent.ACCESS_EXTENDED: (
        "Your Flipbook access has been extended - {name}",
        "Access Extended",
        "Your flipbook access has been extended.",
    ),
    FlipbookEvent.ACCESS_MADE_PERMANENT: (
        "Your Flipbook is now permanent - {name}",
        "Permanent Access Granted",
        "Your flipbook no longer expires.",
    ),
    FlipbookEvent.FLIPBOOK_ACTIVATED: (
        "Your Flipbook is active again - {name}",
        "Flipbook Activated",
        "Your flipbook has been reactivated.",
    ),
}


def dispatch_flipbook_event(
    *,
    event: FlipbookEvent,
    email: str,
    name: str,
    link: str,
    expires_at: Optional[datetime],
    is_trial: bool,
) -> bool:
    """
    Central notification dispatcher.

    Returns whether the owner email went out. Failures never propagate to
    the caller.
    """
    rules = NOTIFICATION_RULES.get(event, {})
    subject, heading, intro = EVENT_COPY[event]
    ctx = {
        "name": name,
        "email": email,
        "link": link,
        "expires_at": expires_at,
        "is_trial": is_trial,
        "trial_days": settings.trial_days,
    }

    delivered = False

    # -------------------------
    # USER EMAIL
    # -------------------------
    if rules.get(Channel.OWNER_EMAIL):
        try:
            delivered = send_user_email(
                USER_TEMPLATE,
                subject.format(name=name),
                email,
                heading=heading,
                intro=intro,
                **ctx,
            )
        except Exception:
            logger.exception(f"User email for {event.value} failed")
            delivered = False

    # -------------------------
    # ADMIN EMAIL
    # -------------------------
    if rules.get(Channel.ADMIN_EMAIL):
        try:
            send_admin_email(ADMIN_TEMPLATE, f"New flipbook from {name}", **ctx)
        except Exception:
            logger.exception(f"Admin email for {event.value} failed")

    logger.info(f"{event.value} notification for {email}: delivered={delivered}")
    return delivered


def notify_flipbook_ready(
    email: str,
    name: str,
    link: str,
    expires_at: Optional[datetime],
    is_trial: bool,
    event: FlipbookEvent = FlipbookEvent.FLIPBOOK_CREATED,
) -> bool:
    return dispatch_flipbook_event(
        event=event,
        email=email,
        name=name,
        link=link,
        expires_at=expires_at,
        is_trial=is_trial,
    )
