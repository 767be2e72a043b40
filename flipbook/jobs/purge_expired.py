import asyncio
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlmodel import Session, select

from flipbook.config import settings
from flipbook.database import engine
from flipbook.models.flipbook import Flipbook
from flipbook.services.flipbook_service import delete_flipbook
from flipbook.services.page_cache import PageCache

logger = logging.getLogger(__name__)


def purge_expired_flipbooks(
    session: Session,
    cache: PageCache,
    now: Optional[datetime] = None,
    grace_days: Optional[int] = None,
) -> int:
    """Delete flipbooks whose access expired more than ``grace_days`` ago."""
    now = now or datetime.utcnow()
    if grace_days is None:
        grace_days = settings.retention_grace_days
    cutoff = now - timedelta(days=grace_days)

    expired = session.exec(
        select(Flipbook)
        .where(Flipbook.expires_at.is_not(None))
        .where(Flipbook.expires_at < cutoff)
    ).all()

    for flipbook in expired:
        delete_flipbook(session, cache, flipbook)

    logger.info(f"Purged {len(expired)} expired flipbooks")
    return len(expired)


async def run_periodic_purge(cache: PageCache, interval_seconds: float):
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            with Session(engine) as session:
                await asyncio.to_thread(purge_expired_flipbooks, session, cache)
        except Exception:
            logger.exception("Expired flipbook purge failed")
