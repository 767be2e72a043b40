from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from flipbook.exceptions import FlipbookDeactivated, FlipbookExpired, FlipbookNotFound
from flipbook.models.flipbook import Flipbook


class DenialReason(str, Enum):
    NOT_FOUND = "not_found"
    DEACTIVATED = "deactivated"
    EXPIRED = "expired"


@dataclass(frozen=True)
class AccessDecision:
    granted: bool
    reason: Optional[DenialReason] = None


GRANTED = AccessDecision(granted=True)

_DENIAL_ERRORS = {
    DenialReason.NOT_FOUND: FlipbookNotFound,
    DenialReason.DEACTIVATED: FlipbookDeactivated,
    DenialReason.EXPIRED: FlipbookExpired,
}


def check_access(flipbook: Optional[Flipbook], now: datetime) -> AccessDecision:
    """First failing check wins: not found, then deactivated, then expired."""
    if flipbook is None:
        return AccessDecision(granted=False, reason=DenialReason.NOT_FOUND)
    if not flipbook.is_active:
        return AccessDecision(granted=False, reason=DenialReason.DEACTIVATED)
    if flipbook.expires_at is not None and now > flipbook.expires_at:
        return AccessDecision(granted=False, reason=DenialReason.EXPIRED)
    return GRANTED


def ensure_access(flipbook: Optional[Flipbook], now: datetime) -> Flipbook:
    decision = check_access(flipbook, now)
    if not decision.granted:
        raise _DENIAL_ERRORS[decision.reason]()
    return flipbook


def record_access(flipbook: Flipbook, now: datetime) -> None:
    """Count a granted view. Metadata lookups must not call this."""
    flipbook.access_count = (flipbook.access_count or 0) + 1
    flipbook.last_accessed = now
