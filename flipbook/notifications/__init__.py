from .events import FlipbookEvent
from .dispatcher import dispatch_flipbook_event, notify_flipbook_ready

__all__ = [
    "FlipbookEvent",
    "dispatch_flipbook_event",
    "notify_flipbook_ready",
]
