from enum import Enum


class FlipbookEvent(str, Enum):
    FLIPBOOK_CREATED = "flipbook_created"
    ACCESS_EXTENDED = "access_extended"
    ACCESS_MADE_PERMANENT = "access_made_permanent"
    FLIPBOOK_ACTIVATED = "flipbook_activated"
