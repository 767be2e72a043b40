from enum import Enum


class Channel(str, Enum):
    OWNER_EMAIL = "owner_email"
    ADMIN_EMAIL = "admin_email"
