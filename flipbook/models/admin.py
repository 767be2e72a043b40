from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

ADMIN_SLOT = 1


class Admin(SQLModel, table=True):
    """The single privileged account. See services.admin_service.create_admin."""

    id: Optional[int] = Field(default=None, primary_key=True)
    # constant and unique, so the store itself rejects a second admin row
    singleton: int = Field(default=ADMIN_SLOT, unique=True)
    email: str = Field(index=True, unique=True)
    password: str
    is_registered: bool = Field(default=False)
    created_at: datetime = Field(default_factory=datetime.utcnow)
