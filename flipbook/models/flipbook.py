from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, TYPE_CHECKING
from datetime import datetime
from enum import Enum

if TYPE_CHECKING:
    from flipbook.models.user import User


class PaymentStatus(str, Enum):
    pending = "pending"
    paid = "paid"
    free = "free"
    admin = "admin"


class Flipbook(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    # opaque, immutable once issued; exact-match lookups only
    access_token: str = Field(index=True, unique=True)

    user_id: int = Field(foreign_key="user.id", index=True)
    user: Optional["User"] = Relationship(back_populates="flipbooks")

    #file
    filename: str
    original_name: str
    path: str
    pages_directory: Optional[str] = None
    size: int
    total_pages: int = Field(default=0, ge=0)
    flipbook_link: str

    #access policy
    expires_at: Optional[datetime] = Field(default=None, index=True)
    is_active: bool = Field(default=True)
    is_paid: bool = Field(default=False)
    payment_status: PaymentStatus = Field(default=PaymentStatus.pending)

    #usage
    access_count: int = Field(default=0)
    last_accessed: Optional[datetime] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_trial(self) -> bool:
        return not self.is_paid and self.expires_at is not None
