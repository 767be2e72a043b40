from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class SliderImage(SQLModel, table=True):
    __tablename__ = "slider_image"
    id: Optional[int] = Field(default=None, primary_key=True)
    filename: str
    original_name: str
    path: str
    size: int
    image_url: str
    sort_order: int = Field(default=0)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
