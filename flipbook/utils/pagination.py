from dataclasses import dataclass
from typing import List

from sqlalchemy import func
from sqlmodel import Session, select


@dataclass
class Page:
    items: List
    total_items: int
    current_page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return (self.total_items + self.limit - 1) // self.limit


def paginate(session: Session, query, page: int = 1, limit: int = 10) -> Page:
    """Run ``query`` for one page of results, counting the full result set first."""
    page = max(page, 1)
    limit = limit if limit >= 1 else 10

    total = session.exec(select(func.count()).select_from(query.subquery())).one()
    items = session.exec(query.offset((page - 1) * limit).limit(limit)).all()

    return Page(items=items, total_items=total, current_page=page, limit=limit)
