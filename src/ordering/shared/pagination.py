"""Page-number pagination over repository queries."""

import math
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Page:
    items: list = field(default_factory=list)
    page: int = 1
    limit: int = 20
    total: int = 0

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def page_bounds(page: int, limit: int) -> tuple[int, int]:
    """Normalised (page, offset) for a 1-based page number."""
    page = max(int(page or 1), 1)
    return page, (page - 1) * limit


def paginate_query(query, page: int = 1, limit: int = 20, order_by: str | None = None) -> Page:
    page, offset = page_bounds(page, limit)
    if order_by:
        query = query.order_by(order_by)
    results = query.offset(offset).limit(limit).all()
    return Page(items=list(results.items), page=page, limit=limit, total=results.total)


def paginate_list(items: list, page: int = 1, limit: int = 20) -> Page:
    page, offset = page_bounds(page, limit)
    return Page(items=items[offset : offset + limit], page=page, limit=limit, total=len(items))
