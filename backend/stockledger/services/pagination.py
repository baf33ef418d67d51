# Overview: Page/offset helper shared by the list and search services.

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from flask import current_app


@dataclass
class Page:
    items: list
    page: int
    per_page: int
    total: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.per_page - 1) // self.per_page if self.total > 0 else 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    def to_dict(self, serialize: Callable[[Any], dict] | None = None) -> dict:
        serialize = serialize or (lambda obj: obj.to_dict())
        return {
            "items": [serialize(i) for i in self.items],
            "count": len(self.items),
            "pagination": {
                "page": self.page,
                "per_page": self.per_page,
                "total": self.total,
                "total_pages": self.total_pages,
                "has_next": self.has_next,
                "has_prev": self.has_prev,
            },
        }


def paginate(query, page: int | None = None, per_page: int | None = None) -> Page:
    """
    Apply offset pagination to an ordered query.

    page is 1-indexed; per_page defaults to DEFAULT_PAGE_SIZE and is capped at
    MAX_PAGE_SIZE.
    """
    default_size = current_app.config.get("DEFAULT_PAGE_SIZE", 20)
    max_size = current_app.config.get("MAX_PAGE_SIZE", 100)

    per_page = min(per_page or default_size, max_size)
    per_page = max(per_page, 1)
    page = max(page or 1, 1)

    total = query.order_by(None).count()
    items = query.offset((page - 1) * per_page).limit(per_page).all()
    return Page(items=items, page=page, per_page=per_page, total=total)
