"""Offset/limit pagination helpers shared by the draft and offer listings."""
import math
from dataclasses import dataclass, field
from typing import Any, List, Optional

from flask import current_app

from offerdesk.exceptions import ValidationError
from offerdesk.utils.number_format import parse_int


@dataclass
class Page:
    """One page of results plus the totals needed to render a pager."""

    items: List[Any] = field(default_factory=list)
    total_items: int = 0
    page_index: int = 0
    page_size: int = 10

    @property
    def offset(self) -> int:
        return self.page_index * self.page_size

    @property
    def total_pages(self) -> int:
        if not self.page_size:
            return 0
        return math.ceil(self.total_items / self.page_size)

    def to_dict(self, item_serializer=None):
        items = [item_serializer(item) for item in self.items] if item_serializer else list(self.items)
        return {
            'data': items,
            'total_items': self.total_items,
            'total_pages': self.total_pages,
            'page_index': self.page_index,
            'page_size': self.page_size,
        }


def normalize_paging(page_index: Optional[Any] = None, page_size: Optional[Any] = None) -> Page:
    """Validate paging parameters and return an empty Page carrying them."""
    index = 0 if page_index in (None, '') else parse_int(page_index, 'page_index')
    size = current_app.config.get('DEFAULT_PAGE_SIZE', 10) if page_size in (None, '') else parse_int(page_size, 'page_size')

    if index < 0:
        raise ValidationError('page_index cannot be negative')
    if size < 1:
        raise ValidationError('page_size must be at least 1')

    size = min(size, current_app.config.get('MAX_PAGE_SIZE', 100))
    return Page(page_index=index, page_size=size)


def paginate(query, page: Page) -> Page:
    """Fill ``page`` from a SQLAlchemy query (count + offset/limit)."""
    page.total_items = query.order_by(None).count()
    page.items = query.offset(page.offset).limit(page.page_size).all()
    return page
