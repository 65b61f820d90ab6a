"""
1-based pagination shared by every paginated view.
"""

import math
from dataclasses import dataclass
from typing import Sequence, TypeVar

from mudra.domain.paper_trading.errors import InvalidInputError

T = TypeVar("T")

MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class PageRequest:
    """A requested page number and size."""

    page: int = 1
    limit: int = 10

    def __post_init__(self) -> None:
        if self.page < 1:
            raise InvalidInputError("Page must be at least 1", field="page")
        if not 1 <= self.limit <= MAX_PAGE_SIZE:
            raise InvalidInputError(
                f"Limit must be between 1 and {MAX_PAGE_SIZE}", field="limit"
            )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def slice(self, items: Sequence[T]) -> list[T]:
        return list(items[self.offset:self.offset + self.limit])


@dataclass(frozen=True)
class PageInfo:
    """Where a page sits within the full result set."""

    current_page: int
    total_pages: int
    total_count: int
    limit: int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def of(cls, request: PageRequest, total_count: int) -> "PageInfo":
        total_pages = math.ceil(total_count / request.limit)
        return cls(
            current_page=request.page,
            total_pages=total_pages,
            total_count=total_count,
            limit=request.limit,
            has_next_page=request.page < total_pages,
            has_prev_page=request.page > 1,
        )
