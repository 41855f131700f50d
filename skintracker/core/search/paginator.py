from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Generic, Sequence, TypeVar

from skintracker.core.errors import EmptyPage


DEFAULT_PAGE_SIZE = 5

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    items: list[T]
    page_index: int
    page_size: int
    has_prev: bool
    has_next: bool
    total_pages: int

    @property
    def offset(self) -> int:
        return self.page_index * self.page_size


def total_pages(count: int, page_size: int) -> int:
    return max(1, math.ceil(max(0, count) / page_size))


def paginate(results: Sequence[T], page_index: int, page_size: int = DEFAULT_PAGE_SIZE) -> Page[T]:
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    if page_index < 0:
        raise EmptyPage(page_index, len(results))

    start = page_index * page_size
    items = list(results[start : start + page_size])
    if not items:
        raise EmptyPage(page_index, len(results))

    return Page(
        items=items,
        page_index=page_index,
        page_size=page_size,
        has_prev=page_index > 0,
        has_next=(page_index + 1) * page_size < len(results),
        total_pages=total_pages(len(results), page_size),
    )
