"""Page windows for rule listings, capped by ``API_MAX_PAGE_SIZE``."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Sequence, TypeVar

from fastapi import Response

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 50
DEFAULT_MAX_PAGE_SIZE = 200


def get_max_page_size() -> int:
    try:
        cap = int(os.getenv("API_MAX_PAGE_SIZE", str(DEFAULT_MAX_PAGE_SIZE)))
    except ValueError:
        return DEFAULT_MAX_PAGE_SIZE
    return cap if cap >= 1 else DEFAULT_MAX_PAGE_SIZE


def clamp_page_size(page_size: int) -> int:
    return max(1, min(page_size, get_max_page_size()))


@dataclass(frozen=True)
class PageWindow:
    page: int
    size: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size

    def slice(self, rows: Sequence[T]) -> list[T]:
        return list(rows[self.offset : self.offset + self.size])


def page_window(page: int, page_size: int) -> PageWindow:
    return PageWindow(page=max(page, 1), size=clamp_page_size(page_size))


def set_pagination_headers(response: Optional[Response], window: PageWindow, total: Optional[int]) -> None:
    if response is None:
        return
    if total is not None:
        response.headers["X-Total-Count"] = str(total)
    response.headers["X-Page"] = str(window.page)
    response.headers["X-Page-Size"] = str(window.size)
