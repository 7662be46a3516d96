"""Page arithmetic for paginated listings."""

import math
from typing import Any, Iterable

from cloudnode.response import ApiResponse, PaginatedData

MAX_PAGE_WORKERS = 8


def page_in_bounds(page: int, limit: int, total: int) -> bool:
    return page >= 1 and page * limit <= total


def page_count(limit: int, total: int) -> int:
    """Number of pages needed to hold `total` items, `limit` per page."""
    if limit <= 0:
        return 1
    return max(math.ceil(total / limit), 1)


def merge_pages(pages: Iterable[ApiResponse[PaginatedData[Any]]], total: int, limit: int) -> PaginatedData[Any]:
    """Concatenate the items of pages (already in page order) into one page."""
    items: list[Any] = []
    for page in pages:
        items.extend(page["items"])
    return {"items": items, "total": total, "limit": limit, "page": 1}
