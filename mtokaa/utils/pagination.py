from typing import Any

from mtokaa.config import PAGE_SIZE


def paginate(items: list[Any], page: int, page_size: int = PAGE_SIZE) -> tuple[list[Any], int, int]:
    """
    Paginate a list of items. Out-of-range pages are clamped.

    Returns:
        (page_items, page, total_pages)
    """
    total = len(items)
    total_pages = max(1, (total + page_size - 1) // page_size)
    page = max(0, min(page, total_pages - 1))

    start = page * page_size
    return items[start:start + page_size], page, total_pages
