"""Translation between 1-based result pages and provider offsets."""
import math
from typing import Optional

from hotelscout.schemas import PaginationInfo


def normalize_page(page: Optional[int]) -> int:
    if page is None or page < 1:
        return 1
    return page


def to_offset(page: int, page_size: int) -> int:
    return (normalize_page(page) - 1) * page_size


def to_page_info(total: int, page_size: int, page: int) -> PaginationInfo:
    """Page metadata for ``page``.

    ``total`` must be the provider-reported result count, not the number of
    rows on the current page.
    """
    page = normalize_page(page)
    total = max(total, 0)
    total_pages = math.ceil(total / page_size) if page_size > 0 else 0
    return PaginationInfo(
        current_page=page,
        total_pages=total_pages,
        total_results=total,
        per_page=page_size,
        has_next_page=page < total_pages,
        has_prev_page=page > 1,
    )
