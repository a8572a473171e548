"""History paging over the vital store."""

import math

from vital_monitor.models import PagedResponse, VitalReading
from vital_monitor.storage import VitalStore


def paginate(store: VitalStore, page: int, page_size: int) -> PagedResponse[VitalReading]:
    """
    Fetch one page of readings, newest first.

    Makes a single store.page() call: one count and one bounded range
    query. page and page_size are assumed valid (checked by the caller).
    """
    items, total_count = store.page(page, page_size)
    total_pages = math.ceil(total_count / page_size) if total_count else 0

    return PagedResponse[VitalReading](
        data=items,
        page=page,
        page_size=page_size,
        total_count=total_count,
        total_pages=total_pages,
        has_next_page=page < total_pages,
        has_previous_page=page > 1,
    )
