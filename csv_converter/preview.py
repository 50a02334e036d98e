from __future__ import annotations

import math
from typing import Optional

from .models import Dataset, PreviewPage


def paginate(dataset: Optional[Dataset], page: int, page_size: int) -> PreviewPage:
    """
    Slice one 1-based page out of the dataset.

    A page index outside ``1..page_count`` resets to the first page.
    """
    if page_size < 1:
        raise ValueError("page_size must be at least 1")

    if dataset is None:
        return PreviewPage(page=1, page_size=page_size)

    total = len(dataset.records)
    page_count = math.ceil(total / page_size)
    if page < 1 or page > page_count:
        page = 1

    start = (page - 1) * page_size
    return PreviewPage(
        page=page,
        page_size=page_size,
        page_count=page_count,
        total_records=total,
        columns=list(dataset.columns),
        records=[dict(record) for record in dataset.records[start:start + page_size]],
    )
